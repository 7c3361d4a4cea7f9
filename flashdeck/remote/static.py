"""Static client - serve collections from a bundled JSON file."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import aiofiles

from ..exceptions import RemoteStoreError
from .base import DocumentStoreClient, RawDocument, matches

logger = logging.getLogger(__name__)


class StaticDocumentClient(DocumentStoreClient):
    """
    Read-only client over a JSON bundle shipped with the app.

    The bundle maps collection names to lists of documents:
        {"cards": [{"term": "dog", ...}], "languages": [...]}
    Useful as offline seed data or when no remote store is configured.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._bundle: Optional[Dict[str, Any]] = None

    async def _load(self) -> Dict[str, Any]:
        if self._bundle is not None:
            return self._bundle
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                content = await f.read()
            bundle = json.loads(content)
        except (OSError, ValueError) as e:
            raise RemoteStoreError(f"Could not read bundle {self.path}: {e}") from e
        if not isinstance(bundle, dict):
            raise RemoteStoreError(f"Bundle {self.path} must hold an object of collections")
        self._bundle = bundle
        return bundle

    async def fetch_collection(
        self,
        name: str,
        force_server_read: bool = False,
        where: Optional[Mapping[str, Any]] = None,
    ) -> List[RawDocument]:
        if force_server_read:
            self._bundle = None
        bundle = await self._load()
        documents = bundle.get(name, [])
        if not isinstance(documents, list):
            raise RemoteStoreError(f"Collection '{name}' in bundle is not a list")

        results: List[RawDocument] = []
        for index, document in enumerate(documents):
            if not isinstance(document, dict):
                # Left for the decoder to reject
                results.append(document)
                continue
            if matches(document, where):
                raw = dict(document)
                raw.setdefault("id", f"{name}-{index}")
                results.append(raw)
        logger.debug("Bundle collection '%s': %d documents", name, len(results))
        return results
