"""Firestore client - read collections through the Firestore REST API."""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import aiohttp

from ..exceptions import ConfigurationError, RemoteStoreError
from .base import DocumentStoreClient, RawDocument

logger = logging.getLogger(__name__)


def decode_value(value: Mapping[str, Any]) -> Any:
    """
    Convert a Firestore typed value to a plain Python value.

    Timestamps stay ISO strings; the record decoders parse them.
    """
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "nullValue" in value:
        return None
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return value["bytesValue"]
    if "geoPointValue" in value:
        point = value["geoPointValue"] or {}
        return {"latitude": point.get("latitude", 0.0), "longitude": point.get("longitude", 0.0)}
    if "mapValue" in value:
        fields = (value["mapValue"] or {}).get("fields", {})
        return {key: decode_value(item) for key, item in fields.items()}
    if "arrayValue" in value:
        items = (value["arrayValue"] or {}).get("values", [])
        return [decode_value(item) for item in items]
    return None


def encode_value(value: Any) -> Dict[str, Any]:
    """Convert a plain filter value to a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def document_to_raw(document: Mapping[str, Any]) -> RawDocument:
    """Flatten a REST document into its fields plus the document id."""
    raw = {key: decode_value(item) for key, item in (document.get("fields") or {}).items()}
    name = document.get("name", "")
    raw["id"] = name.rsplit("/", 1)[-1] if name else None
    return raw


def build_structured_query(collection: str, where: Mapping[str, Any]) -> Dict[str, Any]:
    """Build a runQuery body with one EQUAL filter per field."""
    filters = [
        {
            "fieldFilter": {
                "field": {"fieldPath": field_path},
                "op": "EQUAL",
                "value": encode_value(value),
            }
        }
        for field_path, value in where.items()
    ]
    query: Dict[str, Any] = {"from": [{"collectionId": collection}]}
    if len(filters) == 1:
        query["where"] = filters[0]
    elif filters:
        query["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
    return {"structuredQuery": query}


class FirestoreClient(DocumentStoreClient):
    """Firestore REST client with session pooling and retries."""

    PAGE_SIZE = 300

    def __init__(
        self,
        project_id: str,
        api_key: str = "",
        database: str = "(default)",
        base_url: str = "https://firestore.googleapis.com/v1",
        timeout: int = 30,
        retries: int = 3,
        backoff_base: float = 1.0,
    ):
        """
        Initialize the client.

        Args:
            project_id: Google Cloud project id
            api_key: Web API key sent as the "key" query parameter
            database: Firestore database id
            base_url: REST endpoint root
            timeout: Total request timeout in seconds
            retries: Attempts per request
            backoff_base: Base of the exponential backoff delay in seconds
        """
        self.project_id = project_id
        self.api_key = api_key
        self.database = database
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff_base = backoff_base
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    @property
    def documents_url(self) -> str:
        if not self.project_id:
            raise ConfigurationError("Firestore project id is not configured")
        return f"{self.base_url}/projects/{self.project_id}/databases/{self.database}/documents"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session (connection pooling)."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
                self._session = None

    def _params(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        params = dict(extra or {})
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, str],
        force_server_read: bool,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request with retries and return the decoded JSON body."""
        session = await self._get_session()
        headers = {"Cache-Control": "no-cache"} if force_server_read else {}
        last_error = "no attempt made"
        last_status: Optional[int] = None

        for attempt in range(self.retries):
            try:
                async with session.request(method, url, params=params, json=json_body, headers=headers) as response:
                    if response.status == 200:
                        return await response.json()

                    body = await response.text()
                    last_status = response.status
                    last_error = f"HTTP {response.status}: {body[:200]}"

                    if response.status in (401, 403):
                        raise RemoteStoreError(f"Firestore auth failed ({last_error})", status=response.status)
                    if response.status == 404:
                        raise ConfigurationError(f"Firestore database not found ({last_error})")
                    if response.status not in (408, 429) and response.status < 500:
                        raise RemoteStoreError(f"Firestore request rejected ({last_error})", status=response.status)

                    logger.warning("Firestore %s, attempt %d/%d", last_error[:60], attempt + 1, self.retries)
            except asyncio.TimeoutError:
                last_error = "timeout"
                logger.warning("Firestore timeout, attempt %d/%d", attempt + 1, self.retries)
            except aiohttp.ClientError as e:
                last_error = str(e)
                logger.warning("Firestore connection error: %s", str(e)[:60])

            if attempt < self.retries - 1:
                await asyncio.sleep(self.backoff_base * (2 ** attempt))

        raise RemoteStoreError(f"Firestore request failed after {self.retries} attempts: {last_error}",
                               status=last_status)

    async def fetch_collection(
        self,
        name: str,
        force_server_read: bool = False,
        where: Optional[Mapping[str, Any]] = None,
    ) -> List[RawDocument]:
        if where:
            return await self._run_query(name, where, force_server_read)

        url = f"{self.documents_url}/{name}"
        documents: List[RawDocument] = []
        page_token: Optional[str] = None
        while True:
            extra = {"pageSize": str(self.PAGE_SIZE)}
            if page_token:
                extra["pageToken"] = page_token
            data = await self._request("GET", url, self._params(extra), force_server_read)
            for document in data.get("documents", []):
                documents.append(document_to_raw(document))
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info("Fetched %d documents from '%s'", len(documents), name)
        return documents

    async def _run_query(
        self,
        name: str,
        where: Mapping[str, Any],
        force_server_read: bool,
    ) -> List[RawDocument]:
        url = f"{self.documents_url}:runQuery"
        body = build_structured_query(name, where)
        data = await self._request("POST", url, self._params(), force_server_read, json_body=body)
        # runQuery streams one entry per result; entries without a document carry only read metadata
        documents = [document_to_raw(entry["document"]) for entry in data or [] if entry.get("document")]
        logger.info("Fetched %d documents from '%s' where %s", len(documents), name, dict(where))
        return documents
