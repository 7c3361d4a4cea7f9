"""
Service wiring.

Builds the cache manager, progress ledger and their collaborators once at
process start and hands them to consumers explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config.preferences import UserPreferences
from ..config.settings import Config
from ..deck.cache import DeckCacheManager
from ..deck.policy import RefreshPolicy
from ..remote.base import DocumentStoreClient
from ..remote.factory import ClientFactory
from ..storage.store import BaseStore, StorageBackend, create_store
from .progress_service import ProgressLedger

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Everything the UI layer needs, constructed together."""

    config: Config
    store: BaseStore
    client: DocumentStoreClient
    cache: DeckCacheManager
    progress: ProgressLedger
    preferences: UserPreferences

    async def close(self) -> None:
        """Drain background refreshes, then release the remote client."""
        await self.cache.close()
        await self.client.close()

    async def __aenter__(self) -> "AppServices":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_services(
    config: Optional[Config] = None,
    client: Optional[DocumentStoreClient] = None,
    store: Optional[BaseStore] = None,
) -> AppServices:
    """
    Construct the application services.

    Args:
        config: Configuration (environment defaults if None)
        client: Remote client (built from config.REMOTE_PROVIDER if None)
        store: Local store (built from config.STORE_BACKEND if None)

    Returns:
        Wired services
    """
    config = config or Config()

    if store is None:
        try:
            backend = StorageBackend(config.STORE_BACKEND)
        except ValueError:
            logger.warning("Unknown store backend %r, using json", config.STORE_BACKEND)
            backend = StorageBackend.JSON
        store = create_store(backend, config.store_path)

    if client is None:
        client = ClientFactory.create(config.REMOTE_PROVIDER, config)

    cache = DeckCacheManager(
        client=client,
        store=store,
        policy=RefreshPolicy.from_config(config),
        cards_collection=config.CARDS_COLLECTION,
        languages_collection=config.LANGUAGES_COLLECTION,
        language_field=config.CARD_LANGUAGE_FIELD,
    )

    return AppServices(
        config=config,
        store=store,
        client=client,
        cache=cache,
        progress=ProgressLedger(store),
        preferences=UserPreferences(store),
    )
