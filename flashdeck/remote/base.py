"""Base document-store client."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

# Field bag of one remote document, including its "id"
RawDocument = Dict[str, Any]


class DocumentStoreClient(ABC):
    """
    Abstract base class for remote document stores.

    Provides lifecycle management and async context manager support.
    Subclasses implement fetch_collection() and optionally override close().
    """

    @abstractmethod
    async def fetch_collection(
        self,
        name: str,
        force_server_read: bool = False,
        where: Optional[Mapping[str, Any]] = None,
    ) -> List[RawDocument]:
        """
        Fetch every document of a collection.

        Args:
            name: Collection name
            force_server_read: Bypass any client-side or HTTP cache
            where: Optional field -> value equality filters

        Returns:
            Raw documents

        Raises:
            RemoteStoreError: If the request fails
            ConfigurationError: If the client is misconfigured
        """
        pass

    async def close(self) -> None:
        """Close any open resources (sessions, connections, etc.)."""
        pass

    async def __aenter__(self) -> "DocumentStoreClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def matches(document: Mapping[str, Any], where: Optional[Mapping[str, Any]]) -> bool:
    """Check a document against equality filters."""
    if not where:
        return True
    return all(document.get(key) == value for key, value in where.items())
