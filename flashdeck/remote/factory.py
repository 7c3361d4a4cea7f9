"""
Client Factory - select the remote document store from configuration.

Enables switching between Firestore and a bundled JSON catalog without
touching the services that consume the client.
"""

from typing import Callable, Dict, List

from ..config.settings import Config
from ..exceptions import ConfigurationError
from .base import DocumentStoreClient
from .firestore import FirestoreClient
from .static import StaticDocumentClient

ClientBuilder = Callable[[Config], DocumentStoreClient]


class ClientFactory:
    """
    Factory for creating document-store clients based on configuration.

    Supports registration of custom providers for extensibility.

    Usage:
        @ClientFactory.register("my-store")
        def build_my_store(config: Config) -> DocumentStoreClient:
            ...

        client = ClientFactory.create("firestore", config)
    """

    # Registry: {provider_name: builder}
    _registry: Dict[str, ClientBuilder] = {}

    @classmethod
    def register(cls, provider: str):
        """
        Decorator to register a client builder.

        Args:
            provider: Provider name (e.g., "firestore", "static")
        """
        def decorator(builder: ClientBuilder) -> ClientBuilder:
            cls._registry[provider] = builder
            return builder
        return decorator

    @classmethod
    def create(cls, provider: str, config: Config) -> DocumentStoreClient:
        """
        Create a client instance.

        Raises:
            ConfigurationError: If provider not found
        """
        if provider not in cls._registry:
            raise ConfigurationError(
                f"Unknown remote provider: {provider}. "
                f"Available: {cls.available_providers()}"
            )
        return cls._registry[provider](config)

    @classmethod
    def available_providers(cls) -> List[str]:
        return sorted(cls._registry)


@ClientFactory.register("firestore")
def _build_firestore(config: Config) -> DocumentStoreClient:
    return FirestoreClient(
        project_id=config.FIRESTORE_PROJECT_ID,
        api_key=config.FIRESTORE_API_KEY,
        database=config.FIRESTORE_DATABASE,
        base_url=config.FIRESTORE_BASE_URL,
        timeout=config.TIMEOUT,
        retries=config.RETRIES,
    )


@ClientFactory.register("static")
def _build_static(config: Config) -> DocumentStoreClient:
    return StaticDocumentClient(config.STATIC_BUNDLE_FILE)
