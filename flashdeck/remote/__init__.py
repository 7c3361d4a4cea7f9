"""Remote document stores - Strategy pattern over interchangeable clients."""

from .base import DocumentStoreClient, RawDocument
from .factory import ClientFactory
from .firestore import FirestoreClient
from .static import StaticDocumentClient

__all__ = [
    'DocumentStoreClient',
    'RawDocument',
    'ClientFactory',
    'FirestoreClient',
    'StaticDocumentClient',
]
