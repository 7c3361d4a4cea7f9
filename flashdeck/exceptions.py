"""Exception hierarchy for flashdeck."""

from typing import Optional


class FlashDeckError(Exception):
    """Base class for all flashdeck errors."""


class ConfigurationError(FlashDeckError):
    """Raised when the remote store or local storage is misconfigured."""


class RemoteStoreError(FlashDeckError):
    """Raised when a remote document-store request fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class DecodeError(FlashDeckError):
    """Raised when a document or cached record cannot be decoded."""


class StorageError(FlashDeckError):
    """Raised when a persisted payload cannot be read or written."""
