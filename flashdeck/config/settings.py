"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


def _env(key: str, default: Any) -> Any:
    """
    Read an environment variable parsed to the type of its default.

    Args:
        key: Environment variable name
        default: Value used when unset; its type drives parsing

    Returns:
        Parsed value, or default if unset or malformed
    """
    value = os.environ.get(key)
    if value is None:
        return default

    if isinstance(default, bool):
        return value.strip().lower() in ("true", "1", "yes", "on")
    elif isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return default
    elif isinstance(default, float):
        try:
            return float(value)
        except ValueError:
            return default
    else:
        return value


# Project root (parent of flashdeck/)
BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()


@dataclass
class Config:
    """
    Application-wide configuration.

    Defaults come from the environment (and the project .env file).
    Construct an instance with keyword overrides to configure an embedded
    or test setup explicitly.
    """

    # Local storage
    DATA_DIR: str = _env("FLASHDECK_DATA_DIR", str(BASE_DIR / "data"))
    STORE_BACKEND: str = _env("FLASHDECK_STORE_BACKEND", "json")  # Options: json, sqlite
    STORE_FILE: str = _env("FLASHDECK_STORE_FILE", "")

    # Remote document store
    REMOTE_PROVIDER: str = _env("FLASHDECK_REMOTE_PROVIDER", "firestore")  # Options: firestore, static
    FIRESTORE_PROJECT_ID: str = _env("FIRESTORE_PROJECT_ID", "")
    # NEVER hardcode secret keys in source code!
    FIRESTORE_API_KEY: str = _env("FIRESTORE_API_KEY", "")
    FIRESTORE_DATABASE: str = _env("FIRESTORE_DATABASE", "(default)")
    FIRESTORE_BASE_URL: str = _env("FIRESTORE_BASE_URL", "https://firestore.googleapis.com/v1")
    STATIC_BUNDLE_FILE: str = _env("FLASHDECK_STATIC_BUNDLE", str(BASE_DIR / "data" / "bundle.json"))

    CARDS_COLLECTION: str = _env("FLASHDECK_CARDS_COLLECTION", "cards")
    LANGUAGES_COLLECTION: str = _env("FLASHDECK_LANGUAGES_COLLECTION", "languages")
    CARD_LANGUAGE_FIELD: str = _env("FLASHDECK_CARD_LANGUAGE_FIELD", "language")

    # Refresh policy
    LANGUAGES_REFRESH_HOURS: float = _env("FLASHDECK_LANGUAGES_REFRESH_HOURS", 6.0)
    CARDS_REFRESH_HOURS: float = _env("FLASHDECK_CARDS_REFRESH_HOURS", 6.0)
    MANUAL_REFRESH_HOURS: float = _env("FLASHDECK_MANUAL_REFRESH_HOURS", 6.0)
    MIN_REFRESH_MINUTES: float = _env("FLASHDECK_MIN_REFRESH_MINUTES", 10.0)

    # Network
    TIMEOUT: int = _env("FLASHDECK_TIMEOUT", 30)
    RETRIES: int = _env("FLASHDECK_RETRIES", 3)

    # Logging
    LOG_LEVEL: str = _env("FLASHDECK_LOG_LEVEL", "INFO")
    LOG_FILE: str = _env("FLASHDECK_LOG_FILE", "")

    @property
    def store_path(self) -> str:
        """Path of the local store file for the configured backend."""
        if self.STORE_FILE:
            return self.STORE_FILE
        name = "flashdeck.db" if self.STORE_BACKEND == "sqlite" else "flashdeck.json"
        return str(Path(self.DATA_DIR) / name)
