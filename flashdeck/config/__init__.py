"""Configuration module for flashdeck."""

from .settings import Config
from .preferences import UserPreferences

__all__ = [
    'Config',
    'UserPreferences',
]
