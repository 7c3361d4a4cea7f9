"""Services layer for business logic separation."""

from .container import AppServices, create_services
from .progress_service import ProgressLedger

__all__ = [
    "AppServices",
    "create_services",
    "ProgressLedger",
]
