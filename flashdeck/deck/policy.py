"""Staleness policy deciding when cached resources are re-fetched."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..config.settings import Config


class ResourceKind(Enum):
    """Resources with their own refresh stamp."""
    LANGUAGES = "languages"
    CARDS = "cards"          # stamped per language
    CATALOG = "catalog"      # explicit user-triggered refresh


@dataclass(frozen=True)
class RefreshPolicy:
    """
    One interval per resource kind, never below the throttle floor.

    A resource is stale once its interval has fully elapsed since its
    last successful refresh, or if it was never refreshed.
    """

    languages_interval: timedelta = timedelta(hours=6)
    cards_interval: timedelta = timedelta(hours=6)
    catalog_interval: timedelta = timedelta(hours=6)
    min_interval: timedelta = timedelta(minutes=10)

    @classmethod
    def from_config(cls, config: Config) -> "RefreshPolicy":
        return cls(
            languages_interval=timedelta(hours=config.LANGUAGES_REFRESH_HOURS),
            cards_interval=timedelta(hours=config.CARDS_REFRESH_HOURS),
            catalog_interval=timedelta(hours=config.MANUAL_REFRESH_HOURS),
            min_interval=timedelta(minutes=config.MIN_REFRESH_MINUTES),
        )

    def interval_for(self, kind: ResourceKind) -> timedelta:
        configured = {
            ResourceKind.LANGUAGES: self.languages_interval,
            ResourceKind.CARDS: self.cards_interval,
            ResourceKind.CATALOG: self.catalog_interval,
        }[kind]
        return max(configured, self.min_interval)

    def is_stale(self, kind: ResourceKind, last_refresh: Optional[datetime], now: datetime) -> bool:
        if last_refresh is None:
            return True
        return now - last_refresh >= self.interval_for(kind)

    def remaining(self, kind: ResourceKind, last_refresh: Optional[datetime], now: datetime) -> timedelta:
        """Time left until the resource becomes stale (zero when already stale)."""
        if last_refresh is None:
            return timedelta(0)
        left = self.interval_for(kind) - (now - last_refresh)
        return left if left > timedelta(0) else timedelta(0)
