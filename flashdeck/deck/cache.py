"""Deck cache management: serve decks from memory or disk, refresh from the remote store."""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set, Union

from ..exceptions import ConfigurationError, DecodeError, StorageError
from ..models.card import Card, Language
from ..models.deck import Deck
from ..models.decoding import decode_card, decode_documents, decode_language
from ..remote.base import DocumentStoreClient
from ..storage.codec import decode_payload, decode_timestamp, encode_payload, encode_timestamp
from ..storage.store import BaseStore
from ..utils.helpers import format_remaining, utcnow
from .builder import build_decks, index_by_storage_id, topics_for_decks
from .policy import RefreshPolicy, ResourceKind

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception], None]

LANGUAGES_KEY = "cache.languages"
CARDS_KEY_PREFIX = "cache.cards."
STAMP_PREFIX = "last_refresh."


@dataclass
class RefreshOutcome:
    """Result of an explicit catalog refresh."""

    performed: bool
    # Wait left before another refresh is allowed (set when not performed)
    remaining: timedelta = timedelta(0)
    languages_refreshed: bool = False
    languages: List[Language] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class DeckCacheManager:
    """
    Decide, per read, whether to serve cached decks or hit the remote store.

    Keeps an in-memory working set (language -> decks, active languages)
    in front of a persisted snapshot in the local store. Remote failures
    never reach the caller: reads fall back to cached data, else empty.

    Every cards fetch for a language takes a sequence number when issued;
    a result is applied only if no later-issued fetch for that language
    has already been applied.
    """

    def __init__(
        self,
        client: DocumentStoreClient,
        store: BaseStore,
        policy: Optional[RefreshPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        cards_collection: str = "cards",
        languages_collection: str = "languages",
        language_field: str = "language",
    ):
        """
        Initialize the cache manager.

        Args:
            client: Remote document-store client
            store: Local store for snapshots and refresh stamps
            policy: Staleness policy (6 hour intervals, 10 minute floor by default)
            clock: Source of the current UTC time
            cards_collection: Remote collection holding cards
            languages_collection: Remote collection holding languages
            language_field: Card field used to query one language's cards
        """
        self._client = client
        self._store = store
        self._policy = policy or RefreshPolicy()
        self._clock = clock or utcnow
        self._cards_collection = cards_collection
        self._languages_collection = languages_collection
        self._language_field = language_field

        self._decks: Dict[str, List[Deck]] = {}
        self._languages: Optional[List[Language]] = None

        self._issued: Dict[str, int] = defaultdict(int)
        self._applied: Dict[str, int] = {}
        self._inflight: Dict[str, "asyncio.Task[None]"] = {}
        self._background: Set["asyncio.Task[None]"] = set()

        self._error_callbacks: List[ErrorCallback] = []
        self._reported_errors: Set[str] = set()

    # ------------------------------------------------------------------
    # Error channel
    # ------------------------------------------------------------------

    def on_error(self, callback: ErrorCallback) -> None:
        """
        Register a callback for configuration errors.

        Each distinct configuration error is reported once.
        """
        self._error_callbacks.append(callback)

    def _handle_remote_error(self, error: Exception, what: str) -> None:
        logger.warning("Remote fetch of %s failed: %s", what, error)
        if not isinstance(error, ConfigurationError):
            return
        message = str(error)
        if message in self._reported_errors:
            return
        self._reported_errors.add(message)
        for callback in self._error_callbacks:
            try:
                callback(error)
            except Exception:
                logger.exception("Error callback failed")

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _stamp_key(self, kind: ResourceKind, language: Optional[str] = None) -> str:
        key = STAMP_PREFIX + kind.value
        return f"{key}.{language}" if language else key

    def _last_refresh(self, kind: ResourceKind, language: Optional[str] = None) -> Optional[datetime]:
        return decode_timestamp(self._store.get(self._stamp_key(kind, language)))

    def _stamp(self, kind: ResourceKind, language: Optional[str] = None) -> None:
        self._store.set(self._stamp_key(kind, language), encode_timestamp(self._clock()))

    def _is_stale(self, kind: ResourceKind, language: Optional[str] = None) -> bool:
        return self._policy.is_stale(kind, self._last_refresh(kind, language), self._clock())

    def _persist(self, key: str, data: Any) -> None:
        try:
            self._store.set(key, encode_payload(data))
        except StorageError as e:
            logger.warning("Could not cache %s: %s", key, e)

    def _read(self, key: str) -> Optional[Any]:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return decode_payload(raw)
        except StorageError as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            return None

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------

    def _cached_languages(self) -> Optional[List[Language]]:
        """In-memory languages, else the persisted snapshot, else None."""
        if self._languages is not None:
            return self._languages

        data = self._read(LANGUAGES_KEY)
        if data is None:
            return None
        try:
            languages = [Language.from_dict(item) for item in data]
        except (DecodeError, TypeError) as e:
            logger.warning("Discarding unreadable language cache: %s", e)
            return None

        self._languages = [language for language in languages if language.active]
        return self._languages

    async def _refresh_languages(self, force: bool) -> Optional[List[Language]]:
        """Fetch, filter and cache languages. Returns None if the fetch failed."""
        try:
            documents = await self._client.fetch_collection(
                self._languages_collection, force_server_read=force
            )
        except Exception as e:
            self._handle_remote_error(e, "languages")
            return None

        languages, _ = decode_documents(documents, decode_language)
        active = [language for language in languages if language.active]
        names = {language.name for language in active}
        cached = {key[len(CARDS_KEY_PREFIX):] for key in self._store.keys(CARDS_KEY_PREFIX)}
        for gone in (set(self._decks) | cached) - names:
            logger.info("Dropping cached decks of inactive language %s", gone)
            self._drop_language(gone)
        self._languages = active
        self._persist(LANGUAGES_KEY, [language.to_dict() for language in active])
        self._stamp(ResourceKind.LANGUAGES)
        logger.info("Loaded %d active languages (%d inactive)", len(active), len(languages) - len(active))
        return active

    async def get_languages(self, force_refresh: bool = False) -> List[Language]:
        """
        Active languages, from cache while fresh.

        Args:
            force_refresh: Skip the cache and read from the server

        Returns:
            Active languages; cached ones (even stale) if the remote fails,
            empty if there is nothing cached either
        """
        if not force_refresh:
            cached = self._cached_languages()
            if cached is not None and not self._is_stale(ResourceKind.LANGUAGES):
                logger.debug("Serving %d languages from cache", len(cached))
                return list(cached)

        fetched = await self._refresh_languages(force_refresh)
        if fetched is not None:
            return list(fetched)

        cached = self._cached_languages()
        return list(cached) if cached is not None else []

    # ------------------------------------------------------------------
    # Decks
    # ------------------------------------------------------------------

    def _load_cached_cards(self, language: str) -> Optional[List[Card]]:
        data = self._read(CARDS_KEY_PREFIX + language)
        if data is None:
            return None
        try:
            return [Card.from_dict(item) for item in data]
        except (DecodeError, TypeError) as e:
            logger.warning("Discarding unreadable card cache for %s: %s", language, e)
            return None

    def _build(self, language: str, cards: List[Card]) -> List[Deck]:
        """Build a language's decks, keeping the local ids of decks already in memory."""
        decks = build_decks(card for card in cards if card.language == language)
        previous = index_by_storage_id(self._decks.get(language, []))
        return [
            replace(deck, local_id=previous[deck.storage_id].local_id)
            if deck.storage_id in previous else deck
            for deck in decks
        ]

    def _apply_cards(self, language: str, sequence: int, cards: List[Card]) -> bool:
        if sequence < self._applied.get(language, 0):
            logger.warning(
                "Discarding cards fetch #%d for %s; fetch #%d already applied",
                sequence, language, self._applied[language],
            )
            return False

        self._applied[language] = sequence
        self._decks[language] = self._build(language, cards)
        self._persist(CARDS_KEY_PREFIX + language, [card.to_dict() for card in cards])
        self._stamp(ResourceKind.CARDS, language)
        logger.info("Cached %d cards in %d decks for %s", len(cards), len(self._decks[language]), language)
        return True

    def _invalidate(self, language: str) -> None:
        """Make every fetch issued so far for a language fail the sequence guard."""
        self._issued[language] += 1
        self._applied[language] = self._issued[language]

    def _drop_language(self, language: str) -> None:
        self._invalidate(language)
        self._decks.pop(language, None)
        self._store.delete(CARDS_KEY_PREFIX + language)
        self._store.delete(self._stamp_key(ResourceKind.CARDS, language))

    async def _fetch_cards(self, language: str, force: bool) -> bool:
        """Fetch one language's cards and apply them. Returns False if the fetch failed."""
        self._issued[language] += 1
        sequence = self._issued[language]
        try:
            documents = await self._client.fetch_collection(
                self._cards_collection,
                force_server_read=force,
                where={self._language_field: language},
            )
        except Exception as e:
            self._handle_remote_error(e, f"cards for {language}")
            return False

        cards, _ = decode_documents(documents, decode_card)
        self._apply_cards(language, sequence, [card for card in cards if card.language == language])
        return True

    def _schedule_background_refresh(self, language: str) -> None:
        task = self._inflight.get(language)
        if task is not None and not task.done():
            return

        logger.debug("Scheduling background refresh for %s", language)
        task = asyncio.ensure_future(self._background_refresh(language))
        self._inflight[language] = task
        self._background.add(task)
        task.add_done_callback(lambda t, name=language: self._forget_task(name, t))

    def _forget_task(self, language: str, task: "asyncio.Task[None]") -> None:
        self._background.discard(task)
        if self._inflight.get(language) is task:
            del self._inflight[language]

    async def _background_refresh(self, language: str) -> None:
        try:
            await self._fetch_cards(language, force=False)
        except Exception:
            logger.exception("Background refresh for %s failed", language)

    async def get_decks_for_language(
        self,
        language: Union[str, Language],
        force_refresh: bool = False,
    ) -> List[Deck]:
        """
        Decks of one language.

        Resolution order when not forcing: decks already in memory, then
        the persisted card cache; both return without waiting on the
        network and schedule a background refresh if the language's cards
        are stale. Otherwise the cards are fetched before returning. A language
        missing from the known active languages has no decks.

        Args:
            language: Language name or record
            force_refresh: Skip the caches and read from the server

        Returns:
            Decks of the language; cached ones if the remote fails, else empty
        """
        name = language.name if isinstance(language, Language) else language
        known = self._cached_languages()
        if known is not None and name not in {active.name for active in known}:
            logger.debug("Language %s is not active, no decks", name)
            return []

        if not force_refresh:
            if name in self._decks:
                if self._is_stale(ResourceKind.CARDS, name):
                    self._schedule_background_refresh(name)
                return list(self._decks[name])

            cards = self._load_cached_cards(name)
            if cards is not None:
                logger.debug("Serving %s decks from the persisted cache", name)
                self._decks[name] = self._build(name, cards)
                if self._is_stale(ResourceKind.CARDS, name):
                    self._schedule_background_refresh(name)
                return list(self._decks[name])

        fetched = await self._fetch_cards(name, force_refresh)
        if name in self._decks:
            return list(self._decks[name])

        if not fetched:
            cards = self._load_cached_cards(name)
            if cards is not None:
                self._decks[name] = self._build(name, cards)
                return list(self._decks[name])
        return []

    # ------------------------------------------------------------------
    # Explicit refresh
    # ------------------------------------------------------------------

    def time_until_next_refresh(self) -> Optional[timedelta]:
        """Wait left before refresh_all may hit the network; None if never refreshed."""
        last = self._last_refresh(ResourceKind.CATALOG)
        if last is None:
            return None
        return self._policy.remaining(ResourceKind.CATALOG, last, self._clock())

    async def refresh_all(self, force_refresh: bool = False) -> RefreshOutcome:
        """
        Pull-to-refresh of languages and every active language's cards.

        Throttled by the catalog interval: while it has not elapsed and
        force_refresh is False, nothing is fetched and the remaining wait
        is reported instead.
        """
        remaining = self.time_until_next_refresh() or timedelta(0)
        if not force_refresh and remaining > timedelta(0):
            logger.info("Refresh not allowed yet, next in %s", format_remaining(remaining))
            return RefreshOutcome(performed=False, remaining=remaining)

        languages = await self._refresh_languages(force=True)
        languages_refreshed = languages is not None
        if languages is None:
            languages = list(self._cached_languages() or [])

        names = [language.name for language in languages]
        results = await asyncio.gather(*(self._fetch_cards(name, force=True) for name in names))

        outcome = RefreshOutcome(
            performed=True,
            languages_refreshed=languages_refreshed,
            languages=list(languages),
            refreshed=[name for name, ok in zip(names, results) if ok],
            failed=[name for name, ok in zip(names, results) if not ok],
        )
        if languages_refreshed:
            self._stamp(ResourceKind.CATALOG)
        logger.info("Refresh done: %d languages refreshed, %d failed", len(outcome.refreshed), len(outcome.failed))
        return outcome

    # ------------------------------------------------------------------
    # Accessors and maintenance
    # ------------------------------------------------------------------

    def loaded_decks(self) -> List[Deck]:
        """Every deck currently in memory, across languages."""
        return [deck for decks in self._decks.values() for deck in decks]

    def themes_for_language(self, language: str) -> List[str]:
        """Topics of a language's loaded decks, the all-cards topic last."""
        if language not in self._decks:
            return []
        return topics_for_decks(self._decks[language])

    async def wait_for_background(self) -> None:
        """Wait until every scheduled background refresh has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_background()

    def clear(self) -> None:
        """Drop the in-memory working set and every persisted cache entry and stamp."""
        for language in list(self._issued):
            self._invalidate(language)
        self._decks = {}
        self._languages = None
        for key in self._store.keys("cache.") + self._store.keys(STAMP_PREFIX):
            self._store.delete(key)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        last = self._last_refresh(ResourceKind.CATALOG)
        return {
            'languages_cached': len(self._languages) if self._languages is not None else 0,
            'languages_in_memory': sorted(self._decks),
            'decks_in_memory': len(self.loaded_decks()),
            'background_refreshes': len(self._background),
            'last_catalog_refresh': last.isoformat() if last else None,
        }
