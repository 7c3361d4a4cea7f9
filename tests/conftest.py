"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from flashdeck.deck.cache import DeckCacheManager
from flashdeck.remote.base import DocumentStoreClient, RawDocument, matches
from flashdeck.services.progress_service import ProgressLedger
from flashdeck.storage.store import JSONFileStore

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Mutable clock handed to the services instead of the wall clock."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeDocumentClient(DocumentStoreClient):
    """
    In-memory remote store.

    Documents are snapshotted when a fetch is issued. Each entry of
    ``gates`` holds back one successive fetch until the event is set.
    """

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self.collections = collections or {}
        self.calls: List[Tuple[str, bool, Optional[Dict[str, Any]]]] = []
        self.error: Optional[Exception] = None
        self.gates: List[asyncio.Event] = []
        self.closed = False

    async def fetch_collection(
        self,
        name: str,
        force_server_read: bool = False,
        where: Optional[Mapping[str, Any]] = None,
    ) -> List[RawDocument]:
        self.calls.append((name, force_server_read, dict(where) if where else None))
        snapshot = [dict(doc) for doc in self.collections.get(name, []) if matches(doc, where)]
        error = self.error
        if self.gates:
            gate = self.gates.pop(0)
            await gate.wait()
        if error is not None:
            raise error
        return snapshot

    def calls_for(self, name: str) -> List[Tuple[str, bool, Optional[Dict[str, Any]]]]:
        return [call for call in self.calls if call[0] == name]

    async def close(self) -> None:
        self.closed = True


def card_doc(term: str, answer: str, language: str, topic: str, doc_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": doc_id or f"{language}-{term}",
        "term": term,
        "answer": answer,
        "language": language,
        "topic": topic,
    }


def language_doc(name: str, active: bool = True) -> Dict[str, Any]:
    return {"id": name.lower(), "name": name, "active": active, "createdAt": "2023-05-01T10:00:00Z"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path) -> JSONFileStore:
    return JSONFileStore(str(tmp_path / "store.json"))


@pytest.fixture
def client() -> FakeDocumentClient:
    return FakeDocumentClient({
        "languages": [
            language_doc("EN"),
            language_doc("PT"),
            language_doc("FR", active=False),
        ],
        "cards": [
            card_doc("dog", "cão", "EN", "Animals"),
            card_doc("cat", "gato", "EN", "Animals"),
            card_doc("bread", "pão", "EN", "Food"),
            card_doc("cão", "dog", "PT", "Animais"),
        ],
    })


@pytest.fixture
def cache(client: FakeDocumentClient, store: JSONFileStore, clock: FakeClock) -> DeckCacheManager:
    return DeckCacheManager(client=client, store=store, clock=clock)


@pytest.fixture
def ledger(store: JSONFileStore, clock: FakeClock) -> ProgressLedger:
    return ProgressLedger(store, clock=clock)
