"""Tests for service wiring and user preferences."""

import json

import pytest

from flashdeck.config import Config, UserPreferences
from flashdeck.services import create_services
from flashdeck.storage import JSONFileStore, SQLiteStore


@pytest.fixture
def config(tmp_path):
    bundle = tmp_path / "bundle.json"
    bundle.write_text(json.dumps({
        "languages": [
            {"nome": "EN", "ativo": True},
            {"nome": "DE", "ativo": False},
        ],
        "cards": [
            {"palavra": "dog", "resposta": "cão", "idioma": "EN", "tema": "Animals"},
            {"palavra": "cat", "resposta": "gato", "idioma": "EN", "tema": "Animals"},
        ],
    }), encoding="utf-8")
    return Config(
        DATA_DIR=str(tmp_path / "data"),
        STORE_FILE="",
        REMOTE_PROVIDER="static",
        STATIC_BUNDLE_FILE=str(bundle),
        CARD_LANGUAGE_FIELD="idioma",
    )


@pytest.mark.asyncio
async def test_end_to_end_study_session(config):
    async with create_services(config) as services:
        languages = await services.cache.get_languages()
        decks = await services.cache.get_decks_for_language(languages[0])
        deck = decks[0]
        for card in deck.cards:
            services.progress.record_answer(deck.storage_id, card.storage_id, correct=card.term == "dog")
        completed = services.progress.check_completion(deck.storage_id, deck.card_count)

    assert [language.name for language in languages] == ["EN"]
    assert [d.name for d in decks] == ["Animals (EN)", "Todos (EN)"]
    assert completed

    async with create_services(config) as reopened:
        progress = reopened.progress.get_progress("EN_Animals")

    assert progress.completed
    assert progress.accuracy == 50.0


def test_store_backend_selection(config):
    assert isinstance(create_services(config).store, JSONFileStore)

    config.STORE_BACKEND = "sqlite"
    assert isinstance(create_services(config).store, SQLiteStore)

    config.STORE_BACKEND = "tape"
    assert isinstance(create_services(config).store, JSONFileStore)


@pytest.mark.asyncio
async def test_close_drains_and_closes_client(config, client, store):
    services = create_services(config, client=client, store=store)

    await services.close()

    assert client.closed


def test_preferences_persist(store):
    prefs = UserPreferences(store)
    assert not prefs.has_completed_tutorial

    prefs.complete_tutorial()
    prefs.set("last_language", "EN")

    reloaded = UserPreferences(store)
    assert reloaded.has_completed_tutorial
    assert reloaded.get("last_language") == "EN"

    reloaded.reset()
    assert not UserPreferences(store).has_completed_tutorial


def test_unreadable_preferences_fall_back_to_defaults(store):
    store.set(UserPreferences.STORE_KEY, "not json")

    assert UserPreferences(store).get("has_completed_tutorial") is False
