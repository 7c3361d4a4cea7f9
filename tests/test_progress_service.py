"""Tests for the progress ledger."""

import pytest

from conftest import START
from flashdeck.services.progress_service import ProgressLedger
from flashdeck.storage.codec import encode_payload

DECK = "EN_Animals"


def assert_tallies_consistent(progress):
    assert progress.correct_total + progress.incorrect_total == len(progress.answers)


class TestRecordAnswer:

    def test_first_access_creates_empty_record(self, ledger):
        progress = ledger.get_progress(DECK)

        assert progress.deck_id == DECK
        assert progress.answers == {}
        assert progress.accuracy == 0
        assert not progress.completed
        assert progress.last_interaction_at == START

    def test_answers_complete_two_card_deck(self, ledger, clock):
        ledger.record_answer(DECK, "EN_Animals_dog", correct=True)
        ledger.record_answer(DECK, "EN_Animals_cat", correct=False)
        clock.advance(minutes=1)

        assert ledger.check_completion(DECK, total_cards=2)

        progress = ledger.get_progress(DECK)
        assert progress.completed
        assert progress.accuracy == 50.0
        assert progress.completed_at == START.replace(minute=1)

    def test_changing_an_answer_keeps_tallies_consistent(self, ledger):
        ledger.record_answer(DECK, "dog", correct=True)
        ledger.record_answer(DECK, "dog", correct=False)
        progress = ledger.record_answer(DECK, "dog", correct=False)

        assert progress.answers == {"dog": False}
        assert progress.correct_total == 0
        assert progress.incorrect_total == 1
        assert_tallies_consistent(progress)

    def test_interaction_time_updated(self, ledger, clock):
        clock.advance(hours=2)

        progress = ledger.record_answer(DECK, "dog", correct=True)

        assert progress.last_interaction_at == clock()

    def test_returned_records_are_copies(self, ledger):
        progress = ledger.get_progress(DECK)
        progress.answers["dog"] = True

        assert ledger.get_progress(DECK).answers == {}


class TestCompletion:

    def test_incomplete_deck_not_completed(self, ledger):
        ledger.record_answer(DECK, "dog", correct=True)

        assert not ledger.check_completion(DECK, total_cards=2)
        assert ledger.get_progress(DECK).completed_at is None

    def test_completion_is_monotonic(self, ledger, clock):
        ledger.record_answer(DECK, "dog", correct=True)
        ledger.check_completion(DECK, total_cards=1)
        completed_at = ledger.get_progress(DECK).completed_at

        clock.advance(days=1)
        ledger.record_answer(DECK, "dog", correct=False)

        assert ledger.check_completion(DECK, total_cards=5)
        progress = ledger.get_progress(DECK)
        assert progress.completed
        assert progress.completed_at == completed_at

    def test_empty_deck_never_completes(self, ledger):
        assert not ledger.check_completion(DECK, total_cards=0)

    def test_completed_decks(self, ledger):
        for deck_id in ("PT_Animais", "EN_Food"):
            ledger.record_answer(deck_id, "x", correct=True)
            ledger.check_completion(deck_id, total_cards=1)
        ledger.record_answer(DECK, "dog", correct=True)

        assert ledger.completed_decks() == ["EN_Food", "PT_Animais"]


class TestResumeAndReset:

    def test_resume_position(self, ledger):
        ledger.set_resume_position(DECK, 3)

        assert ledger.get_progress(DECK).last_card_index == 3

    def test_negative_resume_position_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.set_resume_position(DECK, -1)

    def test_reset_discards_history(self, ledger, clock):
        ledger.record_answer(DECK, "dog", correct=True)
        ledger.set_resume_position(DECK, 1)
        ledger.check_completion(DECK, total_cards=1)
        clock.advance(hours=1)

        progress = ledger.reset(DECK)

        assert progress.answers == {}
        assert progress.correct_total == progress.incorrect_total == 0
        assert not progress.completed
        assert progress.completed_at is None
        assert progress.last_card_index == 0
        assert progress.last_interaction_at == clock()

    def test_reset_all(self, ledger, store, clock):
        ledger.record_answer(DECK, "dog", correct=True)
        ledger.record_answer("PT_Animais", "cão", correct=True)

        ledger.reset_all()

        assert ledger.all_progress() == {}
        assert ProgressLedger(store, clock=clock).all_progress() == {}


class TestPersistence:

    def test_progress_survives_restart(self, ledger, store, clock):
        ledger.record_answer(DECK, "dog", correct=True)
        ledger.record_answer(DECK, "cat", correct=False)
        ledger.set_resume_position(DECK, 2)
        ledger.check_completion(DECK, total_cards=2)

        reloaded = ProgressLedger(store, clock=clock).get_progress(DECK)

        assert reloaded == ledger.get_progress(DECK)

    def test_drifted_tallies_repaired_on_load(self, store, clock):
        store.set(ProgressLedger.STORE_KEY, encode_payload({
            DECK: {
                "deckId": DECK,
                "answers": {"dog": True, "cat": False},
                "correctTotal": 3,
                "incorrectTotal": 1,
                "completed": False,
                "lastInteractionAt": START.isoformat(),
                "lastCardIndex": 1,
            },
        }))

        progress = ProgressLedger(store, clock=clock).get_progress(DECK)

        assert progress.correct_total == 1
        assert progress.incorrect_total == 1

    def test_unreadable_records_are_skipped(self, store, clock):
        store.set(ProgressLedger.STORE_KEY, encode_payload({
            "broken": {"answers": "nope"},
            DECK: {"deckId": DECK, "answers": {"dog": True}, "correctTotal": 1, "incorrectTotal": 0},
        }))

        ledger = ProgressLedger(store, clock=clock)

        assert list(ledger.all_progress()) == [DECK]

    def test_corrupt_payload_means_no_progress(self, store, clock):
        store.set(ProgressLedger.STORE_KEY, "{garbage")

        assert ProgressLedger(store, clock=clock).all_progress() == {}


def test_coverage_and_time_since_completion(ledger, clock):
    ledger.record_answer(DECK, "dog", correct=True)
    ledger.check_completion(DECK, total_cards=1)
    clock.advance(hours=3)

    progress = ledger.get_progress(DECK)

    assert progress.coverage(4) == 25.0
    assert progress.coverage(0) == 0.0
    assert progress.time_since_completion(clock()).total_seconds() == 3 * 3600


def test_misattributed_tallies_recomputed_on_load(store, clock):
    store.set(ProgressLedger.STORE_KEY, encode_payload({
        DECK: {
            "deckId": DECK,
            "answers": {"dog": True, "cat": False},
            "correctTotal": 2,
            "incorrectTotal": 0,
            "lastInteractionAt": START.isoformat(),
        },
    }))
    ledger = ProgressLedger(store, clock=clock)

    progress = ledger.record_answer(DECK, "cat", correct=True)

    assert progress.correct_total == 2
    assert progress.incorrect_total == 0
    assert_tallies_consistent(progress)
