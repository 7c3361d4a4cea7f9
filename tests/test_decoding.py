"""Tests for remote document decoding."""

from datetime import datetime, timezone

from flashdeck.models import decode_card, decode_documents, decode_language


def test_decode_card_canonical_fields():
    result = decode_card({
        "id": "abc",
        "term": "dog",
        "answer": "cão",
        "language": "EN",
        "topic": "Animals",
        "createdAt": "2024-03-01T08:30:00Z",
    })

    assert result.ok
    card = result.value
    assert card.id == "abc"
    assert card.storage_id == "EN_Animals_dog"
    assert card.created_at == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


def test_decode_card_legacy_aliases():
    result = decode_card({
        "palavra": " dog ",
        "resposta": "cão",
        "idioma": "EN",
        "tema": "Animals",
        "dataCriacao": {"seconds": 1700000000, "nanos": 0},
    })

    assert result.ok
    assert result.value.term == "dog"
    assert result.value.created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)


def test_decode_card_normalizes_unicode():
    decomposed = "cafe\u0301"

    result = decode_card({"term": decomposed, "answer": "x", "language": "FR", "topic": "Food"})

    assert result.value.term == "caf\u00e9"


def test_decode_card_rejects_missing_or_blank_fields():
    missing = decode_card({"id": "1", "term": "dog", "language": "EN", "topic": "Animals"})
    blank = decode_card({"id": "2", "term": "dog", "answer": "  ", "language": "EN", "topic": "Animals"})
    wrong_type = decode_card({"id": "3", "term": 42, "answer": "x", "language": "EN", "topic": "Animals"})

    assert not missing.ok and "answer" in missing.error
    assert not blank.ok
    assert not wrong_type.ok and wrong_type.document_id == "3"


def test_decode_card_defaults_created_at():
    before = datetime.now(timezone.utc)

    result = decode_card({"term": "dog", "answer": "cão", "language": "EN", "topic": "Animals"})

    assert result.value.created_at >= before


def test_decode_language_requires_boolean_active():
    assert decode_language({"name": "EN", "active": True}).ok
    assert decode_language({"nome": "PT", "ativo": False}).value.active is False
    assert not decode_language({"name": "EN", "active": "true"}).ok
    assert not decode_language({"name": "EN"}).ok
    assert not decode_language({"active": True}).ok


def test_decode_documents_skips_failures():
    documents = [
        {"term": "dog", "answer": "cão", "language": "EN", "topic": "Animals"},
        {"term": "cat", "language": "EN", "topic": "Animals"},
        "not a document",
        {"term": "bread", "answer": "pão", "language": "EN", "topic": "Food"},
    ]

    cards, failures = decode_documents(documents, decode_card)

    assert [card.term for card in cards] == ["dog", "bread"]
    assert len(failures) == 2
