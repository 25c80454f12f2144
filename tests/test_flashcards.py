# tests/test_flashcards.py
from datetime import timedelta

import pytest

from srs_tutor import store
from srs_tutor.db import get_connection, init_db
from srs_tutor.errors import CardNotFoundError, ValidationError
from srs_tutor.flashcards import (
    create_flashcards, delete_flashcard, get_flashcard, insert_flashcards, list_flashcards, update_flashcard,
)
from srs_tutor.study import review


def test_create_flashcards_sets_sm2_defaults(tmp_db, now):
    init_db(tmp_db)
    cards = create_flashcards(
        tmp_db, "u1", [{"front": "What is SM-2?", "back": "A scheduling algorithm", "source": "manual"}], now=now,
    )
    assert len(cards) == 1
    card = cards[0]
    assert card.user_id == "u1"
    assert card.ease_factor == 2.5
    assert card.interval == 0
    assert card.repetition_count == 0
    assert card.next_review_date == now
    assert card.created_at == now
    assert card.last_reviewed_at is None


def test_create_flashcards_batch_keeps_order(tmp_db, make_cards, now):
    init_db(tmp_db)
    cards = make_cards(tmp_db, "u1", 3, now)
    assert [c.front for c in cards] == ["Question 0", "Question 1", "Question 2"]


def test_create_flashcards_strips_text(tmp_db, now):
    init_db(tmp_db)
    card = create_flashcards(tmp_db, "u1", [{"front": "  Q  ", "back": "\nA\n"}], now=now)[0]
    assert card.front == "Q"
    assert card.back == "A"
    assert card.source == "manual"


@pytest.mark.parametrize("item", [
    {"front": "", "back": "A"},
    {"front": "Q", "back": "   "},
    {"front": "Q"},
    {"front": "x" * 501, "back": "A"},
    {"front": "Q", "back": "x" * 1001},
    {"front": "Q", "back": "A", "source": "imported"},
])
def test_create_flashcards_validation(tmp_db, item):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        create_flashcards(tmp_db, "u1", [item])


def test_create_flashcards_batch_limits(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        create_flashcards(tmp_db, "u1", [])
    with pytest.raises(ValidationError):
        create_flashcards(tmp_db, "u1", [{"front": "Q", "back": "A"}] * 101)


def test_invalid_item_rejects_whole_batch(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        create_flashcards(tmp_db, "u1", [{"front": "Q", "back": "A"}, {"front": "", "back": "A"}])
    assert list_flashcards(tmp_db, "u1").total == 0


def test_get_flashcard(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    assert get_flashcard(tmp_db, "u1", card.id) == card


def test_get_flashcard_other_user(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    with pytest.raises(CardNotFoundError):
        get_flashcard(tmp_db, "u2", card.id)


def test_list_flashcards_pagination(tmp_db, make_cards, now):
    init_db(tmp_db)
    make_cards(tmp_db, "u1", 25, now)
    make_cards(tmp_db, "u2", 3, now)
    page = list_flashcards(tmp_db, "u1", page=2, limit=10)
    assert page.total == 25
    assert page.total_pages == 3
    assert len(page.cards) == 10
    last = list_flashcards(tmp_db, "u1", page=3, limit=10)
    assert len(last.cards) == 5
    assert list_flashcards(tmp_db, "u1", page=4, limit=10).cards == []


def test_list_flashcards_sort_and_order(tmp_db, make_cards, now):
    init_db(tmp_db)
    older = make_cards(tmp_db, "u1", 1, now - timedelta(days=1))[0]
    newer = make_cards(tmp_db, "u1", 1, now)[0]
    assert [c.id for c in list_flashcards(tmp_db, "u1").cards] == [newer.id, older.id]
    asc = list_flashcards(tmp_db, "u1", sort="created_at", order="asc")
    assert [c.id for c in asc.cards] == [older.id, newer.id]
    review(tmp_db, "u1", older.id, 5, now=now)
    by_review = list_flashcards(tmp_db, "u1", sort="next_review_date", order="asc")
    assert [c.id for c in by_review.cards] == [newer.id, older.id]


@pytest.mark.parametrize("kwargs", [
    {"page": 0},
    {"limit": 0},
    {"limit": 101},
    {"sort": "front"},
    {"order": "sideways"},
])
def test_list_flashcards_validation(tmp_db, kwargs):
    init_db(tmp_db)
    with pytest.raises(ValidationError):
        list_flashcards(tmp_db, "u1", **kwargs)


def test_update_flashcard_keeps_schedule(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    review(tmp_db, "u1", card.id, 4, now=now)
    later = now + timedelta(hours=2)
    updated = update_flashcard(tmp_db, "u1", card.id, back="New answer", now=later)
    assert updated.front == card.front
    assert updated.back == "New answer"
    assert updated.updated_at == later
    assert updated.repetition_count == 1
    assert updated.interval == 1


def test_update_flashcard_requires_a_field(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    with pytest.raises(ValidationError):
        update_flashcard(tmp_db, "u1", card.id)


def test_update_flashcard_other_user(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    with pytest.raises(CardNotFoundError):
        update_flashcard(tmp_db, "u2", card.id, front="Hijack")
    assert get_flashcard(tmp_db, "u1", card.id).front == card.front


def test_delete_flashcard_removes_reviews(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    review(tmp_db, "u1", card.id, 4, now=now)
    delete_flashcard(tmp_db, "u1", card.id)
    with pytest.raises(CardNotFoundError):
        get_flashcard(tmp_db, "u1", card.id)
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM review_log").fetchone()[0] == 0
    conn.close()


def test_delete_flashcard_missing(tmp_db, make_cards, now):
    init_db(tmp_db)
    card = make_cards(tmp_db, "u1", 1, now)[0]
    with pytest.raises(CardNotFoundError):
        delete_flashcard(tmp_db, "u2", card.id)
    with pytest.raises(CardNotFoundError):
        delete_flashcard(tmp_db, "u1", 999)


def test_insert_flashcards_uses_callers_transaction(tmp_db, now):
    init_db(tmp_db)
    with pytest.raises(RuntimeError):
        with store.transaction(tmp_db) as conn:
            cards = insert_flashcards(conn, "u1", [{"front": "Q", "back": "A"}], now=now)
            assert cards[0].next_review_date == now
            raise RuntimeError("abort")
    assert list_flashcards(tmp_db, "u1").total == 0
