# tests/test_integration.py
"""End-to-end test of the core workflow."""
from datetime import timedelta

from srs_tutor.dashboard import get_study_stats
from srs_tutor.db import init_db
from srs_tutor.generations import accept_proposals, generate_proposals, Proposal
from srs_tutor.study import get_due_session, review


def test_full_study_workflow(tmp_db, now, make_cards):
    """Generate cards, study them over several days and check the schedule."""
    init_db(tmp_db)

    # Day 0: generate and accept AI proposals, plus some manual cards
    source = "Photosynthesis converts light energy into chemical energy. " * 20
    result = generate_proposals(
        tmp_db, "learner", source,
        lambda text: [Proposal(front=f"Fact {i}?", back=f"Answer {i}") for i in range(3)],
        now=now,
    )
    accept_proposals(tmp_db, "learner", result.generation_id, result.proposals, now=now)
    make_cards(tmp_db, "learner", 22, now)

    session = get_due_session(tmp_db, "learner", now=now)
    assert session.count == 20
    assert session.total_due == 25

    # Drain the batch: first card forgotten, the rest recalled well
    lapsed_id = session.cards[0].id
    for cursor, card in enumerate(session.cards):
        review(tmp_db, "learner", card.id, 1 if cursor == 0 else 4, now=now)

    session = get_due_session(tmp_db, "learner", now=now)
    assert session.total_due == 5
    for card in session.cards:
        review(tmp_db, "learner", card.id, 5, now=now)
    assert get_due_session(tmp_db, "learner", now=now).total_due == 0

    # Day 1: everything comes back (interval 1 after a first review or a lapse)
    day1 = now + timedelta(days=1)
    session = get_due_session(tmp_db, "learner", limit=50, now=day1)
    assert session.total_due == 25
    for card in session.cards:
        expected = 1 if card.id == lapsed_id else 6
        assert review(tmp_db, "learner", card.id, 4, now=day1).interval == expected

    # Only the lapsed card returns before day 7
    assert get_due_session(tmp_db, "learner", now=day1 + timedelta(days=5)).total_due == 1
    assert get_due_session(tmp_db, "learner", limit=50, now=day1 + timedelta(days=6)).total_due == 25

    stats = get_study_stats(tmp_db, "learner", now=day1)
    assert stats["total_cards"] == 25
    assert stats["reviews_total"] == 50
    assert stats["reviews_today"] == 25
