from datetime import datetime, timezone

import pytest

from srs_tutor.flashcards import create_flashcards


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_cards():
    """Create `count` manual cards for a user, all created at `created`."""
    def _make(db_path, user_id, count, created):
        return create_flashcards(
            db_path, user_id,
            [{"front": f"Question {i}", "back": f"Answer {i}", "source": "manual"} for i in range(count)],
            now=created,
        )
    return _make
