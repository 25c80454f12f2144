"""Study statistics for the dashboard."""
from datetime import datetime

from srs_tutor.db import as_utc, get_connection, to_db_timestamp, utcnow
from srs_tutor.sm2 import PASSING_RATING


def get_retention_label(score: float) -> str:
    if score >= 90:
        return "EXCELLENT"
    elif score >= 80:
        return "GOOD"
    elif score >= 65:
        return "FAIR"
    return "STRUGGLING"


def get_retention_color(score: float) -> str:
    if score >= 90:
        return "green"
    elif score >= 80:
        return "yellow"
    elif score >= 65:
        return "dark_orange"
    return "red"


def get_study_stats(db_path: str, user_id: str, now: datetime | None = None) -> dict:
    now = as_utc(now or utcnow())
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    conn = get_connection(db_path)
    cards = conn.execute(
        """SELECT COUNT(*) as total,
            SUM(CASE WHEN next_review_date <= ? THEN 1 ELSE 0 END) as due,
            AVG(ease_factor) as avg_ease
        FROM flashcards WHERE user_id = ?""",
        (to_db_timestamp(now), user_id),
    ).fetchone()
    reviews = conn.execute(
        """SELECT COUNT(*) as total,
            SUM(CASE WHEN rating >= ? THEN 1 ELSE 0 END) as passed,
            SUM(CASE WHEN reviewed_at >= ? THEN 1 ELSE 0 END) as today
        FROM review_log WHERE user_id = ?""",
        (PASSING_RATING, to_db_timestamp(start_of_day), user_id),
    ).fetchone()
    conn.close()
    retention = (reviews["passed"] / reviews["total"] * 100) if reviews["total"] else 0.0
    return {
        "total_cards": cards["total"],
        "due_now": cards["due"] or 0,
        "avg_ease_factor": round(cards["avg_ease"], 2) if cards["avg_ease"] else 0.0,
        "reviews_total": reviews["total"],
        "reviews_today": reviews["today"] or 0,
        "retention": round(retention, 1),
    }
