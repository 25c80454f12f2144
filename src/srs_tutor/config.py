"""Runtime settings, overridable through environment variables."""
import os
from datetime import timedelta
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "SRS_TUTOR_DB_PATH", str(Path.home() / ".srs_tutor" / "tutor.db")
)
DEFAULT_USER_ID = os.environ.get("SRS_TUTOR_USER", "local")
LOG_LEVEL = os.environ.get("SRS_TUTOR_LOG_LEVEL", "WARNING").upper()

# Study sessions
SESSION_DEFAULT_LIMIT = 20
SESSION_MAX_LIMIT = 50

# Collection listing
PAGE_DEFAULT_LIMIT = 20
PAGE_MAX_LIMIT = 100
MAX_BATCH_SIZE = 100
FRONT_MAX_LENGTH = 500
BACK_MAX_LENGTH = 1000

# AI generation
SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10000
GENERATIONS_RATE_LIMIT = 10
GENERATIONS_RATE_WINDOW = timedelta(hours=1)

# Scheduling
MAX_INTERVAL_DAYS = 36500
