"""Import flashcard decks from local files."""
import json
import re
from pathlib import Path

import yaml

from srs_tutor.errors import ValidationError
from srs_tutor.flashcards import create_flashcards
from srs_tutor.models import Flashcard

QA_PATTERN = re.compile(r"^Q:\s*(?P<front>.+?)\s*\nA:\s*(?P<back>.+?)\s*(?=\nQ:|\Z)", re.MULTILINE | re.DOTALL)


def parse_text_deck(text: str) -> list[dict]:
    """Parse `Q:`/`A:` blocks, falling back to `front<TAB>back` lines."""
    cards = [
        {"front": m.group("front"), "back": m.group("back")}
        for m in QA_PATTERN.finditer(text)
    ]
    if cards:
        return cards
    for line in text.splitlines():
        if "\t" in line:
            front, back = line.split("\t", 1)
            cards.append({"front": front, "back": back})
    return cards


def _cards_from_data(data) -> list[dict]:
    if isinstance(data, dict):
        data = data.get("flashcards", [])
    if not isinstance(data, list):
        raise ValidationError("Deck must be a list of {front, back} items")
    cards = []
    for item in data:
        if not isinstance(item, dict):
            raise ValidationError("Deck must be a list of {front, back} items")
        cards.append({"front": item.get("front"), "back": item.get("back")})
    return cards


def read_deck(file_path: str) -> list[dict]:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _cards_from_data(json.loads(path.read_text()))
    elif suffix in (".yaml", ".yml"):
        return _cards_from_data(yaml.safe_load(path.read_text()))
    else:
        # .txt, .md and anything else as plain text
        return parse_text_deck(path.read_text())


def import_file(db_path: str, user_id: str, file_path: str) -> list[Flashcard]:
    """Create manual flashcards from a deck file."""
    cards = read_deck(file_path)
    if not cards:
        raise ValidationError(f"No flashcards found in {Path(file_path).name}")
    return create_flashcards(db_path, user_id, [dict(c, source="manual") for c in cards])
