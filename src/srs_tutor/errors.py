"""Exception hierarchy shared by the service modules."""
from datetime import datetime


class TutorError(Exception):
    """Base class for errors the CLI reports to the user."""


class ValidationError(TutorError, ValueError):
    """Input rejected before any state was touched."""


class NotFoundError(TutorError, LookupError):
    pass


class CardNotFoundError(NotFoundError):
    def __init__(self, card_id: int):
        super().__init__(f"Flashcard not found: {card_id}")
        self.card_id = card_id


class GenerationNotFoundError(NotFoundError):
    def __init__(self, generation_id: int):
        super().__init__(f"Generation session not found: {generation_id}")
        self.generation_id = generation_id


class RateLimitExceeded(TutorError):
    def __init__(self, key: str, reset_at: datetime):
        super().__init__(f"Rate limit exceeded, try again after {reset_at:%H:%M} UTC")
        self.key = key
        self.reset_at = reset_at
