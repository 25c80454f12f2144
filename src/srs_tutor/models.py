"""Data classes for the flashcard and scheduling domain model."""
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


@dataclass
class CardSchedulingState:
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetition_count: int = 0
    next_review_date: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None
    card_id: Optional[int] = None


@dataclass
class ReviewEvent:
    card_id: int
    rating: int


@dataclass
class SchedulingResult:
    """State written back to the store after one review."""

    ease_factor: float
    interval: int
    repetition_count: int
    next_review_date: datetime
    last_reviewed_at: datetime
    card_id: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["next_review_date"] = self.next_review_date.isoformat()
        data["last_reviewed_at"] = self.last_reviewed_at.isoformat()
        return data


@dataclass
class Flashcard:
    id: int
    user_id: str
    front: str
    back: str
    source: str = "manual"
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetition_count: int = 0
    next_review_date: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def scheduling_state(self) -> CardSchedulingState:
        return CardSchedulingState(
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetition_count=self.repetition_count,
            next_review_date=self.next_review_date,
            last_reviewed_at=self.last_reviewed_at,
            card_id=self.id,
        )


@dataclass
class DueSession:
    cards: list[Flashcard] = field(default_factory=list)
    total_due: int = 0

    @property
    def count(self) -> int:
        return len(self.cards)


@dataclass
class FlashcardPage:
    cards: list[Flashcard]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)


@dataclass
class GenerationSession:
    id: int
    user_id: str
    source_text: str
    generated_count: int = 0
    accepted_count: int = 0
    created_at: Optional[datetime] = None


@dataclass
class GenerationSummary:
    total_generated: int = 0
    total_accepted: int = 0

    @property
    def acceptance_rate(self) -> float:
        """Accepted share of generated proposals, in percent."""
        if not self.total_generated:
            return 0.0
        # two decimals, halves rounded up
        return math.floor(self.total_accepted / self.total_generated * 10000 + 0.5) / 100


@dataclass
class GenerationSessionPage:
    sessions: list[GenerationSession]
    page: int
    limit: int
    total: int
    summary: GenerationSummary = field(default_factory=GenerationSummary)

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)
