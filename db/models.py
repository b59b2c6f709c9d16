"""
Lexibox – SQLAlchemy ORM Models
================================
Fixed schema for vocabulary cards (content + scheduling fields) and the
review log. ``Card`` converts to and from the engine's ``CardState``.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Text,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import declarative_base, relationship

from core.card_state import DEFAULT_EASE, MIN_BOX, CardState
from core.dateutils import parse_timestamp

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Card – a vocabulary flashcard with scheduling metadata
# ---------------------------------------------------------------------------
class Card(Base):
    __tablename__ = "cards"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Content
    word = Column(Text, nullable=False)
    phonetic = Column(String(128), nullable=True)
    part_of_speech = Column(String(16), nullable=True)   # n. / v. / adj. …
    meaning = Column(Text, nullable=False, default="")
    example = Column(Text, nullable=True)

    # Scheduling fields
    box = Column(Integer, nullable=False, default=MIN_BOX)
    ease = Column(Float, nullable=False, default=DEFAULT_EASE)
    reps = Column(Integer, nullable=False, default=0)
    interval = Column(Integer, nullable=False, default=0)        # days
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    next_review_at = Column(DateTime(timezone=True), default=_utcnow)

    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    review_logs = relationship(
        "ReviewLog", back_populates="card", cascade="all, delete-orphan", passive_deletes=True
    )

    def to_state(self) -> CardState:
        """Snapshot the scheduling columns as an immutable ``CardState``."""
        return CardState(
            card_id=self.id,
            box=self.box if self.box is not None else MIN_BOX,
            ease=self.ease if self.ease is not None else DEFAULT_EASE,
            reps=self.reps or 0,
            interval=self.interval or 0,
            last_reviewed_at=parse_timestamp(self.last_reviewed_at),
            next_review_at=parse_timestamp(self.next_review_at),
        )

    def apply_state(self, state: CardState) -> None:
        """Copy the scheduling fields of *state* onto this row."""
        if state.card_id != self.id:
            raise ValueError(f"state for card {state.card_id!r} applied to card {self.id!r}")
        self.box = state.box
        self.ease = state.ease
        self.reps = state.reps
        self.interval = state.interval
        self.last_reviewed_at = state.last_reviewed_at
        self.next_review_at = state.next_review_at

    def __repr__(self) -> str:
        return f"<Card id={self.id} word={self.word!r} next_review_at={self.next_review_at}>"


# ---------------------------------------------------------------------------
# ReviewLog – audit trail for every review action
# ---------------------------------------------------------------------------
class ReviewLog(Base):
    __tablename__ = "review_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_id = Column(String(36), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False)
    reviewed_at = Column(DateTime(timezone=True), default=_utcnow)
    quality = Column(Integer, nullable=False)  # 1-3
    algorithm = Column(String(16), nullable=False)
    box_after = Column(Integer, nullable=True)
    ease_after = Column(Float, nullable=True)
    interval_after = Column(Integer, nullable=True)

    # Relationship
    card = relationship("Card", back_populates="review_logs")

    def __repr__(self) -> str:
        return f"<ReviewLog card_id={self.card_id} q={self.quality} at={self.reviewed_at}>"
