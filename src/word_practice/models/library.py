"""Books, preset word lists, reading-readiness and reading-session records."""

import math
import uuid
from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from word_practice.models.word import Word, WordStatus

READY_SHARE = 0.9
ALMOST_READY_PERCENT = 70


class PresetCategory(StrEnum):
    ALPHABET = "alphabet"
    CVC = "cvc"
    SIGHT_WORDS = "sight_words"


class ReadinessBand(StrEnum):
    """How close a learner is to reading a book on their own."""

    READY = "ready"
    ALMOST = "almost"
    IN_PROGRESS = "in_progress"


class PresetWordList(BaseModel):
    """A built-in word list a learner can be seeded with."""

    id: str
    name: str
    category: PresetCategory
    description: str
    words: list[str]
    sort_order: int


class Book(BaseModel):
    """A book in the shared library, reduced to the words it contains."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    author: str | None = None
    words: list[str]
    created_at: datetime = Field(default_factory=datetime.now)


class BookProgress(BaseModel):
    """How many of a book's words one learner has mastered."""

    id: str
    learner_id: str
    book_id: str
    mastered_word_count: int
    total_word_count: int
    readiness_percent: int
    is_ready: bool
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def band(self) -> ReadinessBand:
        if self.is_ready:
            return ReadinessBand.READY
        if self.readiness_percent >= ALMOST_READY_PERCENT:
            return ReadinessBand.ALMOST
        return ReadinessBand.IN_PROGRESS

    @classmethod
    def compute(
        cls, learner_id: str, book: Book, words: Iterable[Word]
    ) -> "BookProgress":
        """Measure a book against a learner's words.

        Only mastered words count. The percentage is rounded half up; the
        book is ready once at least 90% of its words are mastered. A book
        with no words is never ready.

        Args:
            learner_id: Learner whose words are given.
            book: Book to measure.
            words: All of the learner's words.

        Returns:
            Progress record keyed by learner and book.
        """
        mastered = {w.text.lower() for w in words if w.status == WordStatus.MASTERED}
        total = len(book.words)
        count = sum(1 for w in book.words if w.lower() in mastered)
        percent = math.floor(count * 100 / total + 0.5) if total else 0
        return cls(
            id=f"{learner_id}:{book.id}",
            learner_id=learner_id,
            book_id=book.id,
            mastered_word_count=count,
            total_word_count=total,
            readiness_percent=percent,
            is_ready=total > 0 and count >= total * READY_SHARE,
        )


class ReadingSession(BaseModel):
    """A passage read with the learner, kept with the words it introduced."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    learner_id: str
    book_title: str = "Reading Session"
    created_at: datetime = Field(default_factory=datetime.now)
    extracted_text: str
    new_words_count: int = 0
    total_words_count: int = 0
