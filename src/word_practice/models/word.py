"""Vocabulary word model with persistent mastery counters."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class WordStatus(StrEnum):
    """Word lifecycle states."""

    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"

    @property
    def is_eligible(self) -> bool:
        """Whether words in this state are offered in practice sessions."""
        return self is not WordStatus.MASTERED


class Word(BaseModel):
    """A vocabulary word tracked for one learner."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    learner_id: str
    text: str
    status: WordStatus = WordStatus.NEW
    correct_count: int = 0
    incorrect_count: int = 0
    total_occurrences: int = 1
    sessions_seen_count: int = 1
    first_seen: datetime = Field(default_factory=datetime.now)
    last_seen: datetime = Field(default_factory=datetime.now)
    last_tested: datetime | None = None

    def apply_verdict(
        self,
        is_correct: bool,
        mastery_threshold: int,
        demote_on_miss: bool,
        now: datetime | None = None,
    ) -> None:
        """Update cumulative counters and status after one answer.

        Promotion to mastered depends only on the cumulative correct count.
        The only backwards move is mastered -> learning on a miss, and only
        when demotion is enabled for the learner.

        Args:
            is_correct: Whether the answer was accepted.
            mastery_threshold: Cumulative correct answers needed for mastery.
            demote_on_miss: Whether a miss demotes a mastered word.
            now: Timestamp to record as last tested.
        """
        if is_correct:
            self.correct_count += 1
            if self.correct_count >= mastery_threshold:
                self.status = WordStatus.MASTERED
            elif self.status == WordStatus.NEW:
                self.status = WordStatus.LEARNING
        else:
            self.incorrect_count += 1
            if demote_on_miss and self.status == WordStatus.MASTERED:
                self.status = WordStatus.LEARNING
        self.last_tested = now or datetime.now()
