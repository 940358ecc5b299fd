"""Practice session data models."""

from enum import StrEnum

from pydantic import BaseModel, Field

from word_practice.models.word import Word


class SessionState(StrEnum):
    """Practice session lifecycle states.

    PRESENTING, FEEDBACK and PAUSED are the sub-states of an active session.
    """

    IDLE = "idle"
    PRESENTING = "presenting"
    FEEDBACK = "feedback"
    PAUSED = "paused"
    COMPLETE = "complete"

    @property
    def is_active(self) -> bool:
        return self in (SessionState.PRESENTING, SessionState.FEEDBACK, SessionState.PAUSED)


class FeedbackKind(StrEnum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class SessionWordProgress(BaseModel):
    """Session-scoped progress for one word.

    ``session_correct_count`` is only ever incremented; a miss leaves it
    where it was.
    """

    word: Word
    session_correct_count: int = 0
    attempts: int = 0


class MatchVerdict(BaseModel):
    """Result of evaluating one recognized transcript."""

    transcript: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_match: bool


class PracticeSnapshot(BaseModel):
    """Read-only view of a practice session."""

    state: SessionState
    current_word_id: str | None = None
    current_word: str | None = None
    time_remaining: int = 0
    timer_seconds: int = 0
    mastered_count: int = 0
    total_count: int = 0
    queue_length: int = 0
    feedback: FeedbackKind | None = None

    @property
    def progress_percent(self) -> float:
        """Share of eligible words mastered this session, 0-100."""
        if self.total_count == 0:
            return 0.0
        return self.mastered_count / self.total_count * 100
