"""Practice session scheduler: queue ordering, mastery and completion."""

import random
from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from word_practice.models.session import (
    FeedbackKind,
    PracticeSnapshot,
    SessionState,
    SessionWordProgress,
)
from word_practice.models.word import Word
from word_practice.practice.errors import EmptySessionError

logger = structlog.get_logger()

WordCallback = Callable[[Word], None]

# A requeued word comes back after at most this many other words.
DEFAULT_REQUEUE_OFFSET = 3


class PracticeScheduler:
    """Sequences words for one practice session.

    The scheduler is a synchronous state machine driven by three inputs:
    verdicts, countdown ticks and ``advance`` (end of the feedback display).
    Anything that arrives outside the state that expects it is dropped, so
    late callbacks from collaborators never mutate the session.

    A word leaves the queue once its session correct count reaches the
    mastery threshold. Misses do not reset that count; they only push the
    word back a few places in the queue and update the word's cumulative
    counters.

    Args:
        words: Eligible words (new or learning). Mastered words are skipped.
        mastery_threshold: Correct answers needed, both per session and
            cumulatively.
        timer_seconds: Countdown length per presentation, in ticks.
        demote_on_miss: Whether a miss demotes a mastered word to learning.
        rng: Randomness source for queue shuffles. Seed it for repeatable order.
        requeue_offset: Maximum queue position for a requeued word.
        clock: Callable returning the current time for last-tested stamps.
        learner_id: Learner the words belong to, used in logs and errors.
    """

    def __init__(
        self,
        words: Iterable[Word],
        mastery_threshold: int = 4,
        timer_seconds: int = 7,
        demote_on_miss: bool = True,
        rng: random.Random | None = None,
        requeue_offset: int = DEFAULT_REQUEUE_OFFSET,
        clock: Callable[[], datetime] = datetime.now,
        learner_id: str | None = None,
    ):
        if mastery_threshold < 1:
            raise ValueError("mastery_threshold must be positive")
        if timer_seconds < 1:
            raise ValueError("timer_seconds must be positive")

        unique: dict[str, Word] = {}
        for word in words:
            if word.status.is_eligible:
                unique.setdefault(word.id, word)
        self._words = unique

        self.mastery_threshold = mastery_threshold
        self.timer_seconds = timer_seconds
        self.demote_on_miss = demote_on_miss
        self.requeue_offset = requeue_offset
        self.learner_id = learner_id
        self._rng = rng or random.Random()
        self._clock = clock

        self._state = SessionState.IDLE
        self._state_before_pause = SessionState.PRESENTING
        self._progress: dict[str, SessionWordProgress] = {}
        self._queue: list[str] = []
        self._mastered_ids: list[str] = []
        self._time_remaining = timer_seconds
        self._feedback: FeedbackKind | None = None

        self._word_change_callbacks: list[WordCallback] = []
        self._word_updated_callbacks: list[WordCallback] = []

    # -- read-only view -------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_word_id(self) -> str | None:
        if not self._state.is_active or not self._queue:
            return None
        return self._queue[0]

    @property
    def current_word(self) -> Word | None:
        word_id = self.current_word_id
        return self._words[word_id] if word_id else None

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def queue(self) -> tuple[str, ...]:
        return tuple(self._queue)

    @property
    def mastered_ids(self) -> tuple[str, ...]:
        return tuple(self._mastered_ids)

    @property
    def total_count(self) -> int:
        return len(self._words)

    @property
    def words(self) -> list[Word]:
        return list(self._words.values())

    def progress(self, word_id: str) -> SessionWordProgress:
        """Session progress for one word; KeyError if the word is not in the session."""
        return self._progress[word_id]

    def snapshot(self) -> PracticeSnapshot:
        """Return a read-only view of the session."""
        word = self.current_word
        return PracticeSnapshot(
            state=self._state,
            current_word_id=word.id if word else None,
            current_word=word.text if word else None,
            time_remaining=self._time_remaining,
            timer_seconds=self.timer_seconds,
            mastered_count=len(self._mastered_ids),
            total_count=self.total_count,
            queue_length=len(self._queue),
            feedback=self._feedback,
        )

    # -- callbacks ------------------------------------------------------

    def on_word_change(self, callback: WordCallback) -> None:
        """Register a callback fired whenever a word becomes current.

        Args:
            callback: Callable(word). Typically speaks the word aloud.
        """
        self._word_change_callbacks.append(callback)

    def on_word_updated(self, callback: WordCallback) -> None:
        """Register a callback fired after a verdict changes a word's counters.

        Args:
            callback: Callable(word). Typically writes the word back to the store.
        """
        self._word_updated_callbacks.append(callback)

    # -- transitions ----------------------------------------------------

    def start(self) -> None:
        """Start the session with every eligible word in random order.

        Raises:
            EmptySessionError: There are no eligible words.
        """
        if not self._words:
            logger.info("practice_session_empty", learner_id=self.learner_id)
            raise EmptySessionError(self.learner_id)
        self._reset_session()
        logger.info(
            "practice_session_started",
            learner_id=self.learner_id,
            total=self.total_count,
            mastery_threshold=self.mastery_threshold,
        )
        self._present()

    def submit_verdict(self, is_correct: bool, word_id: str | None = None) -> bool:
        """Record an answer for the current word.

        Args:
            is_correct: Whether the answer was accepted.
            word_id: Word the verdict was produced for. When given, the
                verdict is dropped unless it is still the current word.

        Returns:
            True if the verdict was applied, False if it was stale.
        """
        if self._state != SessionState.PRESENTING:
            logger.debug("stale_verdict_dropped", state=self._state.value, word_id=word_id)
            return False
        current_id = self._queue[0]
        if word_id is not None and word_id != current_id:
            logger.debug("stale_verdict_dropped", current=current_id, word_id=word_id)
            return False

        progress = self._progress[current_id]
        progress.attempts += 1
        if is_correct:
            progress.session_correct_count += 1

        word = progress.word
        word.apply_verdict(
            is_correct,
            mastery_threshold=self.mastery_threshold,
            demote_on_miss=self.demote_on_miss,
            now=self._clock(),
        )
        self._feedback = FeedbackKind.CORRECT if is_correct else FeedbackKind.INCORRECT
        self._state = SessionState.FEEDBACK

        logger.info(
            "verdict_recorded",
            word=word.text,
            correct=is_correct,
            session_correct=progress.session_correct_count,
            attempts=progress.attempts,
            status=word.status.value,
        )
        self._fire(self._word_updated_callbacks, word)
        return True

    def tick(self) -> bool:
        """Advance the countdown by one unit.

        Returns:
            True if the countdown ran out and the word was marked incorrect.
        """
        if self._state != SessionState.PRESENTING:
            return False
        self._time_remaining = max(0, self._time_remaining - 1)
        if self._time_remaining > 0:
            return False
        logger.info("countdown_expired", word_id=self._queue[0])
        return self.submit_verdict(False)

    def advance(self) -> bool:
        """Finish the feedback step and move the queue on.

        Returns:
            True if the queue moved, False if no feedback was showing.
        """
        if self._state != SessionState.FEEDBACK:
            return False

        word_id = self._queue.pop(0)
        progress = self._progress[word_id]
        self._feedback = None
        self._time_remaining = self.timer_seconds

        if progress.session_correct_count >= self.mastery_threshold:
            self._mastered_ids.append(word_id)
            if len(self._mastered_ids) >= self.total_count:
                self._state = SessionState.COMPLETE
                logger.info(
                    "practice_session_complete",
                    learner_id=self.learner_id,
                    mastered=len(self._mastered_ids),
                    total=self.total_count,
                )
                return True
            if not self._queue:
                self._queue = self._shuffled(
                    i for i in self._words if i not in self._mastered_ids
                )
            else:
                self._queue = [i for i in self._queue if i != word_id]
        else:
            position = min(len(self._queue), self.requeue_offset)
            self._queue.insert(position, word_id)

        self._present()
        return True

    def pause(self) -> bool:
        """Freeze the countdown. Only a presenting session can pause."""
        if self._state != SessionState.PRESENTING:
            return False
        self._state = SessionState.PAUSED
        logger.info("practice_session_paused", time_remaining=self._time_remaining)
        return True

    def resume(self) -> bool:
        """Return to presenting with the time that was left."""
        if self._state != SessionState.PAUSED:
            return False
        self._state = SessionState.PRESENTING
        logger.info("practice_session_resumed", time_remaining=self._time_remaining)
        return True

    def restart(self) -> bool:
        """Run a completed session again over the same words.

        Cumulative word counters and statuses are left as they are.
        """
        if self._state != SessionState.COMPLETE:
            return False
        self._reset_session()
        logger.info("practice_session_restarted", learner_id=self.learner_id)
        self._present()
        return True

    # -- internals ------------------------------------------------------

    def _reset_session(self) -> None:
        self._progress = {
            word_id: SessionWordProgress(word=word)
            for word_id, word in self._words.items()
        }
        self._queue = self._shuffled(self._words)
        self._mastered_ids = []
        self._feedback = None
        self._time_remaining = self.timer_seconds

    def _present(self) -> None:
        self._state = SessionState.PRESENTING
        self._time_remaining = self.timer_seconds
        self._fire(self._word_change_callbacks, self._words[self._queue[0]])

    def _shuffled(self, word_ids: Iterable[str]) -> list[str]:
        ids = list(word_ids)
        self._rng.shuffle(ids)
        return ids

    def _fire(self, callbacks: list[WordCallback], word: Word) -> None:
        for callback in callbacks:
            try:
                callback(word)
            except Exception:
                logger.exception("scheduler_callback_error", word=word.text)


def start_session(
    eligible_words: Iterable[Word],
    mastery_threshold: int = 4,
    timer_seconds: int = 7,
    demote_on_miss: bool = True,
    rng: random.Random | None = None,
    learner_id: str | None = None,
) -> PracticeScheduler:
    """Create and start a practice session.

    Raises:
        EmptySessionError: There are no eligible words.
    """
    scheduler = PracticeScheduler(
        eligible_words,
        mastery_threshold=mastery_threshold,
        timer_seconds=timer_seconds,
        demote_on_miss=demote_on_miss,
        rng=rng,
        learner_id=learner_id,
    )
    scheduler.start()
    return scheduler
