"""Speech-recognition listeners turning transcripts into match results."""

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field

from word_practice.matching.evaluator import TargetMatch, evaluate, match_targets
from word_practice.models.session import MatchVerdict
from word_practice.practice.errors import CollaboratorUnavailable

logger = structlog.get_logger()

VerdictHandler = Callable[[MatchVerdict], Coroutine[Any, Any, None]]
MatchesHandler = Callable[[list[TargetMatch]], Coroutine[Any, Any, None]]
ErrorHandler = Callable[[str], Coroutine[Any, Any, None]]
EndHandler = Callable[[], Coroutine[Any, Any, None]]


class TranscriptEvent(BaseModel):
    """One (possibly interim) recognition result."""

    transcript: str
    confidence: float = Field(default=0.0)
    is_final: bool = False


class TranscriptSource(Protocol):
    """A recognizer that yields transcripts until it ends or is stopped."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    def events(self) -> AsyncIterator[TranscriptEvent]: ...


class QueueTranscriptSource:
    """Transcript source fed from outside, e.g. by a browser recognizer.

    ``end`` closes the current recognition round the way a recognizer ends
    after a pause in speech; the source stays running so a listener can
    open the next round. ``stop`` switches it off and drops anything queued.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue[TranscriptEvent | None] = asyncio.Queue(maxsize=maxsize)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if not self._running:
            # Leftovers belong to a listener that was stopped
            self._drain()
        self._running = True

    async def stop(self) -> None:
        self._running = False
        self._drain()
        # Wake a reader blocked on the queue
        self.end()

    def push(self, event: TranscriptEvent) -> None:
        """Queue a transcript; dropped when the source is not running."""
        if not self._running:
            logger.debug("transcript_dropped_not_running")
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("transcript_queue_full", transcript=event.transcript[:40])

    def end(self) -> None:
        """Close the current recognition round."""
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            logger.warning("transcript_queue_full_on_end")

    async def events(self) -> AsyncIterator[TranscriptEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()


class _SupervisedListener:
    """Background task consuming one transcript source.

    After ``stop`` no callback fires again, even if the recognizer still
    delivers results. In continuous mode the recognizer is restarted every
    time it ends on its own, until ``stop`` is called; ``on_end`` then only
    fires if a restart fails. Whenever the listener gives up, the source is
    stopped so nothing piles up behind it.
    """

    def __init__(
        self,
        source: TranscriptSource | None,
        on_error: ErrorHandler,
        on_end: EndHandler,
        continuous: bool = False,
        restart_delay: float = 0.25,
    ):
        self._source = source
        self._on_error = on_error
        self._on_end = on_end
        self.continuous = continuous
        self.restart_delay = restart_delay
        self._task: asyncio.Task | None = None
        self._stopped = True
        self.restarts = 0

    @property
    def available(self) -> bool:
        return self._source is not None

    @property
    def listening(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self) -> None:
        """Stop listening. No callbacks fire after this returns."""
        self._stopped = True
        await self._release_source()
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
            logger.info("listener_stopped", listener=type(self).__name__)

    async def _begin(self, **log_context) -> None:
        if self.listening:
            await self.stop()
        self.restarts = 0

        if self._source is None:
            logger.warning("speech_recognition_unavailable")
            await self._on_error(str(CollaboratorUnavailable()))
            await self._on_end()
            return

        try:
            await self._source.start()
        except Exception as e:
            logger.exception("listener_start_failed", **log_context)
            await self._on_error(str(e) or "Failed to start recognition")
            await self._on_end()
            return

        self._stopped = False
        self._task = asyncio.create_task(self._run(self._source))
        logger.info("listener_started", continuous=self.continuous, **log_context)

    async def _run(self, source: TranscriptSource) -> None:
        try:
            while True:
                async for event in source.events():
                    if self._stopped:
                        return
                    await self._handle(event)

                if self._stopped:
                    return
                if not self.continuous:
                    break

                self.restarts += 1
                logger.debug("listener_restarting", attempt=self.restarts)
                if self.restart_delay > 0:
                    await asyncio.sleep(self.restart_delay)
                if self._stopped:
                    return
                await source.start()

            await self._release_source()
            if not self._stopped:
                await self._on_end()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.exception("listener_error")
            await self._release_source()
            if not self._stopped:
                await self._on_error(str(e) or "Recognition error")
                await self._on_end()

    async def _release_source(self) -> None:
        if self._source is None:
            return
        try:
            await self._source.stop()
        except Exception:
            logger.warning("transcript_source_stop_failed")

    async def _handle(self, event: TranscriptEvent) -> None:
        raise NotImplementedError


class SpeechListener(_SupervisedListener):
    """Listens for one target word at a time.

    Every transcript is checked against the current target with the match
    evaluator. Matches are reported at once; a final result that does not
    match is reported as a miss.

    Args:
        source: Recognizer to listen to, or None when the host has none.
        on_verdict: Async callback(MatchVerdict).
        on_error: Async callback(reason).
        on_end: Async callback() fired once when listening finishes.
        continuous: Restart the recognizer when it ends.
        restart_delay: Seconds to wait before each restart.
    """

    def __init__(
        self,
        source: TranscriptSource | None,
        on_verdict: VerdictHandler,
        on_error: ErrorHandler,
        on_end: EndHandler,
        continuous: bool = False,
        restart_delay: float = 0.25,
    ):
        super().__init__(source, on_error, on_end, continuous, restart_delay)
        self._on_verdict = on_verdict
        self._target: str = ""
        self._target_id: str | None = None

    @property
    def target(self) -> str:
        return self._target

    @property
    def target_id(self) -> str | None:
        return self._target_id

    def update_target(self, word: str, word_id: str | None = None) -> None:
        """Switch the word transcripts are matched against."""
        self._target = word
        self._target_id = word_id

    async def start(self, word: str, word_id: str | None = None) -> None:
        """Start listening for ``word``; restarts a listener already running."""
        if self.listening:
            await self.stop()
        self.update_target(word, word_id)
        await self._begin(target=word)

    async def _handle(self, event: TranscriptEvent) -> None:
        is_match = evaluate(event.transcript, self._target)
        if not is_match and not event.is_final:
            return
        verdict = MatchVerdict(
            transcript=event.transcript,
            confidence=min(max(event.confidence, 0.0), 1.0),
            is_match=is_match,
        )
        logger.debug("transcript_evaluated", target=self._target, match=is_match)
        await self._on_verdict(verdict)


class ReadingListener(_SupervisedListener):
    """Listens for a row of words read in any order.

    Each transcript, interim or final, is split into tokens and checked
    against every target not matched yet. Newly matched targets are
    reported together and never reported again until the targets change.

    Args:
        source: Recognizer to listen to, or None when the host has none.
        on_matches: Async callback(list[TargetMatch]).
        on_error: Async callback(reason).
        on_end: Async callback() fired once when listening finishes.
        continuous: Restart the recognizer when it ends.
        restart_delay: Seconds to wait before each restart.
    """

    def __init__(
        self,
        source: TranscriptSource | None,
        on_matches: MatchesHandler,
        on_error: ErrorHandler,
        on_end: EndHandler,
        continuous: bool = True,
        restart_delay: float = 0.25,
    ):
        super().__init__(source, on_error, on_end, continuous, restart_delay)
        self._on_matches = on_matches
        self._targets: list[str] = []
        self._matched: set[int] = set()

    @property
    def targets(self) -> list[str]:
        return list(self._targets)

    @property
    def matched_indices(self) -> frozenset[int]:
        return frozenset(self._matched)

    @property
    def complete(self) -> bool:
        return bool(self._targets) and len(self._matched) >= len(self._targets)

    def update_targets(self, words: list[str]) -> None:
        """Replace the words on display and forget earlier matches."""
        self._targets = list(words)
        self._matched = set()

    async def start(self, words: list[str]) -> None:
        if self.listening:
            await self.stop()
        self.update_targets(words)
        await self._begin(targets=len(words))

    async def _handle(self, event: TranscriptEvent) -> None:
        matches = match_targets(
            event.transcript,
            self._targets,
            already_matched=self._matched,
            confidence=min(max(event.confidence, 0.0), 1.0),
        )
        if not matches:
            return
        self._matched.update(m.index for m in matches)
        logger.debug("reading_words_matched", count=len(matches), total=len(self._targets))
        await self._on_matches(matches)
