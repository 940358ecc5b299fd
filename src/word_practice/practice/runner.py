"""Async driver that runs a practice scheduler against real time."""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from word_practice.models.session import PracticeSnapshot, SessionState
from word_practice.models.word import Word
from word_practice.practice.scheduler import PracticeScheduler
from word_practice.speech.synthesis import Speaker
from word_practice.storage.word_store import WordProgressStore

logger = structlog.get_logger()

SnapshotHandler = Callable[[PracticeSnapshot], Coroutine[Any, Any, None]]


class PracticeRunner:
    """Drives one scheduler: countdown ticks, feedback delays, speech, persistence.

    One logical tick is ``tick_seconds`` of wall-clock time. After each
    verdict the feedback is held for a short delay (longer after a miss)
    before the queue moves on. Each word that becomes current is handed to
    the speaker, and each verdict's word changes are written to the store.

    Once ``stop`` has been called the runner is finished: every task it
    spawned is cancelled and awaited, and nothing in flight may touch the
    scheduler again.

    Args:
        scheduler: Scheduler that has not been started yet.
        speaker: Text-to-speech collaborator.
        store: Word-progress store for write-back, or None to skip persistence.
        tick_seconds: Wall-clock length of one countdown unit.
        correct_delay: Seconds feedback is shown after a correct answer.
        incorrect_delay: Seconds feedback is shown after a miss.
    """

    def __init__(
        self,
        scheduler: PracticeScheduler,
        speaker: Speaker,
        store: WordProgressStore | None = None,
        tick_seconds: float = 1.0,
        correct_delay: float = 0.8,
        incorrect_delay: float = 1.5,
    ):
        self.scheduler = scheduler
        self.speaker = speaker
        self.store = store
        self.tick_seconds = tick_seconds
        self.correct_delay = correct_delay
        self.incorrect_delay = incorrect_delay
        self._countdown_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._stopped = False
        self._state_callbacks: list[SnapshotHandler] = []
        self._word_change_callbacks: list[Callable[[Word], None]] = []

        scheduler.on_word_change(self._on_word_change)
        scheduler.on_word_updated(self._on_word_updated)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def on_state_change(self, callback: SnapshotHandler) -> None:
        """Register an async callback receiving a snapshot after every transition."""
        self._state_callbacks.append(callback)

    def on_word_change(self, callback: Callable[[Word], None]) -> None:
        """Register a callback for each newly presented word."""
        self._word_change_callbacks.append(callback)

    def snapshot(self) -> PracticeSnapshot:
        return self.scheduler.snapshot()

    async def start(self) -> None:
        """Start the session.

        Raises:
            EmptySessionError: The scheduler has no eligible words.
        """
        self.scheduler.start()
        await self._notify()

    async def submit_verdict(self, is_correct: bool, word_id: str | None = None) -> bool:
        """Forward an answer; stale answers are dropped by the scheduler."""
        if self._stopped:
            return False
        accepted = self.scheduler.submit_verdict(is_correct, word_id=word_id)
        if accepted:
            await self._after_verdict(is_correct)
        return accepted

    async def pause(self) -> bool:
        if self._stopped or not self.scheduler.pause():
            return False
        self._cancel_countdown()
        await self._notify()
        return True

    async def resume(self) -> bool:
        if self._stopped or not self.scheduler.resume():
            return False
        self._restart_countdown()
        await self._notify()
        return True

    async def restart(self) -> bool:
        if self._stopped or not self.scheduler.restart():
            return False
        await self._notify()
        return True

    async def stop(self) -> None:
        """Cancel every pending timer and speech request."""
        self._stopped = True
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._countdown_task = None
        await self.speaker.cancel()
        logger.info("practice_runner_stopped", state=self.scheduler.state.value)

    async def _after_verdict(self, is_correct: bool) -> None:
        self._cancel_countdown()
        await self._notify()
        if self._stopped:
            return
        delay = self.correct_delay if is_correct else self.incorrect_delay
        self._spawn(self._advance_after(delay))

    async def _advance_after(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            if self._stopped:
                return
            if self.scheduler.advance():
                await self._notify()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("advance_error")

    async def _countdown_loop(self) -> None:
        try:
            while not self._stopped and self.scheduler.state == SessionState.PRESENTING:
                await asyncio.sleep(self.tick_seconds)
                if self._stopped:
                    return
                if self.scheduler.tick():
                    await self._after_verdict(False)
                    return
                await self._notify()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("countdown_loop_error")

    def _restart_countdown(self) -> None:
        self._cancel_countdown()
        if self._stopped:
            return
        self._countdown_task = self._spawn(self._countdown_loop())

    def _cancel_countdown(self) -> None:
        task = self._countdown_task
        self._countdown_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _on_word_change(self, word: Word) -> None:
        if self._stopped:
            return
        self._spawn(self.speaker.speak(word.text))
        self._restart_countdown()
        for callback in self._word_change_callbacks:
            try:
                callback(word)
            except Exception:
                logger.exception("word_change_callback_error", word=word.text)

    def _on_word_updated(self, word: Word) -> None:
        if self.store is None:
            return
        try:
            self.store.save_word(word)
        except Exception:
            logger.exception("word_save_failed", word_id=word.id)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _notify(self) -> None:
        snapshot = self.scheduler.snapshot()
        for callback in self._state_callbacks:
            try:
                await callback(snapshot)
            except Exception:
                logger.exception("state_callback_error", state=snapshot.state.value)
