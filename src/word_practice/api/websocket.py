"""Browser WebSocket handler - central hub for live practice and reading checks."""

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from word_practice.api.routes import get_word_store, is_valid_learner_id
from word_practice.api.schemas import ReadingWordsMessage, VerdictMessage
from word_practice.config import Settings
from word_practice.matching.evaluator import TargetMatch
from word_practice.matching.extraction import normalize_word_list
from word_practice.models.learner import LearnerProfile
from word_practice.models.session import MatchVerdict, PracticeSnapshot
from word_practice.models.word import Word
from word_practice.practice.errors import EmptySessionError
from word_practice.practice.runner import PracticeRunner
from word_practice.practice.scheduler import PracticeScheduler
from word_practice.speech.recognition import (
    QueueTranscriptSource,
    ReadingListener,
    SpeechListener,
    TranscriptEvent,
)
from word_practice.speech.synthesis import BrowserSpeaker
from word_practice.storage.learner_profile import load_profile
from word_practice.storage.word_store import WordProgressStore

logger = structlog.get_logger()


class _BrowserSession:
    """Shared plumbing: the browser socket and the transcript source it feeds."""

    def __init__(self, settings: Settings, browser_ws: WebSocket):
        self.settings = settings
        self.browser_ws = browser_ws
        self.source: QueueTranscriptSource | None = (
            QueueTranscriptSource() if settings.speech_recognition_enabled else None
        )

    async def handle_transcript_message(self, data: dict) -> bool:
        """Feed transcript messages to the source. Returns False for other types."""
        msg_type = data.get("type", "")
        if msg_type == "transcript":
            if self.source is None:
                return True
            try:
                self.source.push(TranscriptEvent.model_validate(data))
            except ValidationError:
                logger.warning("bad_transcript_message")
            return True
        if msg_type == "transcript_end":
            if self.source is not None:
                self.source.end()
            return True
        return False

    async def _on_listener_error(self, reason: str) -> None:
        await self._send_to_browser({"type": "error", "reason": reason})

    async def _on_listener_end(self) -> None:
        await self._send_to_browser({"type": "listening", "active": False})

    async def _send_to_browser(self, data: dict) -> None:
        """Send a message to the browser WebSocket."""
        try:
            await self.browser_ws.send_json(data)
        except Exception:
            logger.warning("browser_send_failed")


class PracticeSessionManager(_BrowserSession):
    """Manages a single practice session with all its collaborators.

    Args:
        settings: Application settings.
        browser_ws: WebSocket connection to the browser.
        store: Word-progress store.
        learner_id: Learner practicing.
        learner_profile: Learner settings; loaded from storage when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        browser_ws: WebSocket,
        store: WordProgressStore,
        learner_id: str = "default",
        learner_profile: LearnerProfile | None = None,
    ):
        super().__init__(settings, browser_ws)
        self.store = store
        self.learner_id = learner_id
        self.profile = learner_profile or load_profile(learner_id)
        self.speaker = BrowserSpeaker(
            self._send_to_browser,
            voice=self.profile.voice_preference,
            rate=settings.speech_rate,
        )
        self.listener = SpeechListener(
            self.source,
            on_verdict=self._on_verdict,
            on_error=self._on_listener_error,
            on_end=self._on_listener_end,
            continuous=True,
            restart_delay=settings.listener_restart_delay,
        )
        self.runner: PracticeRunner | None = None

    async def start(self) -> bool:
        """Start practicing. Returns False when there is nothing to practice."""
        await self._send_to_browser({
            "type": "capabilities",
            "speech_recognition": self.listener.available,
        })

        scheduler = PracticeScheduler(
            self.store.load_eligible_words(self.learner_id),
            mastery_threshold=self.profile.mastery_threshold,
            timer_seconds=self.profile.timer_seconds,
            demote_on_miss=self.profile.demote_on_miss,
            requeue_offset=self.settings.requeue_offset,
            learner_id=self.learner_id,
        )
        self.runner = PracticeRunner(
            scheduler,
            self.speaker,
            store=self.store,
            tick_seconds=self.settings.tick_seconds,
            correct_delay=self.settings.correct_feedback_delay,
            incorrect_delay=self.settings.incorrect_feedback_delay,
        )
        self.runner.on_state_change(self._on_state_change)
        self.runner.on_word_change(self._on_word_change)

        try:
            await self.runner.start()
        except EmptySessionError as e:
            logger.info("practice_nothing_to_do", learner_id=self.learner_id)
            self.runner = None
            await self._send_to_browser({"type": "empty_session", "message": str(e)})
            return False

        await self._ensure_listening()
        return True

    async def stop(self) -> None:
        await self.listener.stop()
        if self.runner is not None:
            await self.runner.stop()
            self.runner = None

    async def handle_message(self, data: dict) -> None:
        """Dispatch one in-session message from the browser."""
        msg_type = data.get("type", "")
        if self.runner is None:
            return
        if await self.handle_transcript_message(data):
            return

        if msg_type == "verdict":
            try:
                msg = VerdictMessage.model_validate(data)
            except ValidationError:
                logger.warning("bad_verdict_message", is_correct=data.get("is_correct"))
                await self._send_to_browser({"type": "error", "reason": "invalid verdict"})
                return
            await self.runner.submit_verdict(msg.is_correct, word_id=msg.word_id)
        elif msg_type == "pause":
            await self.runner.pause()
        elif msg_type == "resume":
            await self.runner.resume()
        elif msg_type == "restart":
            if await self.runner.restart():
                await self._ensure_listening()
        elif msg_type == "listen":
            await self._ensure_listening()
        elif msg_type == "snapshot":
            await self._on_state_change(self.runner.snapshot())
        else:
            logger.warning("unknown_message_type", type=msg_type)

    async def _ensure_listening(self) -> None:
        """Re-arm the listener on the current word if it has gone quiet."""
        if self.runner is None or not self.listener.available or self.listener.listening:
            return
        word = self.runner.scheduler.current_word
        if word is None:
            return
        await self.listener.start(word.text, word.id)
        await self._send_to_browser({"type": "listening", "active": True})

    async def _on_verdict(self, verdict: MatchVerdict) -> None:
        word_id = self.listener.target_id
        await self._send_to_browser({"type": "match", **verdict.model_dump()})
        if verdict.is_match and self.runner is not None:
            await self.runner.submit_verdict(True, word_id=word_id)

    def _on_word_change(self, word: Word) -> None:
        self.listener.update_target(word.text, word.id)

    async def _on_state_change(self, snapshot: PracticeSnapshot) -> None:
        await self._send_to_browser({
            "type": "session_state",
            **snapshot.model_dump(mode="json"),
            "progress_percent": round(snapshot.progress_percent, 1),
        })


class ReadingCheckManager(_BrowserSession):
    """Listens while the learner reads a row of words aloud, in any order.

    Args:
        settings: Application settings.
        browser_ws: WebSocket connection to the browser.
    """

    def __init__(self, settings: Settings, browser_ws: WebSocket):
        super().__init__(settings, browser_ws)
        self.listener = ReadingListener(
            self.source,
            on_matches=self._on_matches,
            on_error=self._on_listener_error,
            on_end=self._on_listener_end,
            continuous=True,
            restart_delay=settings.listener_restart_delay,
        )

    async def start(self, words: list[str]) -> bool:
        """Start listening for ``words``. Returns False when none are usable."""
        await self._send_to_browser({
            "type": "capabilities",
            "speech_recognition": self.listener.available,
        })
        words = normalize_word_list(words)
        if not words:
            await self._send_to_browser({"type": "error", "reason": "no words to read"})
            return False
        await self.listener.start(words)
        await self._send_reading_state()
        return True

    async def stop(self) -> None:
        await self.listener.stop()

    async def handle_message(self, data: dict) -> None:
        if await self.handle_transcript_message(data):
            return

        msg_type = data.get("type", "")
        if msg_type == "update_reading":
            try:
                msg = ReadingWordsMessage.model_validate(data)
            except ValidationError:
                logger.warning("bad_reading_message")
                await self._send_to_browser({"type": "error", "reason": "invalid words"})
                return
            words = normalize_word_list(msg.words)
            if self.listener.listening:
                self.listener.update_targets(words)
            elif self.listener.available:
                await self.listener.start(words)
            else:
                self.listener.update_targets(words)
            await self._send_reading_state()
        elif msg_type == "snapshot":
            await self._send_reading_state()
        else:
            logger.warning("unknown_message_type", type=msg_type)

    async def _on_matches(self, matches: list[TargetMatch]) -> None:
        await self._send_to_browser({
            "type": "word_matches",
            "matches": [m.model_dump() for m in matches],
            "matched_count": len(self.listener.matched_indices),
            "total": len(self.listener.targets),
        })
        if self.listener.complete:
            logger.info("reading_check_complete", total=len(self.listener.targets))
            await self._send_to_browser({"type": "reading_complete"})

    async def _send_reading_state(self) -> None:
        await self._send_to_browser({
            "type": "reading_state",
            "words": self.listener.targets,
            "matched": sorted(self.listener.matched_indices),
            "listening": self.listener.listening,
        })


async def handle_browser_websocket(
    websocket: WebSocket, settings: Settings
) -> None:
    """Handle a browser WebSocket connection."""
    await websocket.accept()
    session_mgr: PracticeSessionManager | ReadingCheckManager | None = None

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type", "")

            if msg_type == "start_session":
                if session_mgr:
                    await session_mgr.stop()
                    session_mgr = None
                learner_id = str(data.get("learner_id", "default"))
                if not is_valid_learner_id(learner_id):
                    await websocket.send_json({"type": "error", "reason": "invalid learner_id"})
                    continue
                session_mgr = PracticeSessionManager(
                    settings,
                    websocket,
                    store=get_word_store(),
                    learner_id=learner_id,
                )
                if not await session_mgr.start():
                    session_mgr = None

            elif msg_type == "start_reading":
                if session_mgr:
                    await session_mgr.stop()
                    session_mgr = None
                try:
                    msg = ReadingWordsMessage.model_validate(data)
                except ValidationError:
                    await websocket.send_json({"type": "error", "reason": "invalid words"})
                    continue
                session_mgr = ReadingCheckManager(settings, websocket)
                if not await session_mgr.start(msg.words):
                    session_mgr = None

            elif msg_type in ("stop_session", "stop_reading"):
                if session_mgr:
                    await session_mgr.stop()
                    session_mgr = None

            elif session_mgr:
                await session_mgr.handle_message(data)

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
    finally:
        if session_mgr:
            try:
                await session_mgr.stop()
            except Exception:
                logger.exception("session_stop_error")
