"""Text-to-speech collaborators.

The engine only asks for a word to be spoken once per presentation and
never waits on the result. Synthesis itself happens on the client.
"""

from collections.abc import Callable, Coroutine
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

SendFn = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


class Speaker(Protocol):
    async def speak(self, text: str) -> None: ...

    async def cancel(self) -> None: ...


class NullSpeaker:
    """Speaker for hosts without audio output; records what would be said."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        logger.debug("speak_skipped", text=text)

    async def cancel(self) -> None:
        return None


class BrowserSpeaker:
    """Asks the connected browser to speak a word with its own TTS engine.

    Args:
        send_fn: Async callable delivering a JSON message to the browser.
        voice: Learner's voice preference.
        rate: Speaking rate passed through to the browser.
    """

    def __init__(self, send_fn: SendFn, voice: str = "shimmer", rate: float = 0.9):
        self._send = send_fn
        self.voice = voice
        self.rate = rate

    async def speak(self, text: str) -> None:
        try:
            await self._send({
                "type": "speak",
                "text": text,
                "voice": self.voice,
                "rate": self.rate,
            })
        except Exception:
            logger.warning("speak_send_failed", text=text)

    async def cancel(self) -> None:
        try:
            await self._send({"type": "cancel_speech"})
        except Exception:
            logger.warning("cancel_speech_send_failed")
