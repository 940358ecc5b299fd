"""Tests for the practice-session WebSocket hub."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import WebSocket, WebSocketDisconnect

from word_practice.api.websocket import (
    PracticeSessionManager,
    ReadingCheckManager,
    handle_browser_websocket,
)
from word_practice.models.learner import LearnerProfile
from word_practice.models.word import WordStatus
from word_practice.storage.word_store import WordStore


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.speech_recognition_enabled = True
    settings.speech_rate = 0.9
    settings.listener_restart_delay = 0
    settings.requeue_offset = 3
    settings.tick_seconds = 60.0
    settings.correct_feedback_delay = 0
    settings.incorrect_feedback_delay = 0
    return settings


@pytest.fixture
def store(tmp_path):
    store = WordStore(tmp_path)
    store.add_words("kid-1", ["cat", "dog"])
    return store


@pytest.fixture
def ws():
    ws = AsyncMock(spec=WebSocket)
    ws.send_json = AsyncMock()
    return ws


def sent(ws, msg_type):
    messages = [c.args[0] for c in ws.send_json.await_args_list]
    return [m for m in messages if m["type"] == msg_type]


def make_manager(mock_settings, ws, store, **profile_fields):
    profile = LearnerProfile(learner_id="kid-1", **profile_fields)
    return PracticeSessionManager(
        mock_settings, ws, store, learner_id="kid-1", learner_profile=profile
    )


class TestPracticeSessionManager:
    async def test_start_announces_capabilities_and_word(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        assert await mgr.start()
        await asyncio.sleep(0.02)

        assert sent(ws, "capabilities") == [{"type": "capabilities", "speech_recognition": True}]
        state = sent(ws, "session_state")[-1]
        assert state["state"] == "presenting"
        assert state["total_count"] == 2
        speak = sent(ws, "speak")[0]
        assert speak["text"] == state["current_word"]
        assert speak["voice"] == "shimmer"
        await mgr.stop()

    async def test_empty_session(self, mock_settings, ws, tmp_path):
        mgr = make_manager(mock_settings, ws, WordStore(tmp_path / "empty"))
        assert await mgr.start() is False
        assert sent(ws, "empty_session")
        assert mgr.runner is None

    async def test_spoken_match_advances(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store, mastery_threshold=1)
        await mgr.start()
        first = mgr.runner.snapshot()

        await mgr.handle_message(
            {"type": "transcript", "transcript": first.current_word, "is_final": True}
        )
        await asyncio.sleep(0.05)

        match = sent(ws, "match")[0]
        assert match["is_match"] is True
        snapshot = mgr.runner.snapshot()
        assert snapshot.mastered_count == 1
        assert snapshot.current_word != first.current_word
        assert mgr.listener.target == snapshot.current_word
        assert store.get_word(first.current_word_id).status == WordStatus.MASTERED
        await mgr.stop()

    async def test_spoken_miss_is_not_a_verdict(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()
        current = mgr.runner.snapshot().current_word
        wrong = "sun" if current != "sun" else "moon"

        await mgr.handle_message({"type": "transcript", "transcript": wrong, "is_final": True})
        await asyncio.sleep(0.02)

        assert sent(ws, "match")[0]["is_match"] is False
        assert mgr.runner.snapshot().state == "presenting"
        await mgr.stop()

    async def test_explicit_verdict(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()
        word_id = mgr.runner.snapshot().current_word_id

        await mgr.handle_message({"type": "verdict", "is_correct": False, "word_id": word_id})
        await asyncio.sleep(0.02)

        assert store.get_word(word_id).incorrect_count == 1
        await mgr.stop()

    async def test_pause_and_resume(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()

        await mgr.handle_message({"type": "pause"})
        assert sent(ws, "session_state")[-1]["state"] == "paused"

        await mgr.handle_message({"type": "resume"})
        assert sent(ws, "session_state")[-1]["state"] == "presenting"
        await mgr.stop()

    async def test_string_verdict_rejected(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()
        word_id = mgr.runner.snapshot().current_word_id

        await mgr.handle_message({"type": "verdict", "is_correct": "false", "word_id": word_id})
        await asyncio.sleep(0.02)

        assert sent(ws, "error") == [{"type": "error", "reason": "invalid verdict"}]
        word = store.get_word(word_id)
        assert word.correct_count == 0
        assert word.incorrect_count == 0
        assert mgr.runner.snapshot().state == "presenting"
        await mgr.stop()

    async def test_listening_survives_many_silences(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store, mastery_threshold=1)
        await mgr.start()
        first = mgr.runner.snapshot()

        for _ in range(7):
            await mgr.handle_message({"type": "transcript_end"})
            await asyncio.sleep(0.01)
        await mgr.handle_message(
            {"type": "transcript", "transcript": first.current_word, "is_final": True}
        )
        await asyncio.sleep(0.05)

        assert {"type": "listening", "active": False} not in sent(ws, "listening")
        assert sent(ws, "match")[0]["is_match"] is True
        assert store.get_word(first.current_word_id).status == WordStatus.MASTERED
        await mgr.stop()

    async def test_restart_rearms_stopped_listener(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store, mastery_threshold=1)
        await mgr.start()
        for _ in range(2):
            await mgr.handle_message({"type": "verdict", "is_correct": True})
            await asyncio.sleep(0.02)
        assert mgr.runner.snapshot().state == "complete"
        await mgr.listener.stop()
        assert mgr.listener.listening is False

        await mgr.handle_message({"type": "restart"})

        assert mgr.listener.listening is True
        assert mgr.listener.target == mgr.runner.snapshot().current_word
        assert {"type": "listening", "active": True} in sent(ws, "listening")
        await mgr.stop()

    async def test_listen_message_rearms_listener(self, mock_settings, ws, store):
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()
        await mgr.listener.stop()

        await mgr.handle_message({"type": "listen"})
        current = mgr.runner.snapshot().current_word
        await mgr.handle_message({"type": "transcript", "transcript": current, "is_final": True})
        await asyncio.sleep(0.02)

        assert sent(ws, "match")[0]["is_match"] is True
        await mgr.stop()

    async def test_profile_loaded_when_not_given(self, mock_settings, ws, store):
        profile = LearnerProfile(learner_id="kid-1", voice_preference="nova")
        with patch(
            "word_practice.api.websocket.load_profile", return_value=profile
        ) as mock_load:
            mgr = PracticeSessionManager(mock_settings, ws, store, learner_id="kid-1")

        mock_load.assert_called_once_with("kid-1")
        assert mgr.profile is profile
        assert mgr.speaker.voice == "nova"

    async def test_speech_disabled(self, mock_settings, ws, store):
        mock_settings.speech_recognition_enabled = False
        mgr = make_manager(mock_settings, ws, store)
        await mgr.start()

        assert sent(ws, "capabilities")[0]["speech_recognition"] is False
        await mgr.handle_message({"type": "transcript", "transcript": "cat", "is_final": True})
        assert sent(ws, "match") == []
        await mgr.stop()


class TestReadingCheckManager:
    async def test_words_reported_as_read(self, mock_settings, ws):
        mgr = ReadingCheckManager(mock_settings, ws)
        assert await mgr.start(["Cat", "dog", "sun"])

        await mgr.handle_message({"type": "transcript", "transcript": "dog sun"})
        await asyncio.sleep(0.02)

        update = sent(ws, "word_matches")[0]
        assert [m["word"] for m in update["matches"]] == ["dog", "sun"]
        assert update["matched_count"] == 2
        assert update["total"] == 3
        assert sent(ws, "reading_complete") == []
        await mgr.stop()

    async def test_complete_when_all_read(self, mock_settings, ws):
        mgr = ReadingCheckManager(mock_settings, ws)
        await mgr.start(["cat", "dog"])

        await mgr.handle_message({"type": "transcript", "transcript": "cat"})
        await mgr.handle_message({"type": "transcript_end"})
        await mgr.handle_message({"type": "transcript", "transcript": "dog", "is_final": True})
        await asyncio.sleep(0.05)

        assert sent(ws, "word_matches")[-1]["matched_count"] == 2
        assert sent(ws, "reading_complete") == [{"type": "reading_complete"}]
        await mgr.stop()

    async def test_update_reading_replaces_words(self, mock_settings, ws):
        mgr = ReadingCheckManager(mock_settings, ws)
        await mgr.start(["cat"])

        await mgr.handle_message({"type": "update_reading", "words": ["sun", "moon"]})

        state = sent(ws, "reading_state")[-1]
        assert state["words"] == ["sun", "moon"]
        assert state["matched"] == []
        assert state["listening"] is True
        await mgr.stop()

    async def test_blank_words_rejected(self, mock_settings, ws):
        mgr = ReadingCheckManager(mock_settings, ws)
        assert await mgr.start(["  ", ""]) is False
        assert sent(ws, "error") == [{"type": "error", "reason": "no words to read"}]


class TestHandleBrowserWebsocket:
    async def test_start_session_leaves_profile_to_manager(self, mock_settings):
        mock_ws = AsyncMock(spec=WebSocket)
        call_count = 0

        async def fake_receive_json():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                return {"type": "start_session", "learner_id": "alice"}
            raise WebSocketDisconnect()

        mock_ws.receive_json = fake_receive_json

        with (
            patch("word_practice.api.websocket.load_profile") as mock_load,
            patch("word_practice.api.websocket.get_word_store", return_value=MagicMock()),
            patch("word_practice.api.websocket.PracticeSessionManager") as mock_sm_cls,
        ):
            mock_sm_instance = AsyncMock()
            mock_sm_cls.return_value = mock_sm_instance

            await handle_browser_websocket(mock_ws, mock_settings)

        mock_load.assert_not_called()
        call_kwargs = mock_sm_cls.call_args.kwargs
        assert call_kwargs["learner_id"] == "alice"
        assert "learner_profile" not in call_kwargs
        mock_sm_instance.stop.assert_awaited()

    async def test_start_reading_replaces_practice(self, mock_settings):
        mock_ws = AsyncMock(spec=WebSocket)
        messages = iter([
            {"type": "start_session", "learner_id": "alice"},
            {"type": "start_reading", "words": ["cat", "dog"]},
        ])

        async def fake_receive_json():
            try:
                return next(messages)
            except StopIteration:
                raise WebSocketDisconnect()

        mock_ws.receive_json = fake_receive_json

        with (
            patch("word_practice.api.websocket.get_word_store", return_value=MagicMock()),
            patch("word_practice.api.websocket.PracticeSessionManager") as mock_sm_cls,
            patch("word_practice.api.websocket.ReadingCheckManager") as mock_rc_cls,
        ):
            practice = AsyncMock()
            mock_sm_cls.return_value = practice
            reading = AsyncMock()
            mock_rc_cls.return_value = reading

            await handle_browser_websocket(mock_ws, mock_settings)

        practice.stop.assert_awaited_once()
        reading.start.assert_awaited_once_with(["cat", "dog"])
        reading.stop.assert_awaited_once()

    async def test_invalid_learner_id_rejected(self, mock_settings):
        mock_ws = AsyncMock(spec=WebSocket)
        messages = iter([{"type": "start_session", "learner_id": "../etc"}])

        async def fake_receive_json():
            try:
                return next(messages)
            except StopIteration:
                raise WebSocketDisconnect()

        mock_ws.receive_json = fake_receive_json

        with patch("word_practice.api.websocket.PracticeSessionManager") as mock_sm_cls:
            await handle_browser_websocket(mock_ws, mock_settings)

        mock_sm_cls.assert_not_called()
        mock_ws.send_json.assert_awaited_once_with(
            {"type": "error", "reason": "invalid learner_id"}
        )
