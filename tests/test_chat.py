"""Tests for the chat worker and reply orchestrator."""

import asyncio
import queue

import pytest
from unittest.mock import AsyncMock, MagicMock

from voice_listener.core.chat import ChatWorker
from voice_listener.core.events import (
    AudioOutputRequest,
    ChatInputEvent,
    InputType,
    LISTENING_STARTED,
    UpdateType,
)
from voice_listener.core.orchestrator import ASSISTANT_SPEAKER, USER_SPEAKER, ReplyOrchestrator
from voice_listener.core.runtime import RuntimeContext
from voice_listener.core.shutdown import GracefulShutdown
from voice_listener.errors import DialogueError


def drain(q):
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


class TestReplyOrchestrator:
    @pytest.fixture
    def runtime(self):
        return RuntimeContext.create()

    def test_signal(self, runtime):
        ReplyOrchestrator(runtime).signal(LISTENING_STARTED)

        msg = runtime.display_queue.get_nowait()
        assert msg.update_type is UpdateType.SIGNAL
        assert msg.text == LISTENING_STARTED

    def test_deliver_text_shows_and_forwards(self, runtime):
        ReplyOrchestrator(runtime).deliver_text("你好")

        msg = runtime.display_queue.get_nowait()
        assert (msg.speaker, msg.text, msg.is_user) == (USER_SPEAKER, "你好", True)
        event = runtime.chat_input_queue.get_nowait()
        assert event.type is InputType.AUDIO
        assert event.text == "你好"

    def test_deliver_input_only_does_not_forward(self, runtime):
        ReplyOrchestrator(runtime).deliver_input_only("你好")

        assert len(drain(runtime.display_queue)) == 1
        assert runtime.chat_input_queue.empty()

    def test_deliver_reply_uses_first_candidate(self, runtime):
        ReplyOrchestrator(runtime).deliver_reply([" first ", "second"])

        msg = runtime.display_queue.get_nowait()
        assert (msg.speaker, msg.text, msg.is_user) == (ASSISTANT_SPEAKER, "first", False)
        assert runtime.audio_output_queue.empty()

    def test_deliver_reply_with_voice(self, runtime):
        ReplyOrchestrator(runtime).deliver_reply_with_voice(["好的"])

        assert runtime.display_queue.get_nowait().text == "好的"
        request = runtime.audio_output_queue.get_nowait()
        assert isinstance(request, AudioOutputRequest)
        assert request.content == "好的"

    def test_offline_mode_never_speaks(self, runtime):
        ReplyOrchestrator(runtime, offline_mode=True).deliver_reply_with_voice(["好的"])

        assert runtime.display_queue.get_nowait().text == "好的"
        assert runtime.audio_output_queue.empty()

    def test_blank_first_candidate_delivers_nothing(self, runtime):
        ReplyOrchestrator(runtime).deliver_reply_with_voice(["  ", "second"])

        assert runtime.display_queue.empty()
        assert runtime.audio_output_queue.empty()

    def test_no_candidates_delivers_nothing(self, runtime):
        ReplyOrchestrator(runtime).deliver_reply_with_voice([])

        assert runtime.display_queue.empty()
        assert runtime.audio_output_queue.empty()


class TestChatWorker:
    def make_worker(self, dialogue, orchestrator, offline_mode=False, timeout_s=2.0):
        return ChatWorker(
            shutdown_signal=GracefulShutdown(),
            input_queue=queue.Queue(),
            dialogue=dialogue,
            orchestrator=orchestrator,
            offline_mode=offline_mode,
            timeout_s=timeout_s,
        )

    def test_reply_is_spoken(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock(return_value=["现在是下午三点"])
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator)

        worker.handle(ChatInputEvent(type=InputType.AUDIO, text="现在几点"))
        worker.cleanup()

        dialogue.query.assert_awaited_once_with("现在几点")
        orchestrator.deliver_reply_with_voice.assert_called_once_with(["现在是下午三点"])

    def test_offline_reply_is_text_only(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock(return_value=["好的"])
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator, offline_mode=True)

        worker.handle(ChatInputEvent(type=InputType.TEXT, text="hi"))
        worker.cleanup()

        orchestrator.deliver_reply.assert_called_once_with(["好的"])
        orchestrator.deliver_reply_with_voice.assert_not_called()

    def test_blank_input_skipped(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock()
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator)

        worker.handle(ChatInputEvent(type=InputType.TEXT, text="   "))

        dialogue.query.assert_not_called()
        orchestrator.deliver_reply_with_voice.assert_not_called()

    def test_dialogue_error_is_replied(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock(side_effect=DialogueError("connection refused"))
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator)

        worker.handle(ChatInputEvent(type=InputType.TEXT, text="hi"))
        worker.cleanup()

        orchestrator.deliver_reply_with_voice.assert_called_once_with(["连接到对话引擎出错: connection refused"])

    def test_dialogue_timeout_is_replied(self):
        async def slow(text):
            await asyncio.sleep(5)
            return ["late"]

        dialogue = MagicMock()
        dialogue.query = slow
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator, timeout_s=0.05)

        worker.handle(ChatInputEvent(type=InputType.TEXT, text="hi"))
        worker.cleanup()

        (replies,), _ = orchestrator.deliver_reply_with_voice.call_args
        assert "timed out" in replies[0]

    def test_unexpected_error_is_replied(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock(side_effect=IndexError("list index out of range"))
        orchestrator = MagicMock()
        worker = self.make_worker(dialogue, orchestrator)

        worker.handle(ChatInputEvent(type=InputType.TEXT, text="hi"))
        worker.cleanup()

        orchestrator.deliver_reply_with_voice.assert_called_once_with(["连接到对话引擎出错: list index out of range"])

    def test_thread_keeps_answering_after_unexpected_error(self):
        dialogue = MagicMock()
        dialogue.query = AsyncMock(side_effect=[IndexError("list index out of range"), ["ok"]])
        orchestrator = MagicMock()
        stop = GracefulShutdown()
        input_queue = queue.Queue()
        worker = ChatWorker(
            shutdown_signal=stop,
            input_queue=input_queue,
            dialogue=dialogue,
            orchestrator=orchestrator,
        )
        worker.start()

        input_queue.put(ChatInputEvent(type=InputType.AUDIO, text="first"))
        input_queue.put(ChatInputEvent(type=InputType.AUDIO, text="second"))
        input_queue.join()
        alive = worker.is_alive()
        stop.stop()
        worker.join(timeout=2.0)

        assert alive
        replies = [c.args[0] for c in orchestrator.deliver_reply_with_voice.call_args_list]
        assert replies == [["连接到对话引擎出错: list index out of range"], ["ok"]]
