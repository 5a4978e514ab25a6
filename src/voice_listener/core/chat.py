"""Chat worker: typed or recognized text -> dialogue engine -> reply."""

from __future__ import annotations

import asyncio
import logging
import queue
from typing import Optional, TYPE_CHECKING

from .events import ChatInputEvent
from .orchestrator import ReplyOrchestrator
from .shutdown import StopSignal
from .worker import QueueWorker
from ..errors import DialogueError

if TYPE_CHECKING:
    from ..llm.dialogue import DialogueEngine

logger = logging.getLogger("Chat")


class ChatWorker(QueueWorker[ChatInputEvent]):
    """Answers one chat input at a time; replies are spoken unless offline."""

    def __init__(
        self,
        shutdown_signal: StopSignal,
        input_queue: "queue.Queue[ChatInputEvent]",
        dialogue: "DialogueEngine",
        orchestrator: ReplyOrchestrator,
        offline_mode: bool = False,
        timeout_s: float = 15.0,
    ):
        super().__init__(
            name="ChatThread",
            stop_signal=shutdown_signal,
            input_queue=input_queue,
            poll_interval_s=0.1,
        )
        self._dialogue = dialogue
        self._orchestrator = orchestrator
        self._offline_mode = offline_mode
        self._timeout_s = timeout_s
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def handle(self, event: ChatInputEvent) -> None:
        if not event.text or not event.text.strip():
            logger.debug("Skipping blank chat input")
            return

        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        try:
            replies = self._loop.run_until_complete(
                asyncio.wait_for(self._dialogue.query(event.text), timeout=self._timeout_s)
            )
        except asyncio.TimeoutError:
            replies = [f"连接到对话引擎出错: timed out after {self._timeout_s:.0f}s"]
            logger.warning("Dialogue engine timed out")
        except DialogueError as e:
            replies = [f"连接到对话引擎出错: {e}"]
            logger.warning("Dialogue engine failed: %s", e)
        except Exception as e:
            replies = [f"连接到对话引擎出错: {e}"]
            logger.error(f"Error processing chat input: {e}", exc_info=True)

        if self._offline_mode:
            self._orchestrator.deliver_reply(replies)
        else:
            self._orchestrator.deliver_reply_with_voice(replies)

    def cleanup(self) -> None:
        if self._loop is not None:
            self._loop.close()
            self._loop = None
