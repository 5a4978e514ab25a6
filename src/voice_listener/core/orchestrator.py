"""Reply delivery: display messages and spoken replies."""

from __future__ import annotations

import logging
from typing import Sequence

from .events import (
    AudioOutputRequest,
    ChatInputEvent,
    DisplayMessage,
    InputType,
    UpdateType,
)
from .runtime import RuntimeContext

logger = logging.getLogger("Orchestrator")

USER_SPEAKER = "User"
ASSISTANT_SPEAKER = "Homo"


class ReplyOrchestrator:
    """
    Thin coordination layer between the reporter/chat path and the outputs.

    All methods only enqueue work, so they return immediately. Synthesis is
    done by the speech output worker, which owns the playback flag.
    """

    def __init__(self, runtime: RuntimeContext, offline_mode: bool = False):
        self._runtime = runtime
        self._offline_mode = offline_mode

    def signal(self, name: str) -> None:
        """Status signal for the UI (e.g. listening animation)."""
        self._runtime.display_queue.put(
            DisplayMessage(speaker="System", text=name, is_user=False, update_type=UpdateType.SIGNAL)
        )

    def deliver_input_only(self, text: str) -> None:
        """Show text as user input without asking the dialogue engine."""
        self._runtime.display_queue.put(DisplayMessage(speaker=USER_SPEAKER, text=text, is_user=True))

    def deliver_text(self, text: str) -> None:
        """Show recognized text as user input and hand it to the chat path."""
        self.deliver_input_only(text)
        self._runtime.chat_input_queue.put(ChatInputEvent(type=InputType.AUDIO, text=text))

    def deliver_reply(self, candidates: Sequence[str]) -> None:
        """Show the best reply candidate as text only."""
        reply = self._first(candidates)
        if reply is None:
            return
        self._runtime.display_queue.put(DisplayMessage(speaker=ASSISTANT_SPEAKER, text=reply, is_user=False))

    def deliver_reply_with_voice(self, candidates: Sequence[str]) -> None:
        """Show the best reply candidate and speak it (text only in offline mode)."""
        reply = self._first(candidates)
        if reply is None:
            return
        self._runtime.display_queue.put(DisplayMessage(speaker=ASSISTANT_SPEAKER, text=reply, is_user=False))
        if self._offline_mode:
            return
        self._runtime.audio_output_queue.put(AudioOutputRequest(content=reply))

    @staticmethod
    def _first(candidates: Sequence[str]):
        """The best candidate comes first; a blank one means there is nothing to say."""
        if not candidates or not candidates[0] or not candidates[0].strip():
            logger.warning("No reply candidate to deliver")
            return None
        return candidates[0].strip()
