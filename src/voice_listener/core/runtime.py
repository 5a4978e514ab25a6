"""Runtime context holding shared queues."""

from __future__ import annotations

from dataclasses import dataclass
import queue

from .events import AudioOutputRequest, ChatInputEvent, DisplayMessage


@dataclass
class RuntimeContext:
    """
    Shared runtime objects owned by Assistant.

    Queues live here (not as globals) and are injected into components that need them.
    """

    chat_input_queue: "queue.Queue[ChatInputEvent]"
    audio_output_queue: "queue.Queue[AudioOutputRequest]"
    display_queue: "queue.Queue[DisplayMessage]"

    @classmethod
    def create(cls) -> "RuntimeContext":
        return cls(
            chat_input_queue=queue.Queue(),
            audio_output_queue=queue.Queue(),
            display_queue=queue.Queue(),
        )
