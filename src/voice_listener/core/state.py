"""Cross-thread state: playback flag and the wake gate."""

from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from typing import Optional

logger = logging.getLogger(__name__)


class PlaybackState:
    """
    Whether the assistant is currently speaking.

    Written by the speech output worker around each synthesis, read by the
    Listener on every audio frame. Reads never block.
    """

    def __init__(self):
        self._playing = threading.Event()

    def start(self) -> None:
        self._playing.set()

    def stop(self) -> None:
        self._playing.clear()

    def is_playing(self) -> bool:
        return self._playing.is_set()


class DialoguePhase(Enum):
    """Outer listening phase."""
    AWAITING_WAKE = auto()   # utterances are checked for a trigger phrase
    DIALOGUING = auto()      # utterances are recognized and answered


class WakeGate:
    """
    One-shot gate between the two dialogue phases.

    Starts closed in wake word mode and open otherwise. Once released it stays
    released for the lifetime of the process.
    """

    def __init__(self, wake_word_mode: bool = True):
        self._woken = threading.Event()
        if not wake_word_mode:
            self._woken.set()

    @property
    def phase(self) -> DialoguePhase:
        if self._woken.is_set():
            return DialoguePhase.DIALOGUING
        return DialoguePhase.AWAITING_WAKE

    def release(self) -> None:
        if not self._woken.is_set():
            logger.info("Wake gate released, switching to dialogue capture")
        self._woken.set()

    def is_released(self) -> bool:
        return self._woken.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until woken or timeout; returns True when woken."""
        return self._woken.wait(timeout)
