"""Listener: per-frame speech/silence state machine driving utterance boundaries."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable, Optional

from ...core.state import DialoguePhase, PlaybackState, WakeGate
from ...errors import DecoderError

from .decoder import Decoder
from .types import AudioFrame, FrameStatus, Utterance

logger = logging.getLogger("Listener")


class ListenerState(Enum):
    IDLE = auto()        # not in speech, no open utterance
    CAPTURING = auto()   # in speech, utterance open


class Listener:
    """
    Consumes audio frames on the driver's callback thread.

    Boundaries come from the decoder's voice activity signal alone: a speech
    frame while IDLE opens an utterance, a silence frame while CAPTURING closes
    it and hands it to on_utterance. Frames are skipped while the assistant is
    speaking (unless interrupt_mode) and while the previous utterance is still
    being reported.
    """

    def __init__(
        self,
        decoder: Decoder,
        playback: PlaybackState,
        wake_gate: WakeGate,
        on_utterance: Callable[[Utterance], None],
        interrupt_mode: bool = False,
        is_reporter_busy: Optional[Callable[[], bool]] = None,
        sample_rate: int = 16000,
    ):
        self._decoder = decoder
        self._playback = playback
        self._wake_gate = wake_gate
        self._on_utterance = on_utterance
        self._interrupt_mode = interrupt_mode
        self._is_reporter_busy = is_reporter_busy or (lambda: False)
        self._sample_rate = sample_rate

        self._in_speech = False
        self._utt_started = False
        self._started_at_s: Optional[float] = None

    @property
    def state(self) -> ListenerState:
        return ListenerState.CAPTURING if self._utt_started else ListenerState.IDLE

    def start(self) -> None:
        """Open the first decoder utterance."""
        if not self._decoder.start_utt():
            raise DecoderError("decoder failed to start utterance")
        if self._wake_gate.phase is DialoguePhase.AWAITING_WAKE:
            logger.info("Waiting for wake phrase")

    def handle_frame(self, frame: AudioFrame) -> FrameStatus:
        # Do not record our own voice
        if self._playback.is_playing() and not self._interrupt_mode:
            return FrameStatus.CONTINUE
        if self._is_reporter_busy():
            return FrameStatus.CONTINUE

        # VAD-only update, cheap enough for the callback thread
        if not self._decoder.process_raw(frame.pcm):
            logger.critical("Decoder failed to process frame")
            return FrameStatus.ABORT

        if self._decoder.in_speech():
            self._in_speech = True
            if not self._utt_started:
                self._utt_started = True
                self._started_at_s = frame.timestamp_s
                if self._wake_gate.phase is DialoguePhase.DIALOGUING:
                    logger.info("Speech detected, recording utterance...")
                else:
                    logger.info("Speech detected, checking for wake phrase...")
        elif self._utt_started:
            # speech -> silence transition
            self._decoder.end_utt()
            self._in_speech = False
            self._utt_started = False
            utterance = Utterance(
                pcm=self._decoder.raw_data(),
                sample_rate=self._sample_rate,
                started_at_s=self._started_at_s if self._started_at_s is not None else frame.timestamp_s,
                ended_at_s=frame.timestamp_s,
            )
            self._started_at_s = None
            try:
                self._on_utterance(utterance)
            except Exception as e:
                logger.error("Utterance hand-off failed: %s", e, exc_info=True)
            if not self._decoder.start_utt():
                logger.critical("Decoder failed to restart utterance")
                return FrameStatus.ABORT

        return FrameStatus.CONTINUE
