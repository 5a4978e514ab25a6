"""Decoder backed by Silero VAD (speech/silence) and faster-whisper (hypothesis)."""

from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np
from faster_whisper import WhisperModel
from silero_vad import load_silero_vad, VADIterator

from ...errors import DecoderError
from .decoder import Decoder

logger = logging.getLogger("Decoder")

# Reduce noise from faster-whisper
logging.getLogger("faster_whisper").setLevel(logging.WARNING)

# Characters trimmed around a hypothesis before it is compared with trigger phrases
_HYP_STRIP = " \t\r\n.,!?;:'\"。，！？；：、…"


class SileroDecoder(Decoder):
    """
    Silero VAD-based decoder.

    The VAD model scores fixed 512-sample windows at 16 kHz; incoming frames of
    other sizes are buffered into windows. Until speech is detected only the
    last pre_roll_ms of audio is kept; after that the newest max_raw_samples
    of the utterance are kept.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        threshold: float = 0.5,
        max_raw_samples: int = 300000,
        whisper_model_size: str = "base",
        language: Optional[str] = None,
        min_silence_duration_ms: int = 300,
        pre_roll_ms: int = 500,
    ):
        self._sample_rate = sample_rate
        self._max_raw_samples = max_raw_samples
        self._pre_roll_samples = min(sample_rate * pre_roll_ms // 1000, max_raw_samples)
        self._language = language

        self._window = 512
        self._pending = np.array([], dtype=np.float32)
        self._raw_parts: list[np.ndarray] = []
        self._raw_len = 0
        self._speech_seen = False
        self._utt_open = False
        self._last_utt = np.array([], dtype=np.int16)

        logger.info("Loading VAD model (threshold=%.2f)", threshold)
        try:
            model = load_silero_vad(onnx=True, opset_version=16)
            self._vad = VADIterator(
                model,
                threshold=threshold,
                sampling_rate=sample_rate,
                min_silence_duration_ms=min_silence_duration_ms,
            )
            logger.info("Loading wake phrase model: %s", whisper_model_size)
            self._whisper = WhisperModel(whisper_model_size, device="cpu", compute_type="default")
        except Exception as e:
            raise DecoderError(f"failed to create decoder: {e}") from e

    def process_raw(self, samples: np.ndarray) -> bool:
        if not self._utt_open:
            logger.error("process_raw called without an open utterance")
            return False

        self._pending = np.concatenate(
            [self._pending, samples.astype(np.float32) / 32768.0]
        )
        try:
            while len(self._pending) >= self._window:
                window = self._pending[:self._window]
                self._pending = self._pending[self._window:]
                self._vad(window, return_seconds=False)
        except Exception as e:
            logger.error("VAD failed: %s", e, exc_info=True)
            return False

        if self._vad.triggered:
            self._speech_seen = True
        self._append_raw(samples)
        return True

    def _append_raw(self, samples: np.ndarray) -> None:
        self._raw_parts.append(samples.astype(np.int16, copy=True))
        self._raw_len += len(samples)

        # Silence before the onset only needs a short lead-in
        limit = self._max_raw_samples if self._speech_seen else self._pre_roll_samples
        while self._raw_len > limit:
            excess = self._raw_len - limit
            head = self._raw_parts[0]
            if len(head) <= excess:
                self._raw_parts.pop(0)
                self._raw_len -= len(head)
            else:
                self._raw_parts[0] = head[excess:]
                self._raw_len -= excess

    def in_speech(self) -> bool:
        return bool(self._vad.triggered)

    def start_utt(self) -> bool:
        if self._utt_open:
            logger.error("start_utt called while an utterance is open")
            return False
        self._raw_parts = []
        self._raw_len = 0
        self._speech_seen = False
        self._pending = np.array([], dtype=np.float32)
        self._vad.reset_states()
        self._utt_open = True
        return True

    def end_utt(self) -> None:
        self._utt_open = False
        self._last_utt = self.raw_data()

    def raw_data(self) -> np.ndarray:
        if not self._raw_parts:
            return np.array([], dtype=np.int16)
        return np.concatenate(self._raw_parts)

    def hypothesis(self) -> tuple[str, bool]:
        pcm = self._last_utt
        if pcm.size == 0:
            return ("", False)

        started_at = time.time()
        try:
            segments, _ = self._whisper.transcribe(
                pcm.astype(np.float32) / 32768.0,
                language=self._language,
                beam_size=1,
                vad_filter=False,
            )
            text = " ".join(s.text.strip() for s in segments)
        except Exception as e:
            logger.warning("Hypothesis decoding failed: %s", e)
            return ("", False)

        text = text.strip(_HYP_STRIP)
        logger.debug("Hypothesis %r in %.3fs", text, time.time() - started_at)
        return (text, True)
