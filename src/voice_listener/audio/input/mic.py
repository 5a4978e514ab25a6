"""Microphone audio capture."""

from __future__ import annotations

import threading
import time
import logging
from typing import Callable, Optional

import numpy as np
import sounddevice as sd

from ...core.shutdown import StopSignal
from ...errors import AudioDeviceError, DecoderError, FatalError

from .types import AudioFormat, AudioFrame, FrameConfig, FrameStatus

logger = logging.getLogger("Mic")


class Mic(threading.Thread):
    """
    Opens the input stream and feeds every block to the frame handler from the
    driver's callback thread.

    The handler runs in real time: it must not block. An ABORT verdict stops the
    stream and is reported as fatal.
    """

    def __init__(
        self,
        stop_signal: StopSignal,
        audio_format: AudioFormat,
        frame_cfg: FrameConfig,
        handler: Callable[[AudioFrame], FrameStatus],
        on_fatal: Callable[[FatalError], None],
        device: Optional[int] = None,
    ):
        super().__init__(name="MicThread", daemon=True)
        self._stop_signal = stop_signal
        self._audio_format = audio_format
        self._frame_cfg = frame_cfg
        self._handler = handler
        self._on_fatal = on_fatal
        self._device = device
        self._aborted = threading.Event()

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.warning(f"Audio callback status: {status}")

        # First channel only, copied out of the driver buffer
        n = min(int(frames), indata.shape[0])
        pcm = np.array(indata[:n, 0], dtype=np.int16, copy=True)
        frame = AudioFrame(
            pcm=pcm,
            sample_rate=self._audio_format.sample_rate,
            timestamp_s=time.time(),
        )

        try:
            verdict = self._handler(frame)
        except Exception as e:
            logger.critical("Frame handler raised: %s", e, exc_info=True)
            verdict = FrameStatus.ABORT

        if verdict is FrameStatus.ABORT:
            self._aborted.set()
            self._on_fatal(DecoderError("decoder aborted audio processing"))
            raise sd.CallbackAbort

    def run(self) -> None:
        """Open the stream and keep it running until stopped or aborted."""
        try:
            stream = sd.InputStream(
                callback=self._audio_callback,
                samplerate=self._audio_format.sample_rate,
                channels=self._audio_format.channels,
                blocksize=self._frame_cfg.samples_per_channel,
                dtype=self._audio_format.dtype,
                device=self._device,
            )
        except Exception as e:
            logger.critical(f"Failed to open input stream: {e}")
            self._on_fatal(AudioDeviceError(f"failed to open input stream: {e}"))
            return

        try:
            stream.start()
        except Exception as e:
            logger.critical(f"Failed to start input stream: {e}")
            self._on_fatal(AudioDeviceError(f"failed to start input stream: {e}"))
            self._close(stream)
            return

        logger.info(
            "Listening on microphone: sample rate %dHz, channels %d",
            self._audio_format.sample_rate,
            self._audio_format.channels,
        )
        try:
            while not self._stop_signal.is_set() and not self._aborted.is_set():
                time.sleep(0.1)
        finally:
            self._close(stream)
            logger.info("Microphone capture stopped")

    def _close(self, stream: sd.InputStream) -> None:
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing input stream: {e}")
