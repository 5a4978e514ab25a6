"""Play PCM stream to audio device."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Optional

import numpy as np
import sounddevice as sd

from .types import AudioChunk

logger = logging.getLogger("Playback")

# Short fade at start/end to avoid pops (ms)
FADE_DURATION_MS = 5


def _fade(frames: np.ndarray, n: int, *, fade_in: bool) -> None:
    """Linear fade over n samples in-place (head for fade-in, tail for fade-out)."""
    if n <= 0 or len(frames) < n:
        return
    ramp = np.linspace(0.0, 1.0, n) if fade_in else np.linspace(1.0, 0.0, n)
    part = slice(0, n) if fade_in else slice(len(frames) - n, len(frames))
    frames[part] = (frames[part].astype(np.float64) * ramp).astype(np.int16)


async def play_stream(
    chunk_stream: AsyncIterator[AudioChunk],
    is_interrupted: Callable[[], bool],
) -> int:
    """
    Write an async chunk stream to the default output device.

    One chunk is held back so the last one can be faded out. Returns the
    number of samples written.
    """
    stream: Optional[sd.OutputStream] = None
    held: Optional[np.ndarray] = None
    written = 0
    first = True
    n_fade = 0
    channels = 1
    try:
        async for chunk in chunk_stream:
            if is_interrupted():
                held = None
                break
            if stream is None:
                stream = sd.OutputStream(
                    samplerate=chunk.sample_rate,
                    channels=chunk.channels,
                    dtype="int16",
                )
                stream.start()
                n_fade = int(chunk.sample_rate * FADE_DURATION_MS / 1000)
                channels = chunk.channels
            if held is not None:
                if first:
                    _fade(held, n_fade, fade_in=True)
                    first = False
                stream.write(held.reshape(-1, channels))
                written += len(held)
            held = np.frombuffer(chunk.data, dtype=np.int16).copy()

        if held is not None and stream is not None:
            if first:
                _fade(held, n_fade, fade_in=True)
            _fade(held, n_fade, fade_in=False)
            stream.write(held.reshape(-1, channels))
            written += len(held)
    finally:
        if stream is not None:
            try:
                if stream.active:
                    stream.stop()
                stream.close()
            except Exception as e:
                logger.warning("Error closing playback stream: %s", e)
    return written
