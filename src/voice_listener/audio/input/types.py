"""Audio input subsystem data types and configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

import numpy as np


@dataclass(frozen=True)
class AudioFormat:
    """Audio format specification."""
    sample_rate: int = 16000
    channels: int = 1
    dtype: str = "int16"  # sounddevice dtype name


@dataclass(frozen=True)
class FrameConfig:
    """Frame-level audio processing configuration."""
    samples_per_channel: int = 512


class FrameStatus(Enum):
    """Frame handler verdict returned to the audio driver."""
    CONTINUE = auto()
    ABORT = auto()


@dataclass
class AudioFrame:
    """Single audio frame from microphone."""
    pcm: np.ndarray          # shape: (n_samples,) int16
    sample_rate: int
    timestamp_s: float


@dataclass
class Utterance:
    """Complete utterance audio segment."""
    pcm: np.ndarray  # full utterance audio int16
    sample_rate: int
    started_at_s: float
    ended_at_s: float

    def to_bytes(self) -> bytes:
        """Little-endian s16 serialization of the samples."""
        return self.pcm.astype("<i2", copy=False).tobytes()
