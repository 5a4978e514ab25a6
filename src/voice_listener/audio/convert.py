"""Raw s16le capture to wav encoding."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from pydub import AudioSegment

from ..errors import ConversionError

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # int16


def pcm_to_wav_bytes(pcm: bytes, sample_rate: int, channels: int = 1) -> bytes:
    """Wrap little-endian int16 PCM in a wav container, in memory."""
    segment = AudioSegment(
        data=pcm,
        sample_width=SAMPLE_WIDTH,
        frame_rate=sample_rate,
        channels=channels,
    )
    out = BytesIO()
    segment.export(out, format="wav")
    return out.getvalue()


def raw_file_to_wav(raw_path: Path, wav_path: Path, sample_rate: int, channels: int = 1) -> Path:
    """Encode a raw capture file as wav next to it. Raises ConversionError."""
    try:
        pcm = Path(raw_path).read_bytes()
        if len(pcm) % (SAMPLE_WIDTH * channels):
            raise ConversionError(f"{raw_path} is not aligned to {SAMPLE_WIDTH * channels}-byte frames")
        wav_path = Path(wav_path)
        wav_path.parent.mkdir(parents=True, exist_ok=True)
        wav_path.write_bytes(pcm_to_wav_bytes(pcm, sample_rate, channels))
    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(str(e)) from e
    return wav_path
