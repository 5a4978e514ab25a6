"""Edge TTS backend: only file that imports edge_tts."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import AsyncIterator, Optional

import edge_tts
from pydub import AudioSegment

from ...errors import SynthesisError
from .types import AudioChunk
from .tts import TTSEngine

logger = logging.getLogger(__name__)

# Edge TTS streams 24kHz mono MP3; decode in blocks of this many bytes (~2s)
MP3_ACCUMULATE_BYTES = 12288


def _decode_mp3(data: bytes) -> AudioChunk:
    try:
        seg = AudioSegment.from_file(BytesIO(data), format="mp3")
    except Exception as e:
        raise SynthesisError(f"failed to decode synthesized audio: {e}") from e
    seg = seg.set_sample_width(2)
    return AudioChunk(data=seg.raw_data, sample_rate=seg.frame_rate, channels=seg.channels)


class EdgeTTSEngine(TTSEngine):
    """TTS engine using Microsoft Edge TTS, decoded with pydub."""

    def __init__(self, voice: str = "zh-CN-XiaoxiaoNeural"):
        self._voice = voice

    async def generate_stream(
        self,
        text: str,
        *,
        voice: Optional[str] = None,
    ) -> AsyncIterator[AudioChunk]:
        communicate = edge_tts.Communicate(text, voice or self._voice)
        buffer = bytearray()
        produced = False

        async for chunk in communicate.stream():
            if chunk.get("type") != "audio" or not chunk.get("data"):
                continue
            buffer.extend(chunk["data"])
            if len(buffer) >= MP3_ACCUMULATE_BYTES:
                yield _decode_mp3(bytes(buffer))
                buffer.clear()
                produced = True

        if buffer:
            yield _decode_mp3(bytes(buffer))
            produced = True

        if not produced:
            raise SynthesisError("no audio received from edge-tts")
