"""OpenAI-compatible speech-to-text backend: only file that calls the transcription API."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ...errors import RecognitionError, SpeechQualityError
from ..convert import pcm_to_wav_bytes
from .stt import SpeechToText

logger = logging.getLogger("STT")

# Substrings of API error messages that mean the audio itself was unusable
_QUALITY_MARKERS = (
    "too short",
    "audio quality",
    "could not be decoded",
    "no speech",
)


def _is_quality_error(error: openai.APIStatusError) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _QUALITY_MARKERS)


class OpenAISpeechToText(SpeechToText):
    """Transcribes one utterance with the audio transcription endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        base_url: Optional[str] = None,
        language: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._language = language

    async def recognize(self, audio: bytes, encoding: str, sample_rate: int) -> List[str]:
        if encoding == "pcm":
            payload = pcm_to_wav_bytes(audio, sample_rate)
        elif encoding == "wav":
            payload = audio
        else:
            raise RecognitionError(f"unsupported audio encoding: {encoding}")

        kwargs: Dict[str, Any] = {
            "model": self._model,
            "file": ("input.wav", payload, "audio/wav"),
        }
        if self._language:
            kwargs["language"] = self._language

        started_at = time.time()
        try:
            result = await self._client.audio.transcriptions.create(**kwargs)
        except openai.BadRequestError as e:
            if _is_quality_error(e):
                raise SpeechQualityError(str(e)) from e
            raise RecognitionError(str(e)) from e
        except openai.OpenAIError as e:
            raise RecognitionError(str(e)) from e

        text = (getattr(result, "text", "") or "").strip()
        logger.info("STT finished in %.3fs: %r", time.time() - started_at, text)
        return [text] if text else []
