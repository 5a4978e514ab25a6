"""TTS abstraction: ABC for engines, no dependency on edge_tts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from .types import AudioChunk


class TTSEngine(ABC):
    """Abstract TTS: text -> stream of PCM chunks."""

    @abstractmethod
    def generate_stream(
        self,
        text: str,
        *,
        voice: Optional[str] = None,
    ) -> AsyncIterator[AudioChunk]:
        """Stream TTS for text. Yields int16 PCM chunks as they are decoded."""
        ...
