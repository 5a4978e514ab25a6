"""Speech-to-text abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class SpeechToText(ABC):
    """Cloud speech recognition: audio bytes -> ordered candidate transcriptions."""

    @abstractmethod
    async def recognize(self, audio: bytes, encoding: str, sample_rate: int) -> List[str]:
        """
        Recognize one utterance.

        Raises SpeechQualityError when the service rejects the audio as
        unintelligible, RecognitionError for any other failure. An empty list
        means the service heard nothing it could transcribe.
        """
        ...
