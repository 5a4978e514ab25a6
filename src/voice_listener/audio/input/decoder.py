"""Decoder abstraction: per-frame speech/silence classification and utterance capture."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class Decoder(ABC):
    """
    Acoustic front end consumed by the Listener.

    Frames are only accepted while an utterance is open (between start_utt and
    end_utt). raw_data() returns the samples of the current utterance, or of the
    last closed one until the next start_utt. hypothesis() refers to the last
    closed utterance.
    """

    @abstractmethod
    def process_raw(self, samples: np.ndarray) -> bool:
        """Update speech/silence state with one frame. False means the decoder is unusable."""
        ...

    @abstractmethod
    def in_speech(self) -> bool:
        ...

    @abstractmethod
    def start_utt(self) -> bool:
        ...

    @abstractmethod
    def end_utt(self) -> None:
        ...

    @abstractmethod
    def raw_data(self) -> np.ndarray:
        ...

    @abstractmethod
    def hypothesis(self) -> tuple[str, bool]:
        """Best-guess text of the last closed utterance and whether decoding succeeded."""
        ...
