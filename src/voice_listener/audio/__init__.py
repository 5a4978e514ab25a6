from .input import AudioInput
from .output import AudioOutput

__all__ = ["AudioInput", "AudioOutput"]
