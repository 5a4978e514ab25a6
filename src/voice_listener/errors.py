"""Exception types shared across the listener pipeline."""


class VoiceListenerError(Exception):
    """Base class for all voice listener errors."""


class FatalError(VoiceListenerError):
    """The process has no way to continue (no audio source or no decoder)."""


class DecoderError(FatalError):
    """Decoder could not be created, process a frame or open an utterance."""


class AudioDeviceError(FatalError):
    """Input stream could not be opened or started."""


class RecognitionError(VoiceListenerError):
    """Speech-to-text call failed."""


class SpeechQualityError(RecognitionError):
    """Speech-to-text rejected the audio as too short or too noisy to transcribe."""


class DialogueError(VoiceListenerError):
    """Dialogue engine call failed."""


class SynthesisError(VoiceListenerError):
    """Text-to-speech synthesis or playback failed."""


class ConversionError(VoiceListenerError):
    """Raw capture could not be encoded to a playable file."""
