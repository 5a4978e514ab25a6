from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional
import time


@dataclass(frozen=True)
class AudioOutputRequest:
    """Single item for audio output queue: text to speak."""

    content: str
    language: str = "auto"
    voice: Optional[str] = None


class InputType(Enum):
    TEXT = auto()
    AUDIO = auto()


class UpdateType(Enum):
    """Types of display updates."""
    TEXT = auto()        # User input or reply text
    SIGNAL = auto()      # Status signals (listening_started/stopped)


@dataclass(frozen=True)
class DisplayMessage:
    """One message for UI: who said it and what."""
    speaker: str  # e.g. "User", "Homo", "System"
    text: str
    is_user: bool
    update_type: UpdateType = UpdateType.TEXT
    metadata: dict = field(default_factory=dict)


@dataclass
class ChatInputEvent:
    """Text waiting for the dialogue engine, typed or recognized."""
    type: InputType
    text: str
    timestamp: float = field(default_factory=time.time)


# Signal names carried in DisplayMessage.text when update_type is SIGNAL
LISTENING_STARTED = "listening_started"
LISTENING_STOPPED = "listening_stopped"
