import os
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class ListenerConfig(BaseModel):
    # Modes
    wake_word_mode: bool = Field(default=True, description="Wait for a trigger phrase before capturing dialogue")
    silence_mode: bool = Field(default=False, description="Suppress UI/voice feedback, log outcomes only")
    offline_mode: bool = Field(default=False, description="Deliver replies as text only, no speech synthesis")
    interrupt_mode: bool = Field(default=False, description="Keep listening while the assistant is speaking")

    # Capture
    trigger_phrases: List[str] = Field(default_factory=lambda: ["homo", "como"], description="Wake phrases, matched case-insensitively")
    sample_rate: int = Field(default=SAMPLE_RATE, description="Capture sample rate in Hz (fixed)")
    samples_per_channel: int = Field(default=512, gt=0, description="Samples delivered per audio callback")
    record_threshold: int = Field(default=100000, ge=0, description="Minimum captured bytes before recognition is attempted")
    max_raw_samples: int = Field(default=300000, gt=0, description="Upper bound of samples kept for one utterance")
    vad_threshold: float = Field(default=0.5, gt=0.0, lt=1.0, description="Speech probability threshold of the VAD")
    whisper_model_size: str = Field(default="base", description="Local whisper model used for wake phrase hypotheses")
    raw_to_wav: bool = Field(default=False, description="Convert the raw capture to a wav file after each utterance")
    input_raw_path: Path = Field(default=Path("data/input.raw"), description="Where the last raw capture (s16le) is written")
    input_wav_path: Path = Field(default=Path("data/input.wav"), description="Where the wav conversion is written")
    input_device: Optional[int] = Field(default=None, description="sounddevice input device index")

    # Services
    stt_api_key: str = Field(default="", description="Speech-to-text API key (falls back to LLM_API_KEY)")
    stt_base_url: Optional[str] = Field(default=None, description="Speech-to-text API base URL")
    stt_model: str = Field(default="whisper-1", description="Speech-to-text model")
    stt_language: Optional[str] = Field(default="zh", description="Language hint for speech-to-text")
    llm_api_key: str = Field(..., min_length=1, description="LLM API key for the dialogue engine")
    llm_model: str = Field(default="anthropic/claude-3-5-nano", description="LLM model to use")
    llm_base_url: str = Field(default="https://openrouter.ai/api/v1", description="LLM API base URL")
    max_conversation_history: int = Field(default=10, description="Maximum number of conversation turns to keep")
    tts_voice: str = Field(default="zh-CN-XiaoxiaoNeural", description="Edge TTS voice")
    request_timeout_s: float = Field(default=15.0, gt=0, description="Caller-side timeout for STT and dialogue calls")
    tts_timeout_s: float = Field(default=60.0, gt=0, description="Caller-side timeout for one synthesis + playback")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    @field_validator("sample_rate")
    @classmethod
    def _fixed_sample_rate(cls, v: int) -> int:
        if v != SAMPLE_RATE:
            raise ValueError(f"sample_rate must be {SAMPLE_RATE}")
        return v

    @field_validator("trigger_phrases")
    @classmethod
    def _normalize_triggers(cls, v: List[str]) -> List[str]:
        phrases = [p.strip().lower() for p in v if p.strip()]
        if not phrases:
            raise ValueError("at least one trigger phrase is required")
        return phrases

    @property
    def effective_stt_api_key(self) -> str:
        return self.stt_api_key or self.llm_api_key


def load_config(config_path: Optional[Path] = None) -> ListenerConfig:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    try:
        log_file = os.getenv("LOG_FILE", "")
        device = os.getenv("INPUT_DEVICE", "")
        config = ListenerConfig(
            wake_word_mode=_env_bool("WAKE_WORD_MODE", "true"),
            silence_mode=_env_bool("SILENCE_MODE", "false"),
            offline_mode=_env_bool("OFFLINE_MODE", "false"),
            interrupt_mode=_env_bool("INTERRUPT_MODE", "false"),
            trigger_phrases=os.getenv("TRIGGER_PHRASES", "homo,como").split(","),
            sample_rate=int(os.getenv("SAMPLE_RATE", str(SAMPLE_RATE))),
            samples_per_channel=int(os.getenv("SAMPLES_PER_CHANNEL", "512")),
            record_threshold=int(os.getenv("RECORD_THRESHOLD", "100000")),
            max_raw_samples=int(os.getenv("MAX_RAW_SAMPLES", "300000")),
            vad_threshold=float(os.getenv("VAD_THRESHOLD", "0.5")),
            whisper_model_size=os.getenv("WHISPER_MODEL_SIZE", "base"),
            raw_to_wav=_env_bool("RAW_TO_WAV", "false"),
            input_raw_path=Path(os.getenv("INPUT_RAW_PATH", "data/input.raw")),
            input_wav_path=Path(os.getenv("INPUT_WAV_PATH", "data/input.wav")),
            input_device=int(device) if device else None,
            stt_api_key=os.getenv("STT_API_KEY", ""),
            stt_base_url=os.getenv("STT_BASE_URL") or None,
            stt_model=os.getenv("STT_MODEL", "whisper-1"),
            stt_language=os.getenv("STT_LANGUAGE", "zh") or None,
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", "anthropic/claude-3-5-nano"),
            llm_base_url=os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1"),
            max_conversation_history=int(os.getenv("MAX_CONVERSATION_HISTORY", "10")),
            tts_voice=os.getenv("TTS_VOICE", "zh-CN-XiaoxiaoNeural"),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_S", "15.0")),
            tts_timeout_s=float(os.getenv("TTS_TIMEOUT_S", "60.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )

        if not config.llm_api_key:
            raise ValueError("LLM_API_KEY is required but not set")

        if not config.stt_api_key:
            logger.warning("STT_API_KEY is not set. Speech-to-text will use LLM_API_KEY.")

        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# Modes
WAKE_WORD_MODE=true
SILENCE_MODE=false
OFFLINE_MODE=false
INTERRUPT_MODE=false

# Wake phrases (comma separated, case-insensitive)
TRIGGER_PHRASES=homo,como

# Capture (sample rate is fixed at 16000)
SAMPLE_RATE=16000
SAMPLES_PER_CHANNEL=512
RECORD_THRESHOLD=100000
MAX_RAW_SAMPLES=300000
VAD_THRESHOLD=0.5
WHISPER_MODEL_SIZE=base
RAW_TO_WAV=false
INPUT_RAW_PATH=data/input.raw
INPUT_WAV_PATH=data/input.wav

# Speech-to-text (defaults to LLM_API_KEY when empty)
STT_API_KEY=
STT_BASE_URL=
STT_MODEL=whisper-1
STT_LANGUAGE=zh

# Dialogue engine
LLM_API_KEY=your_api_key_here
LLM_MODEL=anthropic/claude-3-5-nano
LLM_BASE_URL=https://openrouter.ai/api/v1
MAX_CONVERSATION_HISTORY=10

# Speech output
TTS_VOICE=zh-CN-XiaoxiaoNeural

# Timeouts in seconds
REQUEST_TIMEOUT_S=15.0
TTS_TIMEOUT_S=60.0

# Logging
LOG_LEVEL=INFO
LOG_FILE=
"""

    with open(path, "w") as f:
        f.write(example_content)

    logger.info(f"Created example environment file at {path}")


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_handler: Optional[logging.Handler] = None,
):
    handlers: List[logging.Handler] = [console_handler or logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )
