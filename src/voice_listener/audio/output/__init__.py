"""Audio output subsystem - TTS and playback."""

from __future__ import annotations

import queue

from ...config.settings import ListenerConfig
from ...core.events import AudioOutputRequest, DisplayMessage
from ...core.shutdown import GracefulShutdown
from ...core.state import PlaybackState
from .speaker import TTSWorker
from .tts import TTSEngine
from .tts_engine_edge import EdgeTTSEngine
from .types import AudioChunk


class AudioOutput:
    """
    Audio output subsystem facade: one TTS thread that synthesizes and plays
    each request while holding the playback flag.
    """

    def __init__(
        self,
        shutdown_signal: GracefulShutdown,
        audio_output_queue: "queue.Queue[AudioOutputRequest]",
        display_queue: "queue.Queue[DisplayMessage]",
        playback: PlaybackState,
        config: ListenerConfig,
        tts_engine: TTSEngine | None = None,
    ):
        self._tts_worker = TTSWorker(
            name="TTSThread",
            stop_signal=shutdown_signal,
            input_queue=audio_output_queue,
            display_queue=display_queue,
            tts_engine=tts_engine or EdgeTTSEngine(voice=config.tts_voice),
            playback=playback,
            timeout_s=config.tts_timeout_s,
        )

    def start(self) -> None:
        self._tts_worker.start()

    def join(self) -> None:
        self._tts_worker.join()


__all__ = [
    "AudioOutput",
    "AudioOutputRequest",
    "AudioChunk",
    "EdgeTTSEngine",
    "TTSEngine",
    "TTSWorker",
]
