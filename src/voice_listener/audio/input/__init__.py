"""Audio input subsystem - captures audio, segments utterances and reports them."""

from __future__ import annotations

from typing import Callable, Optional, TYPE_CHECKING

from ...config.settings import ListenerConfig
from ...core.orchestrator import ReplyOrchestrator
from ...core.shutdown import GracefulShutdown
from ...core.state import PlaybackState, WakeGate
from ...errors import FatalError

from .types import AudioFormat, AudioFrame, FrameConfig, FrameStatus, Utterance
from .decoder import Decoder
from .listener import Listener, ListenerState
from .mic import Mic
from .reporter import ReportWorker, UtteranceReporter, clean_recognized_text
from .stt import SpeechToText

if TYPE_CHECKING:
    from ...llm.dialogue import DialogueEngine


class AudioInput:
    """
    Audio input subsystem facade.

    Responsibilities:
    - Microphone capture (Mic thread, frames handled on the driver callback)
    - Utterance segmentation (Listener state machine)
    - Reporting closed utterances (ReportWorker thread)
    """

    def __init__(
        self,
        shutdown_signal: GracefulShutdown,
        config: ListenerConfig,
        playback: PlaybackState,
        wake_gate: WakeGate,
        orchestrator: ReplyOrchestrator,
        decoder: Decoder,
        stt: SpeechToText,
        dialogue: "DialogueEngine",
        on_fatal: Callable[[FatalError], None],
    ):
        reporter = UtteranceReporter(
            config=config,
            decoder=decoder,
            wake_gate=wake_gate,
            stt=stt,
            dialogue=dialogue,
            orchestrator=orchestrator,
        )
        self._report_worker = ReportWorker(stop_signal=shutdown_signal, reporter=reporter)
        self.listener = Listener(
            decoder=decoder,
            playback=playback,
            wake_gate=wake_gate,
            on_utterance=self._report_worker.submit,
            interrupt_mode=config.interrupt_mode,
            is_reporter_busy=self._report_worker.is_busy,
            sample_rate=config.sample_rate,
        )
        self._mic = Mic(
            stop_signal=shutdown_signal,
            audio_format=AudioFormat(sample_rate=config.sample_rate),
            frame_cfg=FrameConfig(samples_per_channel=config.samples_per_channel),
            handler=self.listener.handle_frame,
            on_fatal=on_fatal,
            device=config.input_device,
        )

    def start(self) -> None:
        """Open the first utterance, then start reporting and capture threads."""
        self.listener.start()
        self._report_worker.start()
        self._mic.start()

    def join(self) -> None:
        self._mic.join()
        self._report_worker.join()


__all__ = [
    "AudioInput",
    "AudioFormat",
    "AudioFrame",
    "FrameConfig",
    "FrameStatus",
    "Decoder",
    "Listener",
    "ListenerState",
    "Mic",
    "ReportWorker",
    "SpeechToText",
    "Utterance",
    "UtteranceReporter",
    "clean_recognized_text",
]
