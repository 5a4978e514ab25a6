"""Main Assistant orchestrator."""

import logging
import queue
from pathlib import Path
from typing import Callable, Iterator, Optional

from .chat import ChatWorker
from .events import ChatInputEvent, DisplayMessage, InputType, UpdateType
from .orchestrator import ReplyOrchestrator
from .runtime import RuntimeContext
from .shutdown import GracefulShutdown
from .state import PlaybackState, WakeGate

from ..audio import AudioInput, AudioOutput
from ..audio.input.decoder import Decoder
from ..audio.input.stt import SpeechToText
from ..audio.output.tts import TTSEngine
from ..config.settings import ListenerConfig, load_config
from ..errors import FatalError
from ..llm.dialogue import DialogueEngine, LLMDialogue
from ..llm.llm import LLM

logger = logging.getLogger("Assistant")


class Assistant:
    """
    Wires the listener pipeline together.

    Manages:
    - Audio input subsystem (mic + listener + reporter)
    - Audio output subsystem (TTS playback holding the playback flag)
    - Chat thread (dialogue engine for recognized and typed text)

    Collaborators can be injected; missing ones are built from the config.
    """

    def __init__(
        self,
        config: Optional[ListenerConfig] = None,
        config_path: Optional[Path] = None,
        on_exit_request: Optional[Callable[[], None]] = None,
        decoder: Optional[Decoder] = None,
        stt: Optional[SpeechToText] = None,
        dialogue: Optional[DialogueEngine] = None,
        tts_engine: Optional[TTSEngine] = None,
    ):
        self._config = config or load_config(config_path)

        self.shutdown_signal = GracefulShutdown()
        self.runtime = RuntimeContext.create()
        self.playback = PlaybackState()
        self.wake_gate = WakeGate(wake_word_mode=self._config.wake_word_mode)
        self.orchestrator = ReplyOrchestrator(self.runtime, offline_mode=self._config.offline_mode)
        self.fatal_error: Optional[FatalError] = None
        self._started = False
        self.on_exit_request = on_exit_request

        # Only one of the reporter (silence mode) or the chat worker queries the dialogue
        dialogue = dialogue or self._build_dialogue()

        self.audio_input = AudioInput(
            shutdown_signal=self.shutdown_signal,
            config=self._config,
            playback=self.playback,
            wake_gate=self.wake_gate,
            orchestrator=self.orchestrator,
            decoder=decoder or self._build_decoder(),
            stt=stt or self._build_stt(),
            dialogue=dialogue,
            on_fatal=self._on_fatal,
        )
        self.audio_output = AudioOutput(
            shutdown_signal=self.shutdown_signal,
            audio_output_queue=self.runtime.audio_output_queue,
            display_queue=self.runtime.display_queue,
            playback=self.playback,
            config=self._config,
            tts_engine=tts_engine,
        )
        self.chat = ChatWorker(
            shutdown_signal=self.shutdown_signal,
            input_queue=self.runtime.chat_input_queue,
            dialogue=dialogue,
            orchestrator=self.orchestrator,
            offline_mode=self._config.offline_mode,
            timeout_s=self._config.request_timeout_s,
        )

    @property
    def config(self) -> ListenerConfig:
        return self._config

    def _build_decoder(self) -> Decoder:
        from ..audio.input.decoder_silero import SileroDecoder

        return SileroDecoder(
            sample_rate=self._config.sample_rate,
            threshold=self._config.vad_threshold,
            max_raw_samples=self._config.max_raw_samples,
            whisper_model_size=self._config.whisper_model_size,
        )

    def _build_stt(self) -> SpeechToText:
        from ..audio.input.stt_openai import OpenAISpeechToText

        return OpenAISpeechToText(
            api_key=self._config.effective_stt_api_key,
            model=self._config.stt_model,
            base_url=self._config.stt_base_url,
            language=self._config.stt_language,
        )

    def _build_dialogue(self) -> DialogueEngine:
        llm = LLM(
            api_key=self._config.llm_api_key,
            model=self._config.llm_model,
            base_url=self._config.llm_base_url,
        )
        return LLMDialogue(llm, max_conversation_history=self._config.max_conversation_history)

    def _on_fatal(self, error: FatalError) -> None:
        if self.fatal_error is None:
            logger.critical("Fatal error, shutting down: %s", error)
            self.fatal_error = error
        self.shutdown_signal.stop()
        if self.on_exit_request:
            self.on_exit_request()

    def start(self):
        """Start all background threads. Raises FatalError if the decoder cannot start."""
        try:
            self.audio_input.start()
        except FatalError as e:
            self._on_fatal(e)
            raise
        self.audio_output.start()
        self.chat.start()
        self._started = True

    def stop(self):
        """Signal threads to stop and wait for them to join."""
        self.shutdown_signal.stop()
        if not self._started:
            return
        self.audio_input.join()
        self.audio_output.join()
        self.chat.join()

    def run_headless(self, poll_interval_s: float = 0.1) -> None:
        """Run without a UI, logging every display message until shutdown."""
        self.start()
        try:
            while not self.shutdown_signal.wait(poll_interval_s):
                for msg in self.get_messages():
                    if msg.update_type is UpdateType.TEXT:
                        logger.info("%s: %s", msg.speaker, msg.text)
        finally:
            self.stop()

    def process_input(self, text: str):
        """Submit typed user text to the chat path."""
        if not text or not text.strip():
            return

        if text.lower() in ["quit", "exit"]:
            self.shutdown_signal.stop()
            if self.on_exit_request:
                self.on_exit_request()
            return

        self.orchestrator.deliver_input_only(text)
        self.runtime.chat_input_queue.put(ChatInputEvent(type=InputType.TEXT, text=text))

    def get_messages(self) -> Iterator[DisplayMessage]:
        """Yields all pending messages from the display queue."""
        while not self.runtime.display_queue.empty():
            try:
                yield self.runtime.display_queue.get_nowait()
                self.runtime.display_queue.task_done()
            except queue.Empty:
                break
