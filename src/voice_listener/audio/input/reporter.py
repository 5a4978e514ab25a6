"""Utterance reporting: wake phrase resolution, recognition and reply dispatch."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
import unicodedata
from typing import Awaitable, Optional, Type, TypeVar, TYPE_CHECKING

from ...config.settings import ListenerConfig
from ...core.events import LISTENING_STARTED, LISTENING_STOPPED
from ...core.orchestrator import ReplyOrchestrator
from ...core.shutdown import StopSignal
from ...core.state import DialoguePhase, WakeGate
from ...core.worker import QueueWorker
from ...errors import (
    ConversionError,
    DialogueError,
    RecognitionError,
    SpeechQualityError,
    VoiceListenerError,
)
from ..convert import raw_file_to_wav
from .decoder import Decoder
from .types import Utterance

if TYPE_CHECKING:
    from ...llm.dialogue import DialogueEngine
    from .stt import SpeechToText

logger = logging.getLogger("Reporter")

T = TypeVar("T")


def clean_recognized_text(text: str) -> str:
    """Trim whitespace and one trailing punctuation mark, e.g. '你好。' -> '你好'."""
    t = text.strip()
    if t and unicodedata.category(t[-1]).startswith("P"):
        t = t[:-1].rstrip()
    return t


class UtteranceReporter:
    """
    Handles one closed utterance at a time.

    While awaiting the wake phrase, only the decoder hypothesis is checked.
    Once woken, the capture is persisted, recognized and answered.
    """

    def __init__(
        self,
        config: ListenerConfig,
        decoder: Decoder,
        wake_gate: WakeGate,
        stt: "SpeechToText",
        dialogue: "DialogueEngine",
        orchestrator: ReplyOrchestrator,
    ):
        self._config = config
        self._decoder = decoder
        self._wake_gate = wake_gate
        self._stt = stt
        self._dialogue = dialogue
        self._orchestrator = orchestrator
        self._triggers = frozenset(p.lower() for p in config.trigger_phrases)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def report(self, utterance: Utterance) -> None:
        if self._wake_gate.phase is DialoguePhase.AWAITING_WAKE:
            self._resolve_wake_phrase()
            return

        animating = not self._config.silence_mode
        if animating:
            self._orchestrator.signal(LISTENING_STARTED)
        try:
            self._recognize_and_reply(utterance)
        finally:
            if animating:
                self._orchestrator.signal(LISTENING_STOPPED)

    def close(self) -> None:
        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def _resolve_wake_phrase(self) -> None:
        hyp, _ = self._decoder.hypothesis()
        if hyp:
            if hyp.strip().lower() in self._triggers:
                logger.info("Wake phrase %r matched, waking up...", hyp)
                self._wake_gate.release()
            else:
                logger.debug("Hypothesis %r is not a wake phrase", hyp)
            return
        logger.info("No wake phrase detected")

    def _recognize_and_reply(self, utterance: Utterance) -> None:
        data = utterance.to_bytes()

        # Reduce sensitivity
        if len(data) < self._config.record_threshold:
            logger.info("Capture of %d bytes is below threshold %d, discarding", len(data), self._config.record_threshold)
            return

        self._persist(data)

        success = False
        text = ""
        error_msg = ""
        try:
            candidates = self._call(
                self._stt.recognize(data, "pcm", utterance.sample_rate),
                RecognitionError,
            )
        except SpeechQualityError as e:
            logger.info("Speech not understood: %s", e)
            return
        except RecognitionError as e:
            error_msg = f"语音在线识别出错：{e}"
        else:
            text = clean_recognized_text(candidates[0]) if candidates else ""
            if not text:
                logger.info("Empty recognition result, discarding")
                return
            success = True
            logger.info("Recognized: %s", text)

        if not success:
            if self._config.silence_mode:
                logger.warning("%s", error_msg)
            else:
                # Errors are shown, not spoken
                self._orchestrator.deliver_reply([error_msg])
        elif self._config.silence_mode:
            self._answer(text)
        else:
            self._orchestrator.deliver_text(text)

        if self._config.raw_to_wav:
            self._convert_to_wav()

    def _answer(self, text: str) -> None:
        try:
            replies = self._call(self._dialogue.query(text), DialogueError)
        except DialogueError as e:
            logger.warning("Dialogue engine failed: %s", e)
            replies = [f"连接到对话引擎出错: {e}"]

        self._orchestrator.deliver_input_only(text)
        if self._config.offline_mode:
            self._orchestrator.deliver_reply(replies)
        else:
            self._orchestrator.deliver_reply_with_voice(replies)

    def _persist(self, data: bytes) -> None:
        path = self._config.input_raw_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.warning("Failed to save raw capture to %s: %s", path, e)
            return
        logger.info("Saved raw capture to %s (%d bytes)", path, len(data))

    def _convert_to_wav(self) -> None:
        try:
            wav_path = raw_file_to_wav(
                self._config.input_raw_path,
                self._config.input_wav_path,
                self._config.sample_rate,
            )
        except ConversionError as e:
            logger.warning("Convert raw input %s to wav failed: %s", self._config.input_raw_path, e)
            return
        logger.info("Encoded raw capture as wav: %s", wav_path)

    def _call(self, coro: Awaitable[T], error_cls: Type[VoiceListenerError]) -> T:
        """Run a service call on this thread's loop with the request timeout."""
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        timeout = self._config.request_timeout_s
        try:
            return self._loop.run_until_complete(asyncio.wait_for(coro, timeout=timeout))
        except asyncio.TimeoutError as e:
            raise error_cls(f"timed out after {timeout:.0f}s") from e


class ReportWorker(QueueWorker[Utterance]):
    """
    Runs the reporter off the audio callback thread.

    submit() is called from the callback and never blocks. The worker stays busy
    from hand-off until the report returns; the Listener does not advance while
    it is busy, so utterances are reported strictly one at a time.
    """

    def __init__(
        self,
        stop_signal: StopSignal,
        reporter: UtteranceReporter,
        utterance_queue: Optional["queue.Queue[Utterance]"] = None,
    ):
        super().__init__(
            name="ReportThread",
            stop_signal=stop_signal,
            input_queue=utterance_queue if utterance_queue is not None else queue.Queue(),
            poll_interval_s=0.1,
        )
        self._reporter = reporter
        self._busy = threading.Event()

    def is_busy(self) -> bool:
        return self._busy.is_set()

    def submit(self, utterance: Utterance) -> None:
        self._busy.set()
        self._input_queue.put_nowait(utterance)

    def handle(self, item: Utterance) -> None:
        try:
            self._reporter.report(item)
        except Exception as e:
            logger.error(f"Error reporting utterance: {e}", exc_info=True)
        finally:
            if self._input_queue.empty():
                self._busy.clear()

    def cleanup(self) -> None:
        self._reporter.close()
        logger.info("Report worker stopped")
