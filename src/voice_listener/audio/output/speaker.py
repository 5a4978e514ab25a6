"""Speaker: speech output worker bracketing synthesis with the playback flag."""

from __future__ import annotations

import asyncio
import logging
import queue
from typing import Optional, TYPE_CHECKING

from ...core.events import AudioOutputRequest, DisplayMessage
from ...core.orchestrator import ASSISTANT_SPEAKER
from ...core.shutdown import StopSignal
from ...core.state import PlaybackState
from ...core.worker import QueueWorker
from ...errors import SynthesisError
from .playback import play_stream

if TYPE_CHECKING:
    from .tts import TTSEngine

logger = logging.getLogger("Speaker")


class TTSWorker(QueueWorker[AudioOutputRequest]):
    """
    Consumes AudioOutputRequest from queue, synthesizes and plays it.

    Requests are spoken one at a time. The playback flag is set for the whole
    synthesis + playback of a request and cleared even when it fails; failures
    are appended to the conversation as a separate message.
    """

    def __init__(
        self,
        *,
        name: str,
        stop_signal: StopSignal,
        input_queue: "queue.Queue[AudioOutputRequest]",
        display_queue: "queue.Queue[DisplayMessage]",
        tts_engine: "TTSEngine",
        playback: PlaybackState,
        timeout_s: float = 60.0,
        poll_interval_s: float = 0.1,
    ):
        super().__init__(
            name=name,
            stop_signal=stop_signal,
            input_queue=input_queue,
            poll_interval_s=poll_interval_s,
        )
        self._display_queue = display_queue
        self._tts_engine = tts_engine
        self._playback = playback
        self._timeout_s = timeout_s
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def run(self) -> None:
        logger.info("TTSWorker started")
        try:
            super().run()
        finally:
            logger.info("TTSWorker stopped")

    def cleanup(self) -> None:
        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def handle(self, item: AudioOutputRequest) -> None:
        logger.info("TTSWorker: speaking %r", item.content[:50] if item.content else "")
        if self._loop is None:
            self._loop = asyncio.new_event_loop()

        self._playback.start()
        try:
            self._loop.run_until_complete(
                asyncio.wait_for(self._speak(item), timeout=self._timeout_s)
            )
        except asyncio.TimeoutError:
            self._report_failure(SynthesisError(f"timed out after {self._timeout_s:.0f}s"))
        except Exception as e:
            self._report_failure(e)
        finally:
            self._playback.stop()

    async def _speak(self, item: AudioOutputRequest) -> None:
        chunk_stream = self._tts_engine.generate_stream(item.content, voice=item.voice)
        written = await play_stream(chunk_stream, is_interrupted=self._stop_signal.is_set)
        logger.info("TTSWorker: played %d samples", written)

    def _report_failure(self, error: Exception) -> None:
        logger.warning("Speech synthesis failed: %s", error, exc_info=True)
        self._display_queue.put(
            DisplayMessage(speaker=ASSISTANT_SPEAKER, text=f"语音合成出错: {error}", is_user=False)
        )
