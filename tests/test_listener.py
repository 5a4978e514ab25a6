"""Tests for the Listener speech/silence state machine."""

import numpy as np
import pytest
from unittest.mock import MagicMock

from voice_listener.audio.input.listener import Listener, ListenerState
from voice_listener.audio.input.types import FrameStatus, Utterance
from voice_listener.core.state import PlaybackState, WakeGate
from voice_listener.errors import DecoderError

from tests.fakes import ScriptedDecoder, frames_for_ms, make_frame


def make_listener(decoder, utterances, playback=None, interrupt_mode=False, busy=None, wake_word_mode=False):
    listener = Listener(
        decoder=decoder,
        playback=playback or PlaybackState(),
        wake_gate=WakeGate(wake_word_mode=wake_word_mode),
        on_utterance=utterances.append,
        interrupt_mode=interrupt_mode,
        is_reporter_busy=busy,
    )
    listener.start()
    return listener


def feed(listener, flags):
    return [listener.handle_frame(make_frame(i + 1)) for i, _ in enumerate(flags)]


class TestListenerSegmentation:
    def test_initial_state_is_idle_and_first_utterance_opened(self):
        decoder = ScriptedDecoder()
        listener = make_listener(decoder, [])

        assert listener.state is ListenerState.IDLE
        assert decoder.events == ["start"]

    @pytest.mark.parametrize(
        "flags, expected_closes",
        [
            ([False, False, False], 0),
            ([True, True, False], 1),
            ([True, False, True, False], 2),
            ([False, True, True, False, False, True, False, True, True, True, False], 3),
            ([True, True, True], 0),  # still open at the end
        ],
    )
    def test_one_close_per_contiguous_speech_run(self, flags, expected_closes):
        decoder = ScriptedDecoder(flags)
        utterances = []
        listener = make_listener(decoder, utterances)

        statuses = feed(listener, flags)

        assert all(s is FrameStatus.CONTINUE for s in statuses)
        assert len(utterances) == expected_closes
        assert decoder.events.count("end") == expected_closes

    def test_close_is_always_followed_by_reopen(self):
        flags = [True, False, True, True, False, False, True, False]
        decoder = ScriptedDecoder(flags)
        listener = make_listener(decoder, [])

        feed(listener, flags)

        lifecycle = [e for e in decoder.events if e in ("start", "end")]
        # start, (end, start)*
        assert lifecycle[0] == "start"
        for i in range(1, len(lifecycle), 2):
            assert lifecycle[i] == "end"
            assert lifecycle[i + 1] == "start"

    def test_state_transitions(self):
        decoder = ScriptedDecoder([True, True, False])
        listener = make_listener(decoder, [])

        listener.handle_frame(make_frame())
        assert listener.state is ListenerState.CAPTURING
        listener.handle_frame(make_frame())
        assert listener.state is ListenerState.CAPTURING
        listener.handle_frame(make_frame())
        assert listener.state is ListenerState.IDLE

    def test_utterance_carries_captured_samples(self):
        flags = [True, True, False]
        decoder = ScriptedDecoder(flags)
        utterances = []
        listener = make_listener(decoder, utterances)

        feed(listener, flags)

        assert len(utterances) == 1
        utterance = utterances[0]
        assert isinstance(utterance, Utterance)
        assert utterance.sample_rate == 16000
        assert utterance.pcm.dtype == np.int16
        assert len(utterance.pcm) == 3 * 512
        assert utterance.started_at_s <= utterance.ended_at_s

    def test_speech_onset_logged_once_per_utterance(self, caplog):
        flags = [True, True, True, False]
        decoder = ScriptedDecoder(flags)
        listener = make_listener(decoder, [])

        with caplog.at_level("INFO", logger="Listener"):
            feed(listener, flags)

        onsets = [r for r in caplog.records if "Speech detected" in r.getMessage()]
        assert len(onsets) == 1

    def test_300ms_speech_then_200ms_silence_yields_one_utterance(self):
        flags = [True] * frames_for_ms(300) + [False] * frames_for_ms(200)
        decoder = ScriptedDecoder(flags)
        utterances = []
        listener = make_listener(decoder, utterances)

        feed(listener, flags)

        assert len(utterances) == 1
        assert listener.state is ListenerState.IDLE


class TestListenerGating:
    def test_playback_skips_frames_without_touching_decoder(self):
        decoder = ScriptedDecoder([True, False] * 5)
        playback = PlaybackState()
        utterances = []
        listener = make_listener(decoder, utterances, playback=playback)
        playback.start()

        statuses = feed(listener, range(10))

        assert all(s is FrameStatus.CONTINUE for s in statuses)
        assert decoder.events == ["start"]
        assert utterances == []
        assert listener.state is ListenerState.IDLE

    def test_interrupt_mode_keeps_listening_during_playback(self):
        flags = [True, False]
        decoder = ScriptedDecoder(flags)
        playback = PlaybackState()
        utterances = []
        listener = make_listener(decoder, utterances, playback=playback, interrupt_mode=True)
        playback.start()

        feed(listener, flags)

        assert len(utterances) == 1

    def test_frames_processed_again_after_playback_stops(self):
        flags = [True, False]
        decoder = ScriptedDecoder(flags)
        playback = PlaybackState()
        utterances = []
        listener = make_listener(decoder, utterances, playback=playback)

        playback.start()
        feed(listener, [None, None])
        playback.stop()
        feed(listener, flags)

        assert len(utterances) == 1

    def test_busy_reporter_holds_back_decoder(self):
        decoder = ScriptedDecoder([True, False])
        busy = [True]
        listener = make_listener(decoder, [], busy=lambda: busy[0])

        listener.handle_frame(make_frame())
        assert decoder.events == ["start"]

        busy[0] = False
        listener.handle_frame(make_frame())
        assert decoder.events == ["start", "process"]


class TestListenerFailures:
    def test_start_failure_raises_decoder_error(self):
        decoder = ScriptedDecoder()
        decoder.start_ok = False
        listener = Listener(
            decoder=decoder,
            playback=PlaybackState(),
            wake_gate=WakeGate(),
            on_utterance=lambda u: None,
        )
        with pytest.raises(DecoderError):
            listener.start()

    def test_process_failure_aborts(self):
        decoder = ScriptedDecoder([True])
        listener = make_listener(decoder, [])
        decoder.process_ok = False

        assert listener.handle_frame(make_frame()) is FrameStatus.ABORT

    def test_reopen_failure_aborts(self):
        flags = [True, False]
        decoder = ScriptedDecoder(flags)
        utterances = []
        listener = make_listener(decoder, utterances)
        decoder.start_ok = False

        assert listener.handle_frame(make_frame()) is FrameStatus.CONTINUE
        assert listener.handle_frame(make_frame()) is FrameStatus.ABORT
        assert len(utterances) == 1

    def test_failing_handoff_does_not_stop_segmentation(self):
        flags = [True, False, True, False]
        decoder = ScriptedDecoder(flags)
        on_utterance = MagicMock(side_effect=RuntimeError("reporter exploded"))
        listener = Listener(
            decoder=decoder,
            playback=PlaybackState(),
            wake_gate=WakeGate(wake_word_mode=False),
            on_utterance=on_utterance,
        )
        listener.start()

        statuses = feed(listener, flags)

        assert all(s is FrameStatus.CONTINUE for s in statuses)
        assert on_utterance.call_count == 2
        assert decoder.events.count("start") == 3
