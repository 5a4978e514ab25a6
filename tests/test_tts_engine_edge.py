"""Tests for Edge TTS engine."""

import pytest
from unittest.mock import MagicMock, patch

from voice_listener.audio.output.tts import TTSEngine
from voice_listener.audio.output.tts_engine_edge import EdgeTTSEngine
from voice_listener.errors import SynthesisError


def test_tts_engine_abc_requires_generate_stream():
    """Instantiating a TTSEngine subclass without implementing generate_stream fails early."""
    class IncompleteEngine(TTSEngine):
        pass
    with pytest.raises(TypeError, match="generate_stream"):
        IncompleteEngine()


def _communicate(*chunks):
    mock_communicate = MagicMock()

    async def stream():
        for c in chunks:
            yield c

    mock_communicate.stream = stream
    return mock_communicate


def _segment(pcm: bytes):
    mock_segment = MagicMock()
    mock_segment.raw_data = pcm
    mock_segment.frame_rate = 24000
    mock_segment.channels = 1
    mock_segment.set_sample_width.return_value = mock_segment
    return mock_segment


@pytest.mark.asyncio
async def test_generate_stream_yields_decoded_pcm():
    fake_pcm = b"\x00\x01" * 100
    communicate = _communicate(
        {"type": "WordBoundary", "offset": 0},
        {"type": "audio", "data": b"fake-mp3-bytes"},
    )

    with patch("voice_listener.audio.output.tts_engine_edge.edge_tts") as mock_et:
        mock_et.Communicate.return_value = communicate
        with patch("voice_listener.audio.output.tts_engine_edge.AudioSegment") as mock_as:
            mock_as.from_file.return_value = _segment(fake_pcm)
            engine = EdgeTTSEngine("zh-CN-XiaoxiaoNeural")
            chunks = [c async for c in engine.generate_stream("你好")]

    assert len(chunks) == 1
    assert chunks[0].data == fake_pcm
    assert chunks[0].sample_rate == 24000
    assert chunks[0].channels == 1
    mock_et.Communicate.assert_called_once_with("你好", "zh-CN-XiaoxiaoNeural")


@pytest.mark.asyncio
async def test_voice_override():
    with patch("voice_listener.audio.output.tts_engine_edge.edge_tts") as mock_et:
        mock_et.Communicate.return_value = _communicate({"type": "audio", "data": b"mp3"})
        with patch("voice_listener.audio.output.tts_engine_edge.AudioSegment") as mock_as:
            mock_as.from_file.return_value = _segment(b"\x00\x00")
            engine = EdgeTTSEngine("zh-CN-XiaoxiaoNeural")
            _ = [c async for c in engine.generate_stream("hi", voice="en-US-JennyNeural")]

    mock_et.Communicate.assert_called_once_with("hi", "en-US-JennyNeural")


@pytest.mark.asyncio
async def test_large_stream_decoded_in_blocks():
    with patch("voice_listener.audio.output.tts_engine_edge.edge_tts") as mock_et:
        mock_et.Communicate.return_value = _communicate(
            {"type": "audio", "data": b"a" * 8},
            {"type": "audio", "data": b"b" * 8},
            {"type": "audio", "data": b"c" * 3},
        )
        with patch("voice_listener.audio.output.tts_engine_edge.AudioSegment") as mock_as:
            mock_as.from_file.return_value = _segment(b"\x00\x00")
            with patch("voice_listener.audio.output.tts_engine_edge.MP3_ACCUMULATE_BYTES", 8):
                engine = EdgeTTSEngine()
                chunks = [c async for c in engine.generate_stream("hi")]

    assert len(chunks) == 3


@pytest.mark.asyncio
async def test_no_audio_raises_synthesis_error():
    with patch("voice_listener.audio.output.tts_engine_edge.edge_tts") as mock_et:
        mock_et.Communicate.return_value = _communicate({"type": "WordBoundary"})
        engine = EdgeTTSEngine()
        with pytest.raises(SynthesisError):
            _ = [c async for c in engine.generate_stream("hi")]


@pytest.mark.asyncio
async def test_decode_failure_raises_synthesis_error():
    with patch("voice_listener.audio.output.tts_engine_edge.edge_tts") as mock_et:
        mock_et.Communicate.return_value = _communicate({"type": "audio", "data": b"garbage"})
        with patch("voice_listener.audio.output.tts_engine_edge.AudioSegment") as mock_as:
            mock_as.from_file.side_effect = Exception("Decoding failed")
            engine = EdgeTTSEngine()
            with pytest.raises(SynthesisError, match="Decoding failed"):
                _ = [c async for c in engine.generate_stream("hi")]
