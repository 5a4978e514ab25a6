import pytest
import os

from voice_listener.config.settings import ListenerConfig


@pytest.fixture
def setup_test_env():
    """Setup test environment variables"""
    original_env = os.environ.copy()

    os.environ["LLM_API_KEY"] = "test_key_12345"
    os.environ["WAKE_WORD_MODE"] = "true"
    os.environ["SILENCE_MODE"] = "false"

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def config(tmp_path):
    """Capture-mode config writing into a temp dir."""
    return ListenerConfig(
        llm_api_key="test-key",
        wake_word_mode=False,
        record_threshold=100000,
        input_raw_path=tmp_path / "input.raw",
        input_wav_path=tmp_path / "input.wav",
        request_timeout_s=2.0,
    )
