"""Tests for environment-driven configuration"""

import pytest

from core.config import PipelineLimits, StudioConfig
from core.providers.base import ProviderType

STUDIO_ENVS = [
    "GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY", "STUDIO_BACKEND",
    "STUDIO_TEXT_MODEL", "STUDIO_CHAT_INSTRUCTION", "STUDIO_IMAGE_MODEL", "STUDIO_VIDEO_MODEL", "STUDIO_CHAT_MODEL",
    "STUDIO_POLL_INTERVAL", "STUDIO_POLL_MAX_ATTEMPTS", "STUDIO_POLL_TIMEOUT",
    "STUDIO_POLL_BACKOFF", "STUDIO_POLL_MAX_INTERVAL",
    "STUDIO_ANALYSIS_CHAR_LIMIT", "STUDIO_EXTRACTION_CHAR_LIMIT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in STUDIO_ENVS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestStudioConfig:

    def test_defaults(self, clean_env):
        config = StudioConfig.from_env()
        assert config.backend == ProviderType.GEMINI
        assert config.api_key is None
        assert config.video_model == "veo-3.1-fast-generate-preview"
        assert config.polling.interval == 5.0
        assert config.polling.max_attempts == 120
        assert config.polling.timeout == 900.0
        assert config.limits == PipelineLimits(5000, 8000)

    def test_api_key_fallback_order(self, clean_env):
        clean_env.setenv("API_KEY", "third")
        clean_env.setenv("GOOGLE_API_KEY", "second")
        assert StudioConfig.from_env().api_key == "second"
        clean_env.setenv("GEMINI_API_KEY", "first")
        assert StudioConfig.from_env().api_key == "first"

    def test_overrides(self, clean_env):
        clean_env.setenv("STUDIO_BACKEND", "MOCK")
        clean_env.setenv("STUDIO_VIDEO_MODEL", "veo-3.1-generate-preview")
        clean_env.setenv("STUDIO_POLL_INTERVAL", "2.5")
        clean_env.setenv("STUDIO_POLL_BACKOFF", "1.5")
        clean_env.setenv("STUDIO_ANALYSIS_CHAR_LIMIT", "100")

        config = StudioConfig.from_env()

        assert config.backend == ProviderType.MOCK
        assert config.video_model == "veo-3.1-generate-preview"
        assert config.polling.interval == 2.5
        assert config.polling.backoff == 1.5
        assert config.limits.analysis_char_limit == 100

    def test_chat_instruction(self, clean_env):
        assert StudioConfig.from_env().chat_instruction is None
        assert StudioConfig.from_env().backend_config().chat_system_instruction is None

        clean_env.setenv("STUDIO_CHAT_INSTRUCTION", "Answer like a cinematographer.")
        config = StudioConfig.from_env()

        assert config.chat_instruction == "Answer like a cinematographer."
        assert config.backend_config().chat_system_instruction == "Answer like a cinematographer."

    def test_zero_means_unbounded(self, clean_env):
        clean_env.setenv("STUDIO_POLL_MAX_ATTEMPTS", "0")
        clean_env.setenv("STUDIO_POLL_TIMEOUT", "0")
        config = StudioConfig.from_env()
        assert config.polling.max_attempts is None
        assert config.polling.timeout is None

    def test_bad_values_fall_back(self, clean_env):
        clean_env.setenv("STUDIO_BACKEND", "sora")
        clean_env.setenv("STUDIO_POLL_INTERVAL", "soon")
        config = StudioConfig.from_env()
        assert config.backend == ProviderType.GEMINI
        assert config.polling.interval == 5.0

    def test_backend_config(self):
        config = StudioConfig(api_key="secret-key-abcdef", chat_model="gemini-2.5-pro")
        backend_config = config.backend_config(ProviderType.MOCK)
        assert backend_config.provider_type == ProviderType.MOCK
        assert backend_config.api_key == "secret-key-abcdef"
        assert backend_config.chat_model == "gemini-2.5-pro"

    def test_repr_masks_key(self):
        config = StudioConfig(api_key="secret-key-abcdef")
        assert "secret-key-abcdef" not in repr(config)
        assert "secr...cdef" in repr(config)
