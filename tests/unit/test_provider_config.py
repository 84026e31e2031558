"""Tests for the backend factory"""

from unittest.mock import patch

from core.config import StudioConfig
from core.provider_config import BackendFactory, get_default_backend
from core.providers import GeminiBackend, MockGenerationBackend
from core.providers.base import ProviderType


class TestBackendFactory:

    def test_gemini_with_key(self):
        config = StudioConfig(api_key="test-key-1234567890")
        with patch("core.providers.gemini.genai.Client"):
            backend = BackendFactory.create_from_config(config)
        assert isinstance(backend, GeminiBackend)
        assert backend.config.api_key == "test-key-1234567890"

    def test_gemini_without_key_falls_back_to_mock(self, caplog):
        backend = BackendFactory.create_from_config(StudioConfig(api_key=None))
        assert isinstance(backend, MockGenerationBackend)
        assert "falling back to mock" in caplog.text

    def test_explicit_mock(self):
        config = StudioConfig(api_key="test-key-1234567890")
        backend = BackendFactory.create_from_config(config, provider_type="mock")
        assert isinstance(backend, MockGenerationBackend)

    def test_configured_mock(self):
        backend = BackendFactory.create_from_config(StudioConfig(backend=ProviderType.MOCK))
        assert backend.name == "mock"

    def test_invalid_provider_falls_back_to_mock(self, caplog):
        backend = BackendFactory.create_from_config(StudioConfig(), provider_type="sora")
        assert isinstance(backend, MockGenerationBackend)
        assert "Invalid backend" in caplog.text

    def test_create_mock_latency(self):
        backend = BackendFactory.create_mock(latency=0.5)
        assert backend.latency == 0.5


class TestDefaultBackend:

    def test_without_key_is_mock(self, monkeypatch):
        for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY", "STUDIO_BACKEND"):
            monkeypatch.delenv(name, raising=False)
        assert isinstance(get_default_backend(), MockGenerationBackend)

    def test_env_key_selects_gemini(self, monkeypatch):
        monkeypatch.delenv("STUDIO_BACKEND", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "env-key-1234567890")
        with patch("core.providers.gemini.genai.Client"):
            backend = get_default_backend()
        assert isinstance(backend, GeminiBackend)
        assert backend.config.api_key == "env-key-1234567890"
