"""Backend configuration and factory"""

import logging
from typing import Optional

from .config import StudioConfig
from .providers import (
    GenerationBackend,
    ProviderType,
    MockGenerationBackend,
    GeminiBackend,
)

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating generation backends from configuration"""

    @staticmethod
    def create_from_config(config: StudioConfig, provider_type: Optional[str] = None) -> GenerationBackend:
        """
        Create a backend from configuration.

        Falls back to the mock backend when the requested provider is unknown
        or has no API key, logging a warning either way.

        Args:
            config: Studio configuration (usually ``StudioConfig.from_env()``)
            provider_type: Override provider name ("gemini", "mock")

        Returns:
            Configured GenerationBackend instance
        """
        provider_enum = config.backend
        if provider_type:
            try:
                provider_enum = ProviderType(provider_type.lower())
            except ValueError:
                logger.warning("Invalid backend '%s', falling back to mock", provider_type)
                provider_enum = ProviderType.MOCK

        if provider_enum == ProviderType.GEMINI:
            if not config.api_key:
                logger.warning("GEMINI_API_KEY not set, falling back to mock backend")
                return MockGenerationBackend()
            return GeminiBackend(config.backend_config(ProviderType.GEMINI))

        return MockGenerationBackend(config.backend_config(ProviderType.MOCK))

    @staticmethod
    def create_mock(latency: float = 0.0) -> GenerationBackend:
        """Create mock backend (for testing and dry runs)"""
        return MockGenerationBackend(latency=latency)


def get_default_backend() -> GenerationBackend:
    """Get default backend based on environment"""
    return BackendFactory.create_from_config(StudioConfig.from_env())
