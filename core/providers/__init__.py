"""Generation backend interfaces and implementations"""

from .base import (
    GenerationBackend,
    BackendConfig,
    AnalysisResult,
    VideoOperation,
    ProviderType,
)
from .mock import MockGenerationBackend
from .gemini import GeminiBackend

__all__ = [
    # Base interfaces
    "GenerationBackend",
    "BackendConfig",
    "AnalysisResult",
    "VideoOperation",
    "ProviderType",

    # Implementations
    "MockGenerationBackend",
    "GeminiBackend",
]
