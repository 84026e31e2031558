"""Abstract generation backend interface"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Sequence, AsyncIterator
from enum import Enum

from core.models import InputType, ScriptSegment, Character


class ProviderType(Enum):
    """Available generation backends"""
    MOCK = "mock"
    GEMINI = "gemini"


def _mask_secret(value: Optional[str]) -> str:
    """Mask a secret value for safe display in logs/repr."""
    if value is None:
        return "None"
    if len(value) <= 8:
        return "'***'"
    return f"'{value[:4]}...{value[-4:]}'"


@dataclass
class BackendConfig:
    """Configuration for a generation backend"""
    provider_type: ProviderType
    api_key: Optional[str] = None
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-3-pro-image-preview"
    video_model: str = "veo-3.1-fast-generate-preview"
    chat_model: str = "gemini-2.5-flash"
    chat_system_instruction: Optional[str] = None

    def __repr__(self) -> str:
        """Safe repr that masks API key to prevent accidental exposure in logs."""
        return (
            f"BackendConfig(provider_type={self.provider_type}, "
            f"api_key={_mask_secret(self.api_key)}, "
            f"text_model={self.text_model!r}, image_model={self.image_model!r}, "
            f"video_model={self.video_model!r}, chat_model={self.chat_model!r})"
        )


@dataclass
class AnalysisResult:
    """Result of the text-analysis capability"""
    input_type: InputType
    segments: List[ScriptSegment] = field(default_factory=list)


@dataclass
class VideoOperation:
    """
    Handle for a long-running video generation job.

    ``raw`` carries the provider's own operation object so the same backend
    can re-query it; callers treat it as opaque.
    """
    name: str
    done: bool = False
    error: Optional[str] = None
    raw: Any = None


class GenerationBackend(ABC):
    """
    Abstract base class for generative backends.

    The pipeline depends only on this interface; Gemini and the mock backend
    implement it. Every method must wrap provider failures in
    ``core.errors.BackendError``.
    """

    def __init__(self, config: BackendConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name identifier"""
        pass

    @abstractmethod
    async def analyze_text(self, text: str) -> AnalysisResult:
        """
        Classify raw text and break it into script segments.

        Args:
            text: Novel excerpt, script or idea (already length-bounded)

        Returns:
            AnalysisResult with the detected input type and ordered segments
        """
        pass

    @abstractmethod
    async def extract_characters(self, script_text: str) -> List[Character]:
        """
        Extract the main characters of a script.

        Args:
            script_text: Segment content joined by newlines, length-bounded

        Returns:
            Characters with visual prompts, in order of importance
        """
        pass

    @abstractmethod
    async def generate_image(self, prompt: str) -> str:
        """
        Render an image.

        Args:
            prompt: Full image prompt

        Returns:
            Embeddable raster reference (a ``data:`` URL or an http URL)
        """
        pass

    @abstractmethod
    async def start_video_generation(self, prompt: str, image: Optional[str] = None) -> VideoOperation:
        """
        Submit a video generation job.

        Args:
            prompt: Video prompt
            image: Optional conditioning image as a data URL or bare base64

        Returns:
            Operation handle, usually not yet done
        """
        pass

    @abstractmethod
    async def poll_video_operation(self, operation: VideoOperation) -> VideoOperation:
        """Re-query a job's status. Must be idempotent."""
        pass

    @abstractmethod
    async def resolve_video_result(self, operation: VideoOperation) -> Optional[str]:
        """
        Turn a finished operation into a fetchable locator.

        Returns:
            Complete, fetchable media locator, or None when the job produced
            no video
        """
        pass

    @abstractmethod
    async def open_chat_stream(self, history: Sequence[Dict[str, Any]], message: str) -> AsyncIterator[str]:
        """
        Open a streamed chat reply.

        Args:
            history: Prior turns as ``{"role": ..., "parts": [{"text": ...}]}``
            message: The new user message

        Returns:
            Finite, non-restartable async iterator of text fragments
        """
        pass
