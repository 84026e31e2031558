"""Environment-driven configuration for the studio core"""

import os
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .polling import PollingPolicy
from .providers.base import BackendConfig, ProviderType, _mask_secret

API_KEY_ENVS: Tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _resolve_from_env(envs: Sequence[str]) -> Optional[str]:
    for env_name in envs:
        value = os.getenv(env_name)
        if value:
            return value
    return None


@dataclass
class PipelineLimits:
    """Prefix lengths applied before text is sent to the backend"""
    analysis_char_limit: int = 5000
    extraction_char_limit: int = 8000


@dataclass
class StudioConfig:
    """
    Primary configuration entry point.

    Use ``StudioConfig.from_env()`` to pick up environment variables (the CLI
    loads ``.env`` first); the plain constructor gives documented defaults.
    """
    backend: ProviderType = ProviderType.GEMINI
    api_key: Optional[str] = None
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-3-pro-image-preview"
    video_model: str = "veo-3.1-fast-generate-preview"
    chat_model: str = "gemini-2.5-flash"
    chat_instruction: Optional[str] = None
    polling: PollingPolicy = field(default_factory=PollingPolicy)
    limits: PipelineLimits = field(default_factory=PipelineLimits)

    @classmethod
    def from_env(cls) -> "StudioConfig":
        defaults = cls()
        default_policy = PollingPolicy()

        backend_name = os.getenv("STUDIO_BACKEND", defaults.backend.value).strip().lower()
        try:
            backend = ProviderType(backend_name)
        except ValueError:
            backend = defaults.backend

        max_attempts = _env_int("STUDIO_POLL_MAX_ATTEMPTS", default_policy.max_attempts or 0)
        timeout = _env_float("STUDIO_POLL_TIMEOUT", default_policy.timeout or 0.0)

        return cls(
            backend=backend,
            api_key=_resolve_from_env(API_KEY_ENVS),
            text_model=os.getenv("STUDIO_TEXT_MODEL", defaults.text_model),
            image_model=os.getenv("STUDIO_IMAGE_MODEL", defaults.image_model),
            video_model=os.getenv("STUDIO_VIDEO_MODEL", defaults.video_model),
            chat_model=os.getenv("STUDIO_CHAT_MODEL", defaults.chat_model),
            chat_instruction=os.getenv("STUDIO_CHAT_INSTRUCTION") or None,
            polling=PollingPolicy(
                interval=_env_float("STUDIO_POLL_INTERVAL", default_policy.interval),
                max_attempts=max_attempts if max_attempts > 0 else None,
                timeout=timeout if timeout > 0 else None,
                backoff=_env_float("STUDIO_POLL_BACKOFF", default_policy.backoff),
                max_interval=_env_float("STUDIO_POLL_MAX_INTERVAL", default_policy.max_interval),
            ),
            limits=PipelineLimits(
                analysis_char_limit=_env_int("STUDIO_ANALYSIS_CHAR_LIMIT", PipelineLimits.analysis_char_limit),
                extraction_char_limit=_env_int("STUDIO_EXTRACTION_CHAR_LIMIT", PipelineLimits.extraction_char_limit),
            ),
        )

    def backend_config(self, provider_type: Optional[ProviderType] = None) -> BackendConfig:
        return BackendConfig(
            provider_type=provider_type or self.backend,
            api_key=self.api_key,
            text_model=self.text_model,
            image_model=self.image_model,
            video_model=self.video_model,
            chat_model=self.chat_model,
            chat_system_instruction=self.chat_instruction,
        )

    def __repr__(self) -> str:
        """Safe repr that masks API key to prevent accidental exposure in logs."""
        return (
            f"StudioConfig(backend={self.backend}, api_key={_mask_secret(self.api_key)}, "
            f"text_model={self.text_model!r}, image_model={self.image_model!r}, "
            f"video_model={self.video_model!r}, chat_model={self.chat_model!r}, "
            f"polling={self.polling!r}, limits={self.limits!r})"
        )
