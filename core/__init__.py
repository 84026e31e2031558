"""Core components - pipeline state machine, polling, chat and configuration"""

from .errors import (
    StudioError,
    ValidationError,
    IllegalTransitionError,
    AlreadyInProgressError,
    BackendError,
    NoResultError,
    PollTimeoutError,
    GenerationCancelledError,
)
from .config import StudioConfig, PipelineLimits
from .polling import PollingPolicy, CancellationToken, VideoGenerationController
from .pipeline import ProjectPipeline, PipelineNotice
from .chat import ChatSession

__all__ = [
    # Errors
    "StudioError",
    "ValidationError",
    "IllegalTransitionError",
    "AlreadyInProgressError",
    "BackendError",
    "NoResultError",
    "PollTimeoutError",
    "GenerationCancelledError",

    # Configuration
    "StudioConfig",
    "PipelineLimits",

    # Polling
    "PollingPolicy",
    "CancellationToken",
    "VideoGenerationController",

    # Pipeline and chat
    "ProjectPipeline",
    "PipelineNotice",
    "ChatSession",
]
