"""Data models for the creative pipeline"""

from .project import (
    Stage,
    InputType,
    SegmentKind,
    ScriptSegment,
    Character,
    ProjectState,
    DEFAULT_MODEL_ID,
)
from .chat import ChatRole, ChatMessage
from .catalog import (
    ModelType,
    AIModel,
    AVAILABLE_MODELS,
    get_model,
    WorkflowStep,
    WORKFLOW_STEPS,
    stage_progress,
)

__all__ = [
    # Project
    "Stage",
    "InputType",
    "SegmentKind",
    "ScriptSegment",
    "Character",
    "ProjectState",
    "DEFAULT_MODEL_ID",

    # Chat
    "ChatRole",
    "ChatMessage",

    # Catalogue
    "ModelType",
    "AIModel",
    "AVAILABLE_MODELS",
    "get_model",
    "WorkflowStep",
    "WORKFLOW_STEPS",
    "stage_progress",
]
