"""Catalogue of selectable generation engines and the visible workflow steps"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .project import Stage


class ModelType(Enum):
    VIDEO = "video"
    IMAGE = "image"
    TEXT = "text"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class AIModel:
    """An engine the user can pick in the model selector"""
    id: int
    name: str
    provider: str
    type: ModelType
    requires_key: bool


AVAILABLE_MODELS: List[AIModel] = [
    AIModel(1, "Jimeng AI", "ByteDance", ModelType.HYBRID, True),
    AIModel(2, "Kling", "Kuaishou", ModelType.VIDEO, True),
    AIModel(3, "Volcano Engine", "ByteDance", ModelType.VIDEO, True),
    AIModel(4, "Hailuo", "MiniMax", ModelType.VIDEO, True),
    AIModel(5, "Wanxiang", "Alibaba", ModelType.IMAGE, True),
    AIModel(6, "Hunyuan", "Tencent", ModelType.HYBRID, True),
    AIModel(7, "Baidu Huixiang", "Baidu", ModelType.IMAGE, True),
    AIModel(8, "Google Veo", "Google", ModelType.VIDEO, False),
    AIModel(9, "Runway Gen-3", "Runway", ModelType.VIDEO, True),
    AIModel(10, "Luma Dream Machine", "Luma", ModelType.VIDEO, True),
]


def get_model(model_id: int) -> Optional[AIModel]:
    return next((m for m in AVAILABLE_MODELS if m.id == model_id), None)


@dataclass(frozen=True)
class WorkflowStep:
    stage: Stage
    label: str
    description: str


WORKFLOW_STEPS: List[WorkflowStep] = [
    WorkflowStep(Stage.INPUT, "User Input", "Novel / script / idea"),
    WorkflowStep(Stage.ANALYSIS, "Script Assistant", "Formatting and shot breakdown"),
    WorkflowStep(Stage.CHARACTER_DESIGN, "Art Assistant", "Characters and concept art"),
    WorkflowStep(Stage.VISUAL_DEV, "Art Director", "Composition and blending"),
    WorkflowStep(Stage.VIDEO_GEN, "Animator", "Video generation"),
]


def stage_progress(stage: Stage) -> int:
    """
    Number of workflow steps already completed at ``stage``.

    COMPLETE counts every step as done.
    """
    if stage == Stage.COMPLETE:
        return len(WORKFLOW_STEPS)
    for index, step in enumerate(WORKFLOW_STEPS):
        if step.stage == stage:
            return index
    return 0
