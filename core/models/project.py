"""Pipeline artifacts: script segments, characters and the project snapshot"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(Enum):
    """Discrete phases of the creative pipeline"""
    INPUT = "INPUT"
    ANALYSIS = "ANALYSIS"                  # Script assistant
    CHARACTER_DESIGN = "CHARACTER_DESIGN"  # Art assistant
    VISUAL_DEV = "VISUAL_DEV"              # Art director
    VIDEO_GEN = "VIDEO_GEN"                # Animator
    COMPLETE = "COMPLETE"


class InputType(Enum):
    """What the analysis stage decided the raw input was"""
    NOVEL = "novel"
    SCRIPT = "script"
    IDEA = "idea"

    @classmethod
    def parse(cls, value: Optional[str]) -> "InputType":
        """Lenient parse; unknown or missing values count as an idea"""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.IDEA


class SegmentKind(Enum):
    """Kind of a script segment"""
    SCENE = "scene"
    DIALOGUE = "dialogue"
    ACTION = "action"

    @property
    def is_visual(self) -> bool:
        """Scene and action segments can seed a video shot"""
        return self in (SegmentKind.SCENE, SegmentKind.ACTION)


@dataclass(frozen=True)
class ScriptSegment:
    """One unit of the formatted script, in narrative order"""
    id: str
    kind: SegmentKind
    content: str
    visual_prompt: Optional[str] = None

    @property
    def shot_description(self) -> str:
        """Visual prompt when present, raw content otherwise"""
        return self.visual_prompt or self.content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "content": self.content,
            "visual_prompt": self.visual_prompt,
        }


@dataclass(frozen=True)
class Character:
    """A character extracted from the script.

    ``image_url`` is the only field that changes after creation; it is
    replaced (never edited in place) when concept art is generated.
    """
    id: str
    name: str
    description: str
    visual_prompt: str
    image_url: Optional[str] = None

    def with_image(self, image_url: str) -> "Character":
        return replace(self, image_url=image_url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "visual_prompt": self.visual_prompt,
            "image_url": self.image_url,
        }


DEFAULT_MODEL_ID = 8  # Google Veo


@dataclass(frozen=True)
class ProjectState:
    """
    Immutable snapshot of one creative session.

    The pipeline owns the current snapshot and swaps it for a new one on every
    change, so observers never see a half-applied update. Collections are
    tuples for the same reason.
    """
    raw_input: str = ""
    input_type: Optional[InputType] = None
    script: Tuple[ScriptSegment, ...] = field(default_factory=tuple)
    characters: Tuple[Character, ...] = field(default_factory=tuple)
    selected_model_id: int = DEFAULT_MODEL_ID
    current_stage: Stage = Stage.INPUT
    is_processing: bool = False
    generated_video_url: Optional[str] = None
    uploaded_image: Optional[str] = None
    video_prompt: Optional[str] = None

    @classmethod
    def initial(cls) -> "ProjectState":
        """The state a new project starts from"""
        return cls()

    def get_character(self, character_id: str) -> Optional[Character]:
        return next((c for c in self.characters if c.id == character_id), None)

    def first_visual_segment(self) -> Optional[ScriptSegment]:
        """First scene or action segment, in narrative order"""
        return next((s for s in self.script if s.kind.is_visual), None)

    @property
    def protagonist(self) -> Optional[Character]:
        return self.characters[0] if self.characters else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_input": self.raw_input,
            "input_type": self.input_type.value if self.input_type else None,
            "script": [s.to_dict() for s in self.script],
            "characters": [c.to_dict() for c in self.characters],
            "selected_model_id": self.selected_model_id,
            "current_stage": self.current_stage.value,
            "is_processing": self.is_processing,
            "generated_video_url": self.generated_video_url,
            "uploaded_image": self.uploaded_image,
            "video_prompt": self.video_prompt,
        }
