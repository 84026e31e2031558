"""
Project Pipeline - the creative pipeline state machine

INPUT → ANALYSIS → CHARACTER_DESIGN → VISUAL_DEV → VIDEO_GEN → COMPLETE,
plus the INPUT → VIDEO_GEN image-to-video shortcut.

The pipeline owns the single ``ProjectState`` cell. Every operation replaces
the snapshot instead of editing it, and observers are notified after each
swap. Operations that call the backend are guarded by ``is_processing``:
a second one started while the first is in flight is rejected with
``AlreadyInProgressError``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, List, Optional

from .config import StudioConfig
from .errors import (
    AlreadyInProgressError,
    GenerationCancelledError,
    IllegalTransitionError,
    ValidationError,
)
from .media import parse_data_url
from .models import ProjectState, Stage, get_model
from .polling import CancellationToken, VideoGenerationController
from .providers.base import GenerationBackend

logger = logging.getLogger(__name__)

CHARACTER_STYLE_PREFIX = "Character Concept Art, high quality, detailed, white background."
DEFAULT_VIDEO_PROMPT = "Cinematic movement, high quality"

TRANSITIONS: Dict[Stage, FrozenSet[Stage]] = {
    Stage.INPUT: frozenset({Stage.ANALYSIS, Stage.VIDEO_GEN}),
    Stage.ANALYSIS: frozenset({Stage.CHARACTER_DESIGN}),
    Stage.CHARACTER_DESIGN: frozenset({Stage.VISUAL_DEV}),
    Stage.VISUAL_DEV: frozenset({Stage.VIDEO_GEN}),
    Stage.VIDEO_GEN: frozenset({Stage.COMPLETE, Stage.INPUT}),
    Stage.COMPLETE: frozenset(),
}


def can_transition(source: Stage, target: Stage) -> bool:
    """Whether ``source → target`` is a legal edge (reset aside)"""
    return target in TRANSITIONS[source]


def truncate(text: str, limit: int) -> str:
    """Bounded prefix of ``text``; longer inputs are cut, never rejected"""
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit]


def build_video_prompt(scene_description: str, character_prompt: str) -> str:
    """Composite prompt for the pipeline-derived video shot"""
    return (
        f"Cinematic shot. {scene_description}. "
        f"Featuring a character looking like: {character_prompt}"
    )


@dataclass(frozen=True)
class PipelineNotice:
    """A user-visible notification produced by an operation"""
    operation: str
    message: str
    level: str = "error"
    timestamp: float = field(default_factory=time.time)


StateListener = Callable[[ProjectState], None]
NoticeListener = Callable[[PipelineNotice], None]


class ProjectPipeline:
    """
    Owner of the project state and entry point for every pipeline operation.

    Operations report their outcome through the new snapshot (and, for
    failures, a ``PipelineNotice``). Validation problems raise before any
    backend call; backend failures never escape an operation.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        config: Optional[StudioConfig] = None,
        controller: Optional[VideoGenerationController] = None,
        state: Optional[ProjectState] = None,
    ):
        """
        Args:
            backend: Generation backend (Gemini, mock, ...)
            config: Studio configuration; defaults are used when omitted
            controller: Video poll controller; built from ``config.polling``
                when omitted
            state: Starting snapshot, for resuming a session
        """
        self.backend = backend
        self.config = config or StudioConfig()
        self.controller = controller or VideoGenerationController(backend, self.config.polling)
        self._state = state or ProjectState.initial()
        self._listeners: List[StateListener] = []
        self._notice_listeners: List[NoticeListener] = []
        self.notices: List[PipelineNotice] = []
        self._epoch = 0
        self._active_token: Optional[CancellationToken] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProjectState:
        """Current immutable snapshot"""
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def subscribe_notices(self, listener: NoticeListener) -> Callable[[], None]:
        self._notice_listeners.append(listener)
        return lambda: self._notice_listeners.remove(listener) if listener in self._notice_listeners else None

    def _commit(self, **changes) -> ProjectState:
        self._state = replace(self._state, **changes)
        self._publish()
        return self._state

    def _publish(self):
        # Listener errors are logged and never reach the operation
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def _notify(self, operation: str, message: str, level: str = "error"):
        notice = PipelineNotice(operation=operation, message=message, level=level)
        self.notices.append(notice)
        for listener in list(self._notice_listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("Notice listener %r failed", listener)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_idle(self, operation: str):
        if self._state.is_processing:
            raise AlreadyInProgressError(f"Cannot {operation}: another operation is in progress")

    def _require_transition(self, operation: str, target: Stage):
        source = self._state.current_stage
        if not can_transition(source, target):
            raise IllegalTransitionError(
                f"Cannot {operation} from {source.value} (no {source.value} → {target.value} transition)"
            )

    def _begin(self, operation: str, **changes) -> int:
        """Enter processing. No await may sit between the idle check and this call."""
        self._require_idle(operation)
        logger.info("Starting %s", operation)
        self._commit(is_processing=True, **changes)
        return self._epoch

    def _is_current(self, epoch: int) -> bool:
        """False once a reset has superseded the operation that owns ``epoch``"""
        return epoch == self._epoch

    def _fail(self, epoch: int, operation: str, exc: BaseException, **revert) -> ProjectState:
        if not self._is_current(epoch):
            logger.info("Discarding %s failure after reset: %s", operation, exc)
            return self._state
        logger.error("%s failed: %s", operation, exc)
        state = self._commit(is_processing=False, **revert)
        self._notify(operation, str(exc))
        return state

    # ------------------------------------------------------------------
    # Input editing
    # ------------------------------------------------------------------

    def set_raw_input(self, text: str) -> ProjectState:
        self._require_idle("edit input")
        return self._commit(raw_input=text)

    def upload_image(self, image: str) -> ProjectState:
        """Store a user-supplied image (data URL) for the image-to-video shortcut"""
        self._require_idle("upload image")
        parse_data_url(image)
        return self._commit(uploaded_image=image)

    def set_video_prompt(self, prompt: Optional[str]) -> ProjectState:
        self._require_idle("edit video prompt")
        return self._commit(video_prompt=prompt or None)

    def select_model(self, model_id: int) -> ProjectState:
        if get_model(model_id) is None:
            raise ValidationError(f"Unknown model id: {model_id}")
        return self._commit(selected_model_id=model_id)

    # ------------------------------------------------------------------
    # Stage operations
    # ------------------------------------------------------------------

    async def analyze(self, raw_input: Optional[str] = None) -> ProjectState:
        """
        Classify and format the raw input into script segments.

        Success moves INPUT → ANALYSIS; failure leaves the stage unchanged.
        """
        text = self._state.raw_input if raw_input is None else raw_input
        if not text or not text.strip():
            raise ValidationError("Input text is empty")
        self._require_idle("analyze")
        self._require_transition("analyze", Stage.ANALYSIS)

        limit = self.config.limits.analysis_char_limit
        if len(text) > limit > 0:
            logger.warning("Input is %d chars; analysing the first %d", len(text), limit)

        epoch = self._begin("analyze", raw_input=text)
        try:
            result = await self.backend.analyze_text(truncate(text, limit))
        except asyncio.CancelledError:
            if self._is_current(epoch):
                self._commit(is_processing=False)
            raise
        except Exception as exc:
            return self._fail(epoch, "analyze", exc)

        if not self._is_current(epoch):
            return self._state
        logger.info("Analysis produced %d segments (%s)", len(result.segments), result.input_type.value)
        return self._commit(
            input_type=result.input_type,
            script=tuple(result.segments),
            current_stage=Stage.ANALYSIS,
            is_processing=False,
        )

    async def extract_characters(self) -> ProjectState:
        """
        Extract characters from the current script.

        Success moves ANALYSIS → CHARACTER_DESIGN; failure leaves the stage
        unchanged.
        """
        if not self._state.script:
            raise ValidationError("No script to extract characters from")
        self._require_idle("extract characters")
        self._require_transition("extract characters", Stage.CHARACTER_DESIGN)

        script_text = "\n".join(segment.content for segment in self._state.script)
        limit = self.config.limits.extraction_char_limit
        if len(script_text) > limit > 0:
            logger.warning("Script is %d chars; extracting from the first %d", len(script_text), limit)

        epoch = self._begin("extract characters")
        try:
            characters = await self.backend.extract_characters(truncate(script_text, limit))
        except asyncio.CancelledError:
            if self._is_current(epoch):
                self._commit(is_processing=False)
            raise
        except Exception as exc:
            return self._fail(epoch, "extract characters", exc)

        if not self._is_current(epoch):
            return self._state
        logger.info("Extracted %d characters", len(characters))
        return self._commit(
            characters=tuple(characters),
            current_stage=Stage.CHARACTER_DESIGN,
            is_processing=False,
        )

    async def generate_character_image(self, character_id: str) -> ProjectState:
        """
        Render concept art for one character.

        Unknown ids are a no-op. Only that character's ``image_url`` changes;
        on failure the character keeps whatever image it had. The stage never
        changes.
        """
        character = self._state.get_character(character_id)
        if character is None:
            logger.info("No character %s; nothing to generate", character_id)
            return self._state

        operation = f"generate image for {character.name}"
        epoch = self._begin(operation)
        try:
            image_url = await self.backend.generate_image(f"{CHARACTER_STYLE_PREFIX} {character.visual_prompt}")
        except asyncio.CancelledError:
            if self._is_current(epoch):
                self._commit(is_processing=False)
            raise
        except Exception as exc:
            return self._fail(epoch, operation, exc)

        if not self._is_current(epoch):
            return self._state
        characters = tuple(
            c.with_image(image_url) if c.id == character_id else c
            for c in self._state.characters
        )
        return self._commit(characters=characters, is_processing=False)

    def advance_to_visual_dev(self) -> ProjectState:
        """CHARACTER_DESIGN → VISUAL_DEV; no backend call"""
        self._require_idle("advance to visual development")
        self._require_transition("advance to visual development", Stage.VISUAL_DEV)
        return self._commit(current_stage=Stage.VISUAL_DEV)

    async def generate_video(self) -> ProjectState:
        """
        Generate the final video from the first visual segment and the first
        character (whose portrait, if any, conditions the shot).

        Moves to VIDEO_GEN before the backend call, then to COMPLETE on
        success or back to INPUT on failure.
        """
        self._require_idle("generate video")
        self._require_transition("generate video", Stage.VIDEO_GEN)

        protagonist = self._state.protagonist
        scene = self._state.first_visual_segment()
        if protagonist is None or scene is None:
            raise ValidationError("A character and a scene or action segment are required to generate video")

        prompt = build_video_prompt(scene.shot_description, protagonist.visual_prompt)
        return await self._run_video("generate video", prompt, protagonist.image_url)

    async def generate_video_direct(self, image: Optional[str] = None, prompt: Optional[str] = None) -> ProjectState:
        """
        Image-to-video shortcut from INPUT, bypassing script and characters.

        Uses the uploaded image when ``image`` is omitted, and the stored or
        default prompt when ``prompt`` is omitted.
        """
        image = image or self._state.uploaded_image
        if not image:
            raise ValidationError("An image is required for image-to-video generation")
        parse_data_url(image)
        self._require_idle("generate video")
        self._require_transition("generate video", Stage.VIDEO_GEN)

        prompt = prompt or self._state.video_prompt or DEFAULT_VIDEO_PROMPT
        return await self._run_video(
            "generate video",
            prompt,
            image,
            uploaded_image=image,
            video_prompt=prompt,
        )

    async def _run_video(self, operation: str, prompt: str, image: Optional[str], **changes) -> ProjectState:
        token = CancellationToken()
        epoch = self._begin(operation, current_stage=Stage.VIDEO_GEN, **changes)
        self._active_token = token
        try:
            video_url = await self.controller.generate(prompt, image, token=token)
        except asyncio.CancelledError:
            token.cancel("interrupted")
            if self._is_current(epoch):
                self._commit(is_processing=False, current_stage=Stage.INPUT)
            raise
        except GenerationCancelledError as exc:
            if self._is_current(epoch):
                state = self._commit(is_processing=False, current_stage=Stage.INPUT)
                self._notify(operation, str(exc), level="warning")
                return state
            return self._state
        except Exception as exc:
            return self._fail(epoch, operation, exc, current_stage=Stage.INPUT)
        finally:
            if self._active_token is token:
                self._active_token = None

        if not self._is_current(epoch):
            return self._state
        logger.info("Video ready")
        return self._commit(
            generated_video_url=video_url,
            current_stage=Stage.COMPLETE,
            is_processing=False,
        )

    # ------------------------------------------------------------------
    # Cancellation and reset
    # ------------------------------------------------------------------

    def cancel(self, reason: str = "cancelled by user") -> bool:
        """
        Fire the in-flight video job's cancellation token.

        Returns:
            True if there was a job to cancel
        """
        if self._active_token is None:
            return False
        self._active_token.cancel(reason)
        return True

    def reset(self) -> ProjectState:
        """Start a new project: cancel anything in flight and restore the initial state"""
        self.cancel("cancelled by reset")
        self._epoch += 1
        logger.info("Project reset")
        self._state = ProjectState.initial()
        self._publish()
        return self._state
