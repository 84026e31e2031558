"""Mock generation backend for testing without API keys"""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from core.errors import BackendError
from core.media import to_data_url
from core.models import Character, InputType, ScriptSegment, SegmentKind
from .base import (
    AnalysisResult,
    BackendConfig,
    GenerationBackend,
    ProviderType,
    VideoOperation,
)


def _default_segments() -> List[ScriptSegment]:
    return [
        ScriptSegment(
            id="seg_1",
            kind=SegmentKind.SCENE,
            content="Night. A rain-soaked neon alley.",
            visual_prompt="Rain-soaked neon alley at night, cinematic lighting",
        ),
        ScriptSegment(
            id="seg_2",
            kind=SegmentKind.DIALOGUE,
            content="LIN: We are out of time.",
        ),
        ScriptSegment(
            id="seg_3",
            kind=SegmentKind.ACTION,
            content="Lin sprints toward the flickering sign.",
            visual_prompt="Young woman sprinting toward a flickering neon sign",
        ),
    ]


def _default_characters() -> List[Character]:
    return [
        Character(
            id="char_1",
            name="Lin",
            description="A courier who never misses a delivery",
            visual_prompt="Young woman, short black hair, red raincoat, determined face",
        ),
        Character(
            id="char_2",
            name="Old Zhou",
            description="The shopkeeper who knows too much",
            visual_prompt="Elderly man, round glasses, grey cardigan, kind smile",
        ),
    ]


class MockGenerationBackend(GenerationBackend):
    """
    Scripted backend that simulates every capability without hitting real APIs.

    Used for:
    - Unit tests (canned responses, injected failures, call tracking)
    - ``--mock`` runs of the CLI
    - Development without incurring costs

    Failures are injected per method name via ``fail()``; they persist until
    ``clear_failures()`` or ``reset()``.
    """

    def __init__(self, config: BackendConfig = None, latency: float = 0.0):
        if config is None:
            config = BackendConfig(provider_type=ProviderType.MOCK)
        super().__init__(config)
        self.latency = latency
        self.calls: List[Dict[str, Any]] = []  # Track calls for test assertions
        self.reset()

    @property
    def name(self) -> str:
        return "mock"

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------

    def reset(self):
        """Restore default canned responses and clear call tracking"""
        self.calls.clear()
        self.analysis = AnalysisResult(input_type=InputType.IDEA, segments=_default_segments())
        self.characters: List[Character] = _default_characters()
        self.image_results: List[str] = []
        self.video_done_flags: List[bool] = [False, True]
        self.video_locator: Optional[str] = "https://mock-cdn.example.com/videos/mock_video.mp4"
        self.video_error: Optional[str] = None
        self.chat_chunks: List[str] = ["Happy ", "to ", "help!"]
        self.chat_fail_after: Optional[int] = None
        self.failures: Dict[str, Exception] = {}
        self._image_count = 0
        self._job_count = 0

    def fail(self, method: str, error: Optional[Exception] = None):
        """Make every call to ``method`` raise ``error`` (BackendError by default)"""
        self.failures[method] = error or BackendError(f"mock {method} failure")

    def clear_failures(self):
        self.failures.clear()

    def set_video_sequence(self, done_flags: Sequence[bool], locator: Optional[str]):
        """
        Script the poll loop: ``done_flags[0]`` is the state returned by
        start, ``done_flags[i]`` the state returned by the i-th poll.
        """
        self.video_done_flags = list(done_flags)
        self.video_locator = locator

    def get_call_count(self, method: Optional[str] = None) -> int:
        """Number of calls made, optionally for a single method"""
        if method is None:
            return len(self.calls)
        return sum(1 for call in self.calls if call["method"] == method)

    async def _enter(self, method: str, **kwargs):
        self.calls.append({"method": method, **kwargs})
        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)
        if method in self.failures:
            raise self.failures[method]

    # ------------------------------------------------------------------
    # GenerationBackend
    # ------------------------------------------------------------------

    async def analyze_text(self, text: str) -> AnalysisResult:
        await self._enter("analyze_text", text=text)
        return AnalysisResult(input_type=self.analysis.input_type, segments=list(self.analysis.segments))

    async def extract_characters(self, script_text: str) -> List[Character]:
        await self._enter("extract_characters", script_text=script_text)
        return list(self.characters)

    async def generate_image(self, prompt: str) -> str:
        await self._enter("generate_image", prompt=prompt)
        self._image_count += 1
        if self.image_results:
            return self.image_results.pop(0)
        return to_data_url(f"mock-image-{self._image_count}".encode())

    async def start_video_generation(self, prompt: str, image: Optional[str] = None) -> VideoOperation:
        await self._enter("start_video_generation", prompt=prompt, image=image)
        self._job_count += 1
        return self._operation(f"mock_job_{self._job_count}", polls=0)

    async def poll_video_operation(self, operation: VideoOperation) -> VideoOperation:
        await self._enter("poll_video_operation", operation=operation.name)
        return self._operation(operation.name, polls=operation.raw + 1)

    async def resolve_video_result(self, operation: VideoOperation) -> Optional[str]:
        await self._enter("resolve_video_result", operation=operation.name)
        return self.video_locator

    async def open_chat_stream(self, history: Sequence[Dict[str, Any]], message: str) -> AsyncIterator[str]:
        await self._enter("open_chat_stream", history=list(history), message=message)
        return self._stream(list(self.chat_chunks), self.chat_fail_after)

    def _operation(self, name: str, polls: int) -> VideoOperation:
        flags = self.video_done_flags or [True]
        done = flags[min(polls, len(flags) - 1)]
        return VideoOperation(
            name=name,
            done=done,
            error=self.video_error if done else None,
            raw=polls,
        )

    async def _stream(self, chunks: List[str], fail_after: Optional[int]) -> AsyncIterator[str]:
        for index, chunk in enumerate(chunks):
            if fail_after is not None and index >= fail_after:
                raise BackendError("mock chat stream dropped")
            await asyncio.sleep(self.latency)
            yield chunk
        if fail_after is not None and fail_after >= len(chunks):
            raise BackendError("mock chat stream dropped")
