"""
Google Gemini Generation Backend

Capabilities:
- Text analysis and script formatting (structured JSON output)
- Character extraction (structured JSON output)
- Character concept art (native image generation)
- Video synthesis with Veo (long-running operations, polled)
- Streaming assistant chat

The SDK's async surface (``client.aio``) is used throughout so every call is
a suspension point on the host event loop.

API Docs: https://ai.google.dev/gemini-api/docs
"""

import json
import logging
import os
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx
from google import genai
from google.genai import types

from core.errors import BackendError, NoResultError
from core.media import DEFAULT_IMAGE_MIME, parse_data_url, to_data_url
from core.models import Character, InputType, ScriptSegment, SegmentKind
from .base import (
    AnalysisResult,
    BackendConfig,
    GenerationBackend,
    ProviderType,
    VideoOperation,
)

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """You are a professional screenwriting assistant. Analyse the user's text.

Steps:
1. Decide whether the text is a 'novel' excerpt, a 'script', or an 'idea' fragment.
2. If it is a novel or an idea, adapt it into standard screenplay form.
3. If it is a script, normalise its formatting.
4. Break the content into scene, dialogue and action segments.
5. Give every segment a detailed visualPrompt in English for image generation.

Keep segment content in the language of the user's text.

User text:
{text}
"""

CHARACTER_PROMPT = """Extract the main characters from the script below. For each one write a
short description in the script's language and a detailed English visualPrompt
covering appearance, clothing, style and face, suitable for image models.

Script:
{text}
"""

DEFAULT_CHAT_INSTRUCTION = (
    "You are a professional film and video creation assistant. Help the user "
    "develop scripts, explain video generation techniques and offer creative "
    "ideas. Answer concisely and professionally."
)

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "inputType": {"type": "STRING", "enum": ["novel", "script", "idea"]},
        "segments": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": ["scene", "dialogue", "action"]},
                    "content": {"type": "STRING"},
                    "visualPrompt": {"type": "STRING"},
                },
            },
        },
    },
}

CHARACTER_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "name": {"type": "STRING"},
            "description": {"type": "STRING"},
            "visualPrompt": {"type": "STRING"},
        },
    },
}


class GeminiBackend(GenerationBackend):
    """
    Gemini / Veo implementation of the generation backend.

    Video locators returned by Veo need the API key appended before they can
    be fetched; ``resolve_video_result`` returns the complete locator.
    """

    def __init__(self, config: Optional[BackendConfig] = None, client: Optional[Any] = None):
        """
        Initialize Gemini backend.

        Args:
            config: Optional BackendConfig (uses GEMINI_API_KEY if not provided)
            client: Pre-built ``genai.Client`` (tests inject a mock here)
        """
        if config is None:
            api_key = os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise ValueError("GEMINI_API_KEY environment variable required")
            config = BackendConfig(provider_type=ProviderType.GEMINI, api_key=api_key)

        super().__init__(config)
        self.client = client or genai.Client(api_key=self.config.api_key)

    @property
    def name(self) -> str:
        return "gemini"

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def analyze_text(self, text: str) -> AnalysisResult:
        payload = await self._generate_json(
            ANALYSIS_PROMPT.format(text=text),
            ANALYSIS_SCHEMA,
            default={},
        )
        if not isinstance(payload, dict):
            raise BackendError(f"Unexpected analysis payload: {type(payload).__name__}")

        segments = []
        for index, item in enumerate(payload.get("segments") or [], start=1):
            content = (item.get("content") or "").strip()
            if not content:
                continue
            segments.append(ScriptSegment(
                id=item.get("id") or f"seg_{index}",
                kind=_parse_kind(item.get("type")),
                content=content,
                visual_prompt=item.get("visualPrompt") or None,
            ))

        return AnalysisResult(
            input_type=InputType.parse(payload.get("inputType")),
            segments=segments,
        )

    async def extract_characters(self, script_text: str) -> List[Character]:
        payload = await self._generate_json(
            CHARACTER_PROMPT.format(text=script_text),
            CHARACTER_SCHEMA,
            default=[],
        )
        if not isinstance(payload, list):
            raise BackendError(f"Unexpected character payload: {type(payload).__name__}")

        return [
            Character(
                id=item.get("id") or f"char_{index}",
                name=item.get("name") or f"Character {index}",
                description=item.get("description") or "",
                visual_prompt=item.get("visualPrompt") or "",
            )
            for index, item in enumerate(payload, start=1)
        ]

    async def _generate_json(self, prompt: str, schema: Dict[str, Any], default: Any) -> Any:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.text_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as exc:
            raise BackendError(f"Gemini request failed for '{self.config.text_model}': {exc}") from exc

        if not response.text:
            return default
        try:
            return json.loads(response.text)
        except json.JSONDecodeError as exc:
            raise BackendError(f"Gemini returned invalid JSON: {exc}") from exc

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def generate_image(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.image_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                    image_config=types.ImageConfig(aspect_ratio="1:1"),
                ),
            )
        except Exception as exc:
            raise BackendError(f"Image generation failed for '{self.config.image_model}': {exc}") from exc

        for part in _first_candidate_parts(response):
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return to_data_url(inline.data, inline.mime_type or DEFAULT_IMAGE_MIME)

        raise NoResultError("Failed to generate image: response contained no image data")

    # ------------------------------------------------------------------
    # Video
    # ------------------------------------------------------------------

    async def start_video_generation(self, prompt: str, image: Optional[str] = None) -> VideoOperation:
        request: Dict[str, Any] = {
            "model": self.config.video_model,
            "prompt": prompt,
            "config": types.GenerateVideosConfig(
                number_of_videos=1,
                resolution="720p",
                aspect_ratio="16:9",
            ),
        }
        if image:
            image_bytes, mime_type = parse_data_url(image)
            request["image"] = types.Image(image_bytes=image_bytes, mime_type=mime_type)

        try:
            operation = await self.client.aio.models.generate_videos(**request)
        except Exception as exc:
            raise BackendError(f"Video generation failed to start: {exc}") from exc

        logger.info("Veo operation started: %s", operation.name)
        return _to_handle(operation)

    async def poll_video_operation(self, operation: VideoOperation) -> VideoOperation:
        try:
            refreshed = await self.client.aio.operations.get(operation.raw)
        except Exception as exc:
            raise BackendError(f"Polling {operation.name} failed: {exc}") from exc

        logger.debug("Polled Veo operation %s (done=%s)", operation.name, refreshed.done)
        return _to_handle(refreshed)

    async def resolve_video_result(self, operation: VideoOperation) -> Optional[str]:
        response = getattr(operation.raw, "response", None) or getattr(operation.raw, "result", None)
        videos = getattr(response, "generated_videos", None) or []
        if not videos or videos[0].video is None or not videos[0].video.uri:
            return None
        return self._fetchable_locator(videos[0].video.uri)

    def _fetchable_locator(self, uri: str) -> str:
        """Append the API key the file endpoint requires"""
        if not self.config.api_key:
            return uri
        return str(httpx.URL(uri).copy_merge_params({"key": self.config.api_key}))

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def open_chat_stream(self, history: Sequence[Dict[str, Any]], message: str) -> AsyncIterator[str]:
        contents = [
            types.Content(
                role=turn["role"],
                parts=[types.Part(text=part["text"]) for part in turn["parts"]],
            )
            for turn in history
        ]
        try:
            chat = self.client.aio.chats.create(
                model=self.config.chat_model,
                history=contents,
                config=types.GenerateContentConfig(
                    system_instruction=self.config.chat_system_instruction or DEFAULT_CHAT_INSTRUCTION,
                ),
            )
            stream = await chat.send_message_stream(message)
        except Exception as exc:
            raise BackendError(f"Chat stream failed to open: {exc}") from exc

        return _text_fragments(stream)


def _parse_kind(value: Optional[str]) -> SegmentKind:
    try:
        return SegmentKind((value or "").strip().lower())
    except ValueError:
        return SegmentKind.SCENE


def _first_candidate_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return []
    return candidates[0].content.parts or []


def _to_handle(operation: Any) -> VideoOperation:
    error = getattr(operation, "error", None)
    return VideoOperation(
        name=operation.name or "",
        done=bool(operation.done),
        error=str(error) if error else None,
        raw=operation,
    )


async def _text_fragments(stream: AsyncIterator[Any]) -> AsyncIterator[str]:
    try:
        async for chunk in stream:
            if chunk.text:
                yield chunk.text
    except Exception as exc:
        raise BackendError(f"Chat stream interrupted: {exc}") from exc
