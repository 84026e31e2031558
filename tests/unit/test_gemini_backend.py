"""Tests for the Gemini backend (SDK client mocked, no network)"""

import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from core.errors import BackendError, NoResultError
from core.models import InputType, SegmentKind
from core.providers.base import BackendConfig, ProviderType, VideoOperation
from core.providers.gemini import DEFAULT_CHAT_INSTRUCTION, GeminiBackend

API_KEY = "test-key-1234567890"
VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def client():
    """Stand-in for genai.Client with the async surface used by the backend"""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.operations.get = AsyncMock()
    return client


@pytest.fixture
def backend(client):
    config = BackendConfig(provider_type=ProviderType.GEMINI, api_key=API_KEY)
    return GeminiBackend(config, client=client)


def text_response(payload) -> SimpleNamespace:
    return SimpleNamespace(text=json.dumps(payload))


def image_response(data: bytes = b"png-bytes", mime_type: str = "image/png") -> SimpleNamespace:
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def veo_operation(done: bool, uri=VIDEO_URI, error=None) -> SimpleNamespace:
    videos = [SimpleNamespace(video=SimpleNamespace(uri=uri))] if uri else []
    return SimpleNamespace(
        name="models/veo/operations/op-1",
        done=done,
        error=error,
        response=SimpleNamespace(generated_videos=videos) if done else None,
    )


async def stream_of(*texts):
    for text in texts:
        yield SimpleNamespace(text=text)


# ============================================================
# Initialization
# ============================================================

class TestInit:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiBackend()

    def test_reads_key_from_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", API_KEY)
        with patch("core.providers.gemini.genai.Client") as client_cls:
            backend = GeminiBackend()
        client_cls.assert_called_once_with(api_key=API_KEY)
        assert backend.name == "gemini"

    def test_repr_masks_key(self, backend):
        assert API_KEY not in repr(backend.config)


# ============================================================
# Text
# ============================================================

class TestAnalyzeText:

    @pytest.mark.asyncio
    async def test_parses_segments(self, backend, client):
        client.aio.models.generate_content.return_value = text_response({
            "inputType": "novel",
            "segments": [
                {"id": "s1", "type": "scene", "content": "A harbour.", "visualPrompt": "Harbour at dawn"},
                {"type": "dialogue", "content": "MEI: They're late."},
                {"type": "montage", "content": "Boats return."},
                {"type": "action", "content": "   "},
            ],
        })

        result = await backend.analyze_text("Once upon a time")

        assert result.input_type == InputType.NOVEL
        assert [s.id for s in result.segments] == ["s1", "seg_2", "seg_3"]
        assert result.segments[0].visual_prompt == "Harbour at dawn"
        assert result.segments[1].kind == SegmentKind.DIALOGUE
        assert result.segments[1].visual_prompt is None
        assert result.segments[2].kind == SegmentKind.SCENE

        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert "Once upon a time" in kwargs["contents"]
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_empty_response(self, backend, client):
        client.aio.models.generate_content.return_value = SimpleNamespace(text="")
        result = await backend.analyze_text("text")
        assert result.input_type == InputType.IDEA
        assert result.segments == []

    @pytest.mark.asyncio
    async def test_invalid_json(self, backend, client):
        client.aio.models.generate_content.return_value = SimpleNamespace(text="{not json")
        with pytest.raises(BackendError, match="invalid JSON"):
            await backend.analyze_text("text")

    @pytest.mark.asyncio
    async def test_sdk_error_wrapped(self, backend, client):
        client.aio.models.generate_content.side_effect = RuntimeError("429 quota")
        with pytest.raises(BackendError, match="429 quota"):
            await backend.analyze_text("text")


class TestExtractCharacters:

    @pytest.mark.asyncio
    async def test_parses_characters(self, backend, client):
        client.aio.models.generate_content.return_value = text_response([
            {"id": "c1", "name": "Mei", "description": "Daughter", "visualPrompt": "Yellow jacket"},
            {"name": "Bo"},
        ])

        characters = await backend.extract_characters("MEI: They're late.")

        assert [c.id for c in characters] == ["c1", "char_2"]
        assert characters[0].visual_prompt == "Yellow jacket"
        assert characters[1].description == ""
        assert all(c.image_url is None for c in characters)

    @pytest.mark.asyncio
    async def test_wrong_shape(self, backend, client):
        client.aio.models.generate_content.return_value = text_response({"name": "Mei"})
        with pytest.raises(BackendError):
            await backend.extract_characters("script")


# ============================================================
# Images
# ============================================================

class TestGenerateImage:

    @pytest.mark.asyncio
    async def test_returns_data_url(self, backend, client):
        client.aio.models.generate_content.return_value = image_response(b"\x89PNG", "image/png")

        result = await backend.generate_image("Concept art")

        assert result == "data:image/png;base64,iVBORw=="
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-3-pro-image-preview"
        assert kwargs["config"].image_config.aspect_ratio == "1:1"

    @pytest.mark.asyncio
    async def test_no_image_part(self, backend, client):
        client.aio.models.generate_content.return_value = SimpleNamespace(candidates=[])
        with pytest.raises(NoResultError):
            await backend.generate_image("Concept art")


# ============================================================
# Video
# ============================================================

class TestVideo:

    @pytest.mark.asyncio
    async def test_start_with_image(self, backend, client):
        client.aio.models.generate_videos.return_value = veo_operation(done=False)

        operation = await backend.start_video_generation("Cinematic", "data:image/jpeg;base64,aW1n")

        assert operation.name == "models/veo/operations/op-1"
        assert operation.done is False
        kwargs = client.aio.models.generate_videos.call_args.kwargs
        assert kwargs["model"] == "veo-3.1-fast-generate-preview"
        assert kwargs["prompt"] == "Cinematic"
        assert kwargs["image"].image_bytes == b"img"
        assert kwargs["image"].mime_type == "image/jpeg"
        assert kwargs["config"].resolution == "720p"
        assert kwargs["config"].aspect_ratio == "16:9"

    @pytest.mark.asyncio
    async def test_start_without_image(self, backend, client):
        client.aio.models.generate_videos.return_value = veo_operation(done=False)
        await backend.start_video_generation("Cinematic")
        assert "image" not in client.aio.models.generate_videos.call_args.kwargs

    @pytest.mark.asyncio
    async def test_poll_passes_raw_operation(self, backend, client):
        pending = veo_operation(done=False)
        client.aio.operations.get.return_value = veo_operation(done=True)

        operation = await backend.poll_video_operation(
            VideoOperation(name="op-1", done=False, raw=pending)
        )

        client.aio.operations.get.assert_awaited_once_with(pending)
        assert operation.done is True

    @pytest.mark.asyncio
    async def test_poll_error_wrapped(self, backend, client):
        client.aio.operations.get.side_effect = RuntimeError("503")
        with pytest.raises(BackendError):
            await backend.poll_video_operation(VideoOperation(name="op-1", raw=veo_operation(False)))

    @pytest.mark.asyncio
    async def test_operation_error_surfaced(self, backend, client):
        client.aio.models.generate_videos.return_value = veo_operation(done=True, uri=None, error="blocked")
        operation = await backend.start_video_generation("Cinematic")
        assert operation.error == "blocked"

    @pytest.mark.asyncio
    async def test_resolve_appends_key(self, backend):
        operation = VideoOperation(name="op-1", done=True, raw=veo_operation(done=True))

        locator = await backend.resolve_video_result(operation)

        assert locator.startswith(VIDEO_URI.split("?")[0])
        assert "alt=media" in locator
        assert locator.endswith(f"key={API_KEY}")

    @pytest.mark.asyncio
    async def test_resolve_without_videos(self, backend):
        operation = VideoOperation(name="op-1", done=True, raw=veo_operation(done=True, uri=None))
        assert await backend.resolve_video_result(operation) is None


# ============================================================
# Chat
# ============================================================

class TestChat:

    @pytest.mark.asyncio
    async def test_streams_fragments(self, backend, client):
        chat = MagicMock()
        chat.send_message_stream = AsyncMock(return_value=stream_of("Hel", None, "lo"))
        client.aio.chats.create.return_value = chat
        history = [{"role": "model", "parts": [{"text": "Welcome"}]}]

        stream = await backend.open_chat_stream(history, "Hi")
        fragments = [fragment async for fragment in stream]

        assert fragments == ["Hel", "lo"]
        chat.send_message_stream.assert_awaited_once_with("Hi")
        kwargs = client.aio.chats.create.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["history"][0].role == "model"
        assert kwargs["history"][0].parts[0].text == "Welcome"
        assert kwargs["config"].system_instruction == DEFAULT_CHAT_INSTRUCTION

    @pytest.mark.asyncio
    async def test_configured_system_instruction(self, client):
        config = BackendConfig(
            provider_type=ProviderType.GEMINI,
            api_key=API_KEY,
            chat_system_instruction="Answer like a cinematographer.",
        )
        backend = GeminiBackend(config, client=client)
        chat = MagicMock()
        chat.send_message_stream = AsyncMock(return_value=stream_of("Ok"))
        client.aio.chats.create.return_value = chat

        await backend.open_chat_stream([], "Hi")

        kwargs = client.aio.chats.create.call_args.kwargs
        assert kwargs["config"].system_instruction == "Answer like a cinematographer."

    @pytest.mark.asyncio
    async def test_open_failure_wrapped(self, backend, client):
        client.aio.chats.create.side_effect = RuntimeError("offline")
        with pytest.raises(BackendError, match="offline"):
            await backend.open_chat_stream([], "Hi")

    @pytest.mark.asyncio
    async def test_mid_stream_failure_wrapped(self, backend, client):
        async def broken():
            yield SimpleNamespace(text="Hel")
            raise RuntimeError("reset by peer")

        chat = MagicMock()
        chat.send_message_stream = AsyncMock(return_value=broken())
        client.aio.chats.create.return_value = chat

        stream = await backend.open_chat_stream([], "Hi")
        received = []
        with pytest.raises(BackendError, match="reset by peer"):
            async for fragment in stream:
                received.append(fragment)
        assert received == ["Hel"]
