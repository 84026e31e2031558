"""Helpers for images carried as text and for fetching finished videos"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Tuple, Union

import httpx

from .errors import BackendError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"

IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def to_data_url(data: bytes, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
    """Encode raw image bytes as an embeddable ``data:`` URL"""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(value: str) -> Tuple[bytes, str]:
    """
    Decode an image carried as text.

    Accepts a ``data:<mime>;base64,`` URL or bare base64 (assumed PNG).

    Returns:
        (raw bytes, mime type)

    Raises:
        ValidationError: If the payload is empty or not valid base64
    """
    if not value or not value.strip():
        raise ValidationError("Image data is empty")

    match = _DATA_URL_RE.match(value.strip())
    if match:
        mime_type, payload = match.group("mime"), match.group("data")
    else:
        mime_type, payload = DEFAULT_IMAGE_MIME, value.strip()

    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"Image data is not valid base64: {exc}") from exc


def load_image_file(path: Union[str, Path]) -> str:
    """
    Read a local image into a data URL, as the upload form does.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the extension is not a supported image format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    mime_type = IMAGE_MIME_TYPES.get(path.suffix.lower())
    if not mime_type:
        raise ValidationError(f"Unsupported image format: {path.suffix}")

    return to_data_url(path.read_bytes(), mime_type)


async def download_video(locator: str, output_path: Union[str, Path], timeout: float = 120.0) -> Path:
    """
    Fetch a finished video to the local filesystem.

    Args:
        locator: Complete, fetchable video locator
        output_path: Where to write the file

    Returns:
        Path of the written file

    Raises:
        BackendError: If the download fails
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(locator, follow_redirects=True)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise BackendError(f"Video download failed: {exc}") from exc

    output_path.write_bytes(response.content)
    logger.info("Saved video to %s (%d bytes)", output_path, len(response.content))
    return output_path
