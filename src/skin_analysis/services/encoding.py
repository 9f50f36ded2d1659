"""Blob reading and base64 encoding for captured images."""

import asyncio
import base64

from skin_analysis.domain.errors import EncodingFailed
from skin_analysis.domain.media import CapturedImage


async def read_blob(image: CapturedImage) -> bytes:
    """Read the raw bytes behind a captured image."""
    try:
        return await asyncio.to_thread(image.path.read_bytes)
    except OSError as exc:
        raise EncodingFailed(f"Cannot read image at {image.path}") from exc


async def encode_image(image: CapturedImage) -> str:
    """Return the image contents as a base64 string."""
    data = await read_blob(image)
    return base64.b64encode(data).decode("ascii")
