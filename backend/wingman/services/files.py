"""Binary loading for screenshots and audio recordings."""

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".mp3": "audio/mpeg", ".wav": "audio/wav"}
IMAGE_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def is_audio_path(path: str | Path) -> bool:
    """Check whether a queued capture is an audio recording."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def guess_mime_type(path: str | Path) -> str:
    """Get the MIME type used when sending a capture inline.

    Screenshots default to PNG (that is what the capture layer writes).
    """
    suffix = Path(path).suffix.lower()
    return AUDIO_EXTENSIONS.get(suffix) or IMAGE_EXTENSIONS.get(suffix, "image/png")


async def read_binary(path: str | Path) -> bytes:
    """
    Read a capture from disk without blocking the event loop.

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: On other read failures
    """
    file_path = Path(path)
    data = await asyncio.to_thread(file_path.read_bytes)
    logger.debug(f"[Files] Loaded {file_path.name} ({len(data)} bytes)")
    return data
