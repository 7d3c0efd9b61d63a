"""Request and result types shared by all providers."""

import base64
import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ContentPart:
    """One part of a request: either text or inline binary data."""

    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "ContentPart":
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_base64(cls, data: str, mime_type: str) -> "ContentPart":
        """Build an inline part from base64 text (as sent by the UI shell)."""
        return cls(data=base64.b64decode(data), mime_type=mime_type)

    @property
    def is_text(self) -> bool:
        return self.data is None

    def describe(self) -> str:
        """Short human description used in degraded prompts."""
        if self.is_text:
            return "text"
        kind = (self.mime_type or "application/octet-stream").split("/", 1)[0]
        return {"image": "screenshot", "audio": "audio clip"}.get(kind, "file")


# A request envelope is simply an ordered list of parts
RequestEnvelope = list[ContentPart]


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class ResponseResult:
    """Normalized provider output."""

    text: str
    timestamp: Optional[int] = None

    def to_dict(self) -> dict:
        return {"text": self.text, "timestamp": self.timestamp}


@dataclass
class ConnectionStatus:
    """Outcome of a connection test; never raised, always returned."""

    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result: dict = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        return result
