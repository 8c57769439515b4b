"""Data models for SalesCoach."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_MIME_TYPE = "audio/webm"


class AppState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class AudioPayload:
    """Audio handed over by a source adapter.

    Either ``data`` holds the bytes in memory or ``path`` points at a file
    that is read when the payload is encoded.
    """

    mime_type: str
    display_name: str
    data: Optional[bytes] = None
    path: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.mime_type:
            object.__setattr__(self, "mime_type", DEFAULT_MIME_TYPE)
        if (self.data is None) == (self.path is None):
            raise ValueError("AudioPayload needs exactly one of data or path.")
        if self.data is not None and not self.data:
            raise ValueError("AudioPayload data must not be empty.")

    def read_bytes(self, limit: Optional[int] = None) -> bytes:
        """Return the audio bytes; with ``limit``, read at most ``limit`` bytes."""
        if self.data is not None:
            return self.data if limit is None else self.data[:limit]
        with open(self.path, "rb") as handle:
            return handle.read() if limit is None else handle.read(limit)


@dataclass(frozen=True)
class EncodedAudio:
    base64_payload: str
    mime_type: str
