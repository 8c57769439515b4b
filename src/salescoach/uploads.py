"""File upload validation."""

from __future__ import annotations

import logging
import mimetypes
import os
from typing import Optional

from .errors import FileTooLarge, InvalidFileType
from .models import AudioPayload

logger = logging.getLogger("salescoach.uploads")

MAX_UPLOAD_BYTES = 20 * 1024 * 1024

# Registered here because older mimetypes tables miss them.
mimetypes.add_type("audio/mp4", ".m4a")
mimetypes.add_type("audio/webm", ".weba")
mimetypes.add_type("audio/ogg", ".opus")


def guess_audio_type(name: str) -> str:
    guessed, _encoding = mimetypes.guess_type(name)
    return guessed or ""


def _validate(declared_type: str, size: int, name: str, max_bytes: int) -> None:
    if not (declared_type or "").lower().startswith("audio/"):
        raise InvalidFileType(
            f"{name}: please upload a valid audio file (MP3, WAV, etc.), got '{declared_type}'."
        )
    if size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise FileTooLarge(
            f"{name}: file size too large ({size} bytes). Please use a file under {limit_mb}MB."
        )
    if size <= 0:
        raise InvalidFileType(f"{name}: file is empty.")


def select_file(
    data: bytes,
    declared_type: str,
    name: str,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AudioPayload:
    _validate(declared_type, len(data), name, max_bytes)
    logger.info("Accepted upload %s (%s, %d bytes)", name, declared_type, len(data))
    return AudioPayload(mime_type=declared_type, display_name=name, data=bytes(data))


def select_path(
    path: str,
    declared_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AudioPayload:
    """Validate a file on disk without reading it.

    The bytes are read later, when the payload is encoded.
    """
    name = os.path.basename(path)
    mime_type = declared_type if declared_type is not None else guess_audio_type(name)
    try:
        size = os.path.getsize(path)
    except OSError as exc:
        raise InvalidFileType(f"{name}: cannot open file ({exc}).") from exc
    _validate(mime_type, size, name, max_bytes)
    logger.info("Accepted upload %s (%s, %d bytes)", name, mime_type, size)
    return AudioPayload(mime_type=mime_type, display_name=name, path=path)
