"""Base64 encoding of audio payloads."""

from __future__ import annotations

import base64
import binascii
import logging

from .errors import EncodingFailed
from .models import AudioPayload, EncodedAudio
from .uploads import MAX_UPLOAD_BYTES

logger = logging.getLogger("salescoach.encoding")


def strip_envelope(text: str) -> str:
    """Drop a leading ``data:<mime>;base64,`` header if one is present."""
    if text.startswith("data:") and "," in text:
        return text.split(",", 1)[1]
    return text


def encode_audio(payload: AudioPayload, max_bytes: int = MAX_UPLOAD_BYTES) -> EncodedAudio:
    try:
        raw = payload.read_bytes(limit=max_bytes + 1)
    except OSError as exc:
        raise EncodingFailed(f"Error reading {payload.display_name}: {exc}") from exc
    if not raw:
        raise EncodingFailed(f"{payload.display_name} contains no audio data.")
    if len(raw) > max_bytes:
        raise EncodingFailed(
            f"{payload.display_name} grew past {max_bytes} bytes after it was selected."
        )

    encoded = strip_envelope(base64.b64encode(raw).decode("ascii"))
    logger.debug(
        "Encoded %s: %d bytes -> %d chars", payload.display_name, len(raw), len(encoded)
    )
    return EncodedAudio(base64_payload=encoded, mime_type=payload.mime_type)


def decode_audio(encoded: EncodedAudio) -> bytes:
    try:
        return base64.b64decode(strip_envelope(encoded.base64_payload), validate=True)
    except binascii.Error as exc:
        raise EncodingFailed(f"Invalid base64 payload: {exc}") from exc
