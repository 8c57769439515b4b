"""Audio helpers."""

from __future__ import annotations

import io
import wave
from typing import List, Tuple

import numpy as np


def frames_to_wav_bytes(
    chunks: List[np.ndarray],
    sample_rate_hz: int,
    channels: int,
) -> bytes:
    """Join captured int16 chunks into one contiguous WAV blob."""
    if chunks:
        data = np.concatenate(chunks, axis=0)
    else:
        data = np.zeros((0, channels), dtype=np.int16)
    if data.dtype != np.int16:
        data = data.astype(np.int16)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as out:
        out.setnchannels(channels)
        out.setsampwidth(2)
        out.setframerate(sample_rate_hz)
        out.writeframes(data.tobytes())
    return buffer.getvalue()


def wav_bytes_to_frames(blob: bytes) -> Tuple[np.ndarray, int]:
    with wave.open(io.BytesIO(blob), "rb") as handle:
        channels = handle.getnchannels()
        sampwidth = handle.getsampwidth()
        framerate = handle.getframerate()
        raw = handle.readframes(handle.getnframes())

    if sampwidth != 2:
        raise ValueError("Only 16-bit PCM is supported for playback.")

    data = np.frombuffer(raw, dtype=np.int16)
    return data.reshape(-1, channels), framerate
