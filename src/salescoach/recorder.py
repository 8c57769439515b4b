"""Microphone capture."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .audio_utils import frames_to_wav_bytes, wav_bytes_to_frames
from .errors import MicrophoneUnavailable
from .models import AudioPayload

logger = logging.getLogger("salescoach.recorder")

RECORDING_NAME = "recording.wav"
RECORDING_MIME_TYPE = "audio/wav"


def _load_sounddevice():
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for recording.") from exc
    return sd


def list_input_devices() -> List[Dict[str, Any]]:
    sd = _load_sounddevice()
    devices = sd.query_devices()
    return [d for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise RuntimeError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
    return candidates[0]


def find_input_device(prefer_name: Optional[str] = None) -> Dict[str, Any]:
    candidates = list_input_devices()
    return select_preferred_device(candidates, prefer_name=prefer_name)


class MicrophoneRecorder:
    """Capture one recording from an input device.

    The input stream is owned by the recorder between ``start()`` and
    ``stop()``. ``close()`` (or leaving a ``with`` block) releases the stream
    and any preview playback whatever state the recorder is in.
    """

    def __init__(
        self,
        sample_rate_hz: int = 44100,
        channels: int = 1,
        device_name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device_name = device_name
        self._clock = clock
        self._stream = None
        self._chunks: List[np.ndarray] = []
        self._frames_captured = 0
        self._blob: Optional[bytes] = None
        self._started_at: Optional[float] = None
        self._stopped_at: Optional[float] = None
        self._preview_offset_s = 0.0
        self._preview_started_at: Optional[float] = None
        self._preview_duration_s = 0.0

    def __enter__(self) -> "MicrophoneRecorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def has_recording(self) -> bool:
        return self._blob is not None

    @property
    def frames_captured(self) -> int:
        return self._frames_captured

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        end = self._stopped_at if self._stopped_at is not None else self._clock()
        return max(0, int(end - self._started_at))

    @property
    def is_playing(self) -> bool:
        if self._preview_started_at is None:
            return False
        played = self._preview_offset_s + self._clock() - self._preview_started_at
        return played < self._preview_duration_s

    def _callback(self, indata, frames, _time, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        self._chunks.append(indata.copy())
        self._frames_captured += frames

    def start(self) -> None:
        if self.is_recording:
            raise RuntimeError("Recording already in progress.")
        self.reset()

        stream = None
        try:
            sd = _load_sounddevice()
            device_index = None
            if self.device_name:
                device_index = find_input_device(self.device_name).get("index")
            stream = sd.InputStream(
                samplerate=self.sample_rate_hz,
                channels=self.channels,
                dtype="int16",
                device=device_index,
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:
            if stream is not None:
                stream.close()
            logger.warning("Microphone unavailable: %s", exc)
            raise MicrophoneUnavailable(
                "Could not access microphone. Please ensure permissions are granted."
            ) from exc

        self._stream = stream
        self._started_at = self._clock()
        logger.info(
            "Recording started (%d Hz, %d ch, device=%s)",
            self.sample_rate_hz,
            self.channels,
            self.device_name or "default",
        )

    def _release_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def stop(self) -> bytes:
        if not self.is_recording:
            if self._blob is None:
                raise RuntimeError("No recording in progress.")
            return self._blob

        self._stopped_at = self._clock()
        self._release_stream()
        self._blob = frames_to_wav_bytes(
            self._chunks, self.sample_rate_hz, self.channels
        )
        self._chunks = []
        self._preview_duration_s = self._frames_captured / float(self.sample_rate_hz)
        logger.info(
            "Recording stopped after %ds (%d frames)",
            self.elapsed_seconds,
            self._frames_captured,
        )
        return self._blob

    def submit(self) -> AudioPayload:
        if self.is_recording:
            raise RuntimeError("Stop the recording before submitting it.")
        if self._blob is None or self._frames_captured == 0:
            raise MicrophoneUnavailable("No audio was captured. Record again.")
        self.pause()
        return AudioPayload(
            mime_type=RECORDING_MIME_TYPE,
            display_name=RECORDING_NAME,
            data=self._blob,
        )

    def play(self) -> None:
        if self._blob is None or self.is_playing:
            return
        if self._preview_offset_s >= self._preview_duration_s:
            self._preview_offset_s = 0.0
        sd = _load_sounddevice()
        frames, rate = wav_bytes_to_frames(self._blob)
        start = int(self._preview_offset_s * rate)
        sd.play(frames[start:], rate)
        self._preview_started_at = self._clock()

    def pause(self) -> None:
        if self._preview_started_at is None:
            return
        if self.is_playing:
            _load_sounddevice().stop()
            self._preview_offset_s += self._clock() - self._preview_started_at
        else:
            self._preview_offset_s = 0.0
        self._preview_started_at = None

    def toggle_playback(self) -> bool:
        if self.is_playing:
            self.pause()
        else:
            self.play()
        return self.is_playing

    def reset(self) -> None:
        self.pause()
        self._release_stream()
        self._chunks = []
        self._frames_captured = 0
        self._blob = None
        self._started_at = None
        self._stopped_at = None
        self._preview_offset_s = 0.0
        self._preview_duration_s = 0.0

    def close(self) -> None:
        try:
            self._release_stream()
        finally:
            self.pause()
