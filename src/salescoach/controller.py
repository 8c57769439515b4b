"""Application state machine.

IDLE -> ANALYZING -> COMPLETE | ERROR, and back to IDLE through ``reset()``.
Only one analysis runs at a time; source adapter errors are raised before
the controller leaves IDLE.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .contract import RESPONSE_SCHEMA, AnalysisResult, decode_response
from .encoding import encode_audio
from .engine import AnalysisEngine
from .errors import AnalysisError, AnalysisInProgress, InvalidTransition
from .models import AppState, AudioPayload
from .recorder import MicrophoneRecorder
from .uploads import MAX_UPLOAD_BYTES, select_file, select_path

logger = logging.getLogger("salescoach.controller")

GENERIC_ERROR_MESSAGE = (
    "Failed to analyze audio. Please ensure your API key is valid and the file is supported."
)


@dataclass(frozen=True)
class StateSnapshot:
    state: AppState
    display_name: Optional[str] = None
    result: Optional[AnalysisResult] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    error_detail: Optional[str] = None


class AnalysisController:
    def __init__(
        self,
        engine: AnalysisEngine,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self._engine = engine
        self._max_upload_bytes = max_upload_bytes
        self._lock = threading.Lock()
        self._state = AppState.IDLE
        self._payload: Optional[AudioPayload] = None
        self._result: Optional[AnalysisResult] = None
        self._error_message: Optional[str] = None
        self._error_kind: Optional[str] = None
        self._error_detail: Optional[str] = None

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def payload(self) -> Optional[AudioPayload]:
        return self._payload

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            state=self._state,
            display_name=self._payload.display_name if self._payload else None,
            result=self._result,
            error_message=self._error_message,
            error_kind=self._error_kind,
            error_detail=self._error_detail,
        )

    def select_file(self, data: bytes, declared_type: str, name: str) -> StateSnapshot:
        self._require_idle()
        payload = select_file(data, declared_type, name, max_bytes=self._max_upload_bytes)
        return self.analyze(payload)

    def select_path(self, path: str, declared_type: Optional[str] = None) -> StateSnapshot:
        self._require_idle()
        payload = select_path(path, declared_type, max_bytes=self._max_upload_bytes)
        return self.analyze(payload)

    def submit_recording(self, recorder: MicrophoneRecorder) -> StateSnapshot:
        self._require_idle()
        return self.analyze(recorder.submit())

    def analyze(self, payload: AudioPayload) -> StateSnapshot:
        self._begin(payload)
        self._run(payload)
        return self.snapshot()

    def analyze_in_background(
        self,
        payload: AudioPayload,
        on_done: Optional[Callable[[StateSnapshot], None]] = None,
    ) -> threading.Thread:
        self._begin(payload)

        def _worker() -> None:
            self._run(payload)
            if on_done is not None:
                on_done(self.snapshot())

        worker = threading.Thread(target=_worker, name="salescoach-analysis", daemon=True)
        worker.start()
        return worker

    def reset(self) -> StateSnapshot:
        with self._lock:
            if self._state is AppState.ANALYZING:
                raise AnalysisInProgress("Cannot reset while an analysis is running.")
            self._state = AppState.IDLE
            self._payload = None
            self._result = None
            self._clear_error()
        return self.snapshot()

    def _require_idle(self) -> None:
        if self._state is AppState.ANALYZING:
            raise AnalysisInProgress("An analysis is already running.")
        if self._state is not AppState.IDLE:
            raise InvalidTransition(
                f"Cannot start an analysis from {self._state.value}; reset first."
            )

    def _begin(self, payload: AudioPayload) -> None:
        with self._lock:
            self._require_idle()
            self._state = AppState.ANALYZING
            self._payload = payload
            self._result = None
            self._clear_error()
        logger.info("Analyzing %s (%s)", payload.display_name, payload.mime_type)

    def _run(self, payload: AudioPayload) -> None:
        try:
            encoded = encode_audio(payload, max_bytes=self._max_upload_bytes)
            text = self._engine.submit(encoded, RESPONSE_SCHEMA)
            result = decode_response(text)
        except AnalysisError as exc:
            logger.error("Analysis of %s failed [%s]: %s", payload.display_name, exc.kind, exc)
            self._fail(exc.kind, str(exc))
            return
        except Exception as exc:
            # Engines are pluggable; anything they raise still ends in ERROR.
            logger.exception("Unexpected failure analyzing %s", payload.display_name)
            self._fail(type(exc).__name__, str(exc))
            return

        with self._lock:
            self._result = result
            self._clear_error()
            self._state = AppState.COMPLETE
        logger.info(
            "Analysis of %s complete (%d transcript segments, %d sentiment points)",
            payload.display_name,
            len(result.transcript),
            len(result.sentiment_graph),
        )

    def _fail(self, kind: str, detail: str) -> None:
        with self._lock:
            self._result = None
            self._error_message = GENERIC_ERROR_MESSAGE
            self._error_kind = kind
            self._error_detail = detail
            self._state = AppState.ERROR

    def _clear_error(self) -> None:
        self._error_message = None
        self._error_kind = None
        self._error_detail = None
