"""Analysis engine client."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from .config import Config, resolve_api_key
from .errors import AuthenticationFailed, ServiceUnavailable
from .models import EncodedAudio

logger = logging.getLogger("salescoach.engine")

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TIMEOUT_SECONDS = 120.0
MAX_PROVIDER_ERROR_CHARS = 600

ANALYSIS_PROMPT = """Analyze this sales call audio recording.

Perform the following tasks:
1. Generate a diarized transcript distinguishing between the 'Salesperson' and the 'Prospect'.
2. Analyze the sentiment and engagement levels throughout the call to generate data for a line graph.
3. Create a coaching card with 3 key strengths and 3 missed opportunities for the salesperson.
4. Write a brief summary of the call.

Return the result in valid JSON format matching the provided schema."""


class AnalysisEngine(Protocol):
    def submit(self, encoded: EncodedAudio, schema: Dict[str, Any]) -> str:
        """Send one request and return the engine's raw response text."""
        ...


def _truncate(text: str, max_chars: int = MAX_PROVIDER_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def build_request(
    encoded: EncodedAudio,
    schema: Dict[str, Any],
    prompt: str = ANALYSIS_PROMPT,
    temperature: float = DEFAULT_TEMPERATURE,
) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {
                        "inline_data": {
                            "mime_type": encoded.mime_type,
                            "data": encoded.base64_payload,
                        }
                    },
                    {"text": prompt},
                ]
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": schema,
            "temperature": temperature,
        },
    }


def extract_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise ServiceUnavailable("Unexpected response shape from the analysis engine.")
    candidates = payload.get("candidates") or []
    if not candidates:
        feedback = payload.get("promptFeedback")
        if feedback:
            logger.warning("Engine returned no candidates: %s", feedback)
        return ""
    first = candidates[0] if isinstance(candidates, list) else None
    if not isinstance(first, dict):
        raise ServiceUnavailable("Unexpected candidate shape from the analysis engine.")
    content = first.get("content") or {}
    if not isinstance(content, dict):
        raise ServiceUnavailable("Unexpected content shape from the analysis engine.")
    parts: List[str] = []
    for part in content.get("parts") or []:
        if isinstance(part, dict) and part.get("text"):
            parts.append(str(part["text"]))
    return "".join(parts)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return _truncate(response.text)
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return _truncate(str(body["error"].get("message", "")))
    return _truncate(response.text)


def _is_credential_error(status_code: int, detail: str) -> bool:
    if status_code in (401, 403):
        return True
    lowered = detail.lower()
    return status_code == 400 and ("api key" in lowered or "api_key" in lowered)


class GeminiEngine:
    """Gemini ``generateContent`` over HTTP.

    One POST per ``submit``; no retries, no streaming.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: Config,
        environ: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "GeminiEngine":
        return cls(
            api_key=resolve_api_key(config, environ),
            model=config.engine.model,
            base_url=config.engine.base_url,
            temperature=config.engine.temperature,
            timeout_seconds=config.engine.timeout_seconds,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"

    def submit(self, encoded: EncodedAudio, schema: Dict[str, Any]) -> str:
        if not self._api_key:
            raise AuthenticationFailed("API key is not set in the environment variables.")

        body = build_request(encoded, schema, temperature=self.temperature)
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}
        logger.info(
            "Submitting %s audio (%d base64 chars) to %s",
            encoded.mime_type,
            len(encoded.base64_payload),
            self.model,
        )

        try:
            with httpx.Client(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = client.post(self.endpoint, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise ServiceUnavailable(
                f"Analysis request timed out after {int(self.timeout_seconds)} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceUnavailable(f"Failed to reach the analysis engine: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            message = f"Analysis request failed ({response.status_code}): {detail}"
            if _is_credential_error(response.status_code, detail):
                raise AuthenticationFailed(message)
            raise ServiceUnavailable(message)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ServiceUnavailable("Analysis engine returned a non-JSON body.") from exc
        return extract_text(payload)
