"""Response contract for the analysis engine.

``RESPONSE_SCHEMA`` is sent with every request so the engine emits JSON of a
fixed shape; ``decode_response`` checks the returned text against the same
shape with pydantic and turns it into an :class:`AnalysisResult`. A response
that fails any check yields no result at all.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from .errors import EmptyResponse, MalformedResponse, SchemaViolation

logger = logging.getLogger("salescoach.contract")

SCHEMA_VERSION = 1

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "A concise 2-3 sentence summary of the call.",
        },
        "transcript": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "speaker": {
                        "type": "STRING",
                        "description": "Identify as 'Salesperson' or 'Prospect'",
                    },
                    "text": {"type": "STRING"},
                    "timestamp": {"type": "STRING", "description": "Time format MM:SS"},
                },
                "required": ["speaker", "text", "timestamp"],
            },
        },
        "sentimentGraph": {
            "type": "ARRAY",
            "description": "10-15 data points representing engagement throughout the call",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "time": {
                        "type": "STRING",
                        "description": (
                            "Label for the x-axis, e.g., 'Start', 'Discovery', "
                            "'Closing' or MM:SS"
                        ),
                    },
                    "engagement": {
                        "type": "INTEGER",
                        "description": "0-100 score of engagement/sentiment",
                    },
                },
                "required": ["time", "engagement"],
            },
        },
        "coaching": {
            "type": "OBJECT",
            "properties": {
                "strengths": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "3 specific things the salesperson did well",
                },
                "missedOpportunities": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                    "description": "3 specific areas for improvement",
                },
            },
            "required": ["strengths", "missedOpportunities"],
        },
    },
    "required": ["summary", "transcript", "sentimentGraph", "coaching"],
}


class TranscriptSegment(BaseModel):
    speaker: StrictStr = Field(min_length=1)
    text: StrictStr
    timestamp: StrictStr

    model_config = ConfigDict(frozen=True)


class SentimentPoint(BaseModel):
    time: StrictStr
    engagement: StrictInt
    label: Optional[StrictStr] = None

    model_config = ConfigDict(frozen=True)


class CoachingInsights(BaseModel):
    strengths: List[StrictStr]
    missed_opportunities: List[StrictStr] = Field(alias="missedOpportunities")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AnalysisResult(BaseModel):
    summary: StrictStr
    transcript: List[TranscriptSegment]
    sentiment_graph: List[SentimentPoint] = Field(alias="sentimentGraph")
    coaching: CoachingInsights

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        problems.append(f"{location}: {error.get('msg')}")
    return "; ".join(problems)


def decode_response(text: Optional[str]) -> AnalysisResult:
    if text is None or not text.strip():
        raise EmptyResponse("No response received from the analysis engine.")

    try:
        document = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise MalformedResponse(f"Response is not valid JSON: {exc}") from exc

    try:
        result = AnalysisResult.model_validate(document)
    except ValidationError as exc:
        raise SchemaViolation(f"Response does not match the contract: {_describe(exc)}") from exc

    # Values are kept as returned; out-of-range scores are only reported.
    for point in result.sentiment_graph:
        if not 0 <= point.engagement <= 100:
            logger.warning(
                "Engagement %d at '%s' is outside 0-100", point.engagement, point.time
            )
    return result
