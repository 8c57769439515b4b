import copy
import json
import logging

import pytest

from salescoach.contract import RESPONSE_SCHEMA, AnalysisResult, decode_response
from salescoach.errors import EmptyResponse, MalformedResponse, SchemaViolation

VALID = {
    "summary": "Good call.",
    "transcript": [
        {"speaker": "Salesperson", "text": "Hi", "timestamp": "00:00"},
        {"speaker": "Prospect", "text": "Hello, who is this?", "timestamp": "00:03"},
    ],
    "sentimentGraph": [
        {"time": "Start", "engagement": 70},
        {"time": "Closing", "engagement": 45},
    ],
    "coaching": {
        "strengths": ["Good opener"],
        "missedOpportunities": ["No clear CTA"],
    },
}


def _without(path):
    doc = copy.deepcopy(VALID)
    target = doc
    for key in path[:-1]:
        target = target[key]
    del target[path[-1]]
    return json.dumps(doc)


def test_valid_response_decodes():
    result = decode_response(json.dumps(VALID))
    assert isinstance(result, AnalysisResult)
    assert result.summary == "Good call."
    assert [seg.speaker for seg in result.transcript] == ["Salesperson", "Prospect"]
    assert result.sentiment_graph[0].engagement == 70
    assert result.coaching.missed_opportunities == ["No clear CTA"]
    assert result.to_document() == VALID


@pytest.mark.parametrize("text", [None, "", "   \n"])
def test_empty_response(text):
    with pytest.raises(EmptyResponse):
        decode_response(text)


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "{\"summary\": ",
        "```json\n{}\n```",
        "{'summary': 'x'}",
        pytest.param("[" * 100000 + "]" * 100000, id="deep-nesting"),
        pytest.param(
            "{\"sentimentGraph\": [{\"time\": \"Start\", \"engagement\": " + "9" * 5000 + "}]}",
            id="huge-integer",
        ),
    ],
)
def test_malformed_response(text):
    with pytest.raises(MalformedResponse):
        decode_response(text)


@pytest.mark.parametrize(
    "path",
    [
        ("summary",),
        ("transcript",),
        ("sentimentGraph",),
        ("coaching",),
        ("transcript", 0, "speaker"),
        ("transcript", 0, "text"),
        ("transcript", 1, "timestamp"),
        ("sentimentGraph", 0, "time"),
        ("sentimentGraph", 1, "engagement"),
        ("coaching", "strengths"),
        ("coaching", "missedOpportunities"),
    ],
)
def test_missing_required_field_is_schema_violation(path):
    with pytest.raises(SchemaViolation):
        decode_response(_without(path))


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.update(summary=None),
        lambda d: d.update(summary=42),
        lambda d: d.update(transcript={"speaker": "Prospect"}),
        lambda d: d["transcript"][0].update(speaker=""),
        lambda d: d["sentimentGraph"][0].update(engagement="70"),
        lambda d: d["sentimentGraph"][0].update(engagement=70.5),
        lambda d: d["sentimentGraph"][0].update(engagement=True),
        lambda d: d["coaching"].update(strengths="Good opener"),
        lambda d: d["coaching"].update(missedOpportunities=[1, 2]),
    ],
)
def test_wrong_types_are_schema_violation(mutate):
    doc = copy.deepcopy(VALID)
    mutate(doc)
    with pytest.raises(SchemaViolation):
        decode_response(json.dumps(doc))


@pytest.mark.parametrize("text", ["[]", "\"summary\"", "42", "null"])
def test_non_object_document_is_schema_violation(text):
    with pytest.raises(SchemaViolation):
        decode_response(text)


def test_out_of_range_engagement_passes_through(caplog):
    doc = copy.deepcopy(VALID)
    doc["sentimentGraph"][0]["engagement"] = 140
    with caplog.at_level(logging.WARNING, logger="salescoach.contract"):
        result = decode_response(json.dumps(doc))
    assert result.sentiment_graph[0].engagement == 140
    assert "outside 0-100" in caplog.text


def test_optional_label_and_extra_fields():
    doc = copy.deepcopy(VALID)
    doc["sentimentGraph"][0]["label"] = "Rapport"
    doc["callType"] = "discovery"
    result = decode_response(json.dumps(doc))
    assert result.sentiment_graph[0].label == "Rapport"
    assert result.sentiment_graph[1].label is None


def test_schema_lists_every_required_field():
    assert RESPONSE_SCHEMA["required"] == ["summary", "transcript", "sentimentGraph", "coaching"]
    items = RESPONSE_SCHEMA["properties"]["transcript"]["items"]
    assert items["required"] == ["speaker", "text", "timestamp"]
    coaching = RESPONSE_SCHEMA["properties"]["coaching"]
    assert coaching["required"] == ["strengths", "missedOpportunities"]
