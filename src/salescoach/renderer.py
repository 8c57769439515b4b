"""Markdown report rendering."""

from __future__ import annotations

from typing import List, Optional

from .contract import AnalysisResult, SentimentPoint

BAR_WIDTH = 20


def _yaml_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f"\"{escaped}\""


def _clean_text(value: str) -> str:
    return " ".join(value.split())


def _engagement_bar(engagement: int) -> str:
    filled = min(max(engagement, 0), 100) * BAR_WIDTH // 100
    return "#" * filled + "." * (BAR_WIDTH - filled)


def average_engagement(points: List[SentimentPoint]) -> Optional[float]:
    if not points:
        return None
    return sum(p.engagement for p in points) / len(points)


def render_transcript_lines(result: AnalysisResult) -> List[str]:
    return [
        f"[{_clean_text(seg.timestamp)}] **{_clean_text(seg.speaker)}:** {_clean_text(seg.text)}"
        for seg in result.transcript
    ]


def render_sentiment_lines(result: AnalysisResult) -> List[str]:
    lines = ["| Time | Engagement | |", "|---|---:|---|"]
    for point in result.sentiment_graph:
        label = _clean_text(point.time)
        if point.label:
            label = f"{label} ({_clean_text(point.label)})"
        lines.append(f"| {label} | {point.engagement} | `{_engagement_bar(point.engagement)}` |")
    return lines


def render_report(
    result: AnalysisResult,
    display_name: str,
    date: Optional[str] = None,
) -> str:
    lines: List[str] = []
    lines.append("---")
    lines.append("schema: 1")
    lines.append(f"audio: {_yaml_quote(display_name)}")
    if date:
        lines.append(f"date: {_yaml_quote(date)}")
    average = average_engagement(result.sentiment_graph)
    if average is not None:
        lines.append(f"average_engagement: {average:.1f}")
    lines.append("---")
    lines.append("")
    lines.append(f"# Call Analysis: {_clean_text(display_name)}")
    lines.append("")
    lines.append("## Summary")
    lines.append("")
    lines.append(result.summary.strip())
    lines.append("")
    lines.append("## Coaching")
    lines.append("")
    lines.append("### Strengths")
    lines.append("")
    lines.extend(f"- {_clean_text(item)}" for item in result.coaching.strengths)
    lines.append("")
    lines.append("### Missed Opportunities")
    lines.append("")
    lines.extend(f"- {_clean_text(item)}" for item in result.coaching.missed_opportunities)
    lines.append("")
    lines.append("## Engagement")
    lines.append("")
    lines.extend(render_sentiment_lines(result))
    lines.append("")
    lines.append("## Transcript")
    lines.append("")
    lines.extend(render_transcript_lines(result))
    lines.append("")
    return "\n".join(lines)
