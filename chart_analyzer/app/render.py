"""
Plain-text rendering of analysis results for the command-line client.

Fields the model could not determine (missing or null) are simply not shown.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .schemas import AnalysisRecord

CONFIDENCE_MARKERS = {"High": "[+++]", "Medium": "[++ ]", "Low": "[+  ]"}
TREND_MARKERS = {"Bullish": "↑", "Bearish": "↓", "Sideways": "→"}

# (record key, label) in display order
_LEVEL_FIELDS = (
    ("entryPoint", "Entry point"),
    ("stopLoss", "Stop loss"),
    ("target", "Target"),
    ("riskReward", "Risk/Reward"),
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def format_timestamp(timestamp: Optional[str]) -> Optional[str]:
    if not timestamp:
        return None
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except ValueError:
        return timestamp


def render_analysis(record: AnalysisRecord, timestamp: Optional[str] = None) -> str:
    lines: List[str] = ["Chart Analysis", "=" * 40]

    completed = format_timestamp(timestamp)
    if completed:
        lines.append(f"Analysis completed: {completed}")

    pattern = record.get("pattern")
    if _present(pattern):
        lines.append(f"Pattern:     {pattern}")

    confidence = record.get("confidence")
    if _present(confidence):
        marker = CONFIDENCE_MARKERS.get(confidence, "") if isinstance(confidence, str) else ""
        lines.append(f"Confidence:  {confidence} {marker}".rstrip())

    trend = record.get("trend")
    if _present(trend):
        marker = TREND_MARKERS.get(trend, "") if isinstance(trend, str) else ""
        lines.append(f"Trend:       {trend} {marker}".rstrip())

    timeframe = record.get("timeframe")
    if _present(timeframe):
        lines.append(f"Timeframe:   {timeframe}")

    levels = [(label, record.get(key)) for key, label in _LEVEL_FIELDS if _present(record.get(key))]
    if levels:
        lines.append("")
        lines.append("Trade levels")
        lines.append("-" * 40)
        for label, value in levels:
            lines.append(f"{label + ':':<13}{value}")

    explanation = record.get("explanation")
    if _present(explanation):
        lines.append("")
        lines.append("Explanation")
        lines.append("-" * 40)
        lines.append(str(explanation))

    return "\n".join(lines)


def render_error(envelope: Dict[str, Any]) -> str:
    lines = ["Analysis Failed", f"{envelope.get('error') or 'Unknown error'}"]
    if envelope.get("details"):
        lines.append(str(envelope["details"]))
    return "\n".join(lines)


def render_raw(envelope: Dict[str, Any]) -> str:
    """Fallback when the model reply is not structured JSON."""
    return "Raw analysis (could not be parsed):\n" + str(envelope.get("analysis") or "")
