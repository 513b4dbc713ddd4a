"""Readable digest of a comparison: insights, recommendations and quick wins."""

from __future__ import annotations

from typing import Any, Dict, Sequence

from ..io.models import ComparisonMetrics, Discrepancy

_IMPACT = {"high": "High", "medium": "Medium", "low": "Low"}
_MAX_ACTION_ITEMS = 5
_MAX_QUICK_WINS = 3


def build_insights(
    metrics: ComparisonMetrics,
    discrepancies: Sequence[Discrepancy],
    timestamp: str,
) -> Dict[str, Any]:
    """Summarise *discrepancies* into review-friendly guidance."""
    insights = [
        {
            "type": d.type,
            "severity": d.severity,
            "category": d.type,
            "title": f"{d.type.capitalize()} Issue",
            "description": d.description,
            "suggestion": d.recommendation
            or "Review and adjust implementation to match design",
            "confidence": 85,
            "impact": _IMPACT[d.severity],
        }
        for d in discrepancies
    ]

    recommendations = [
        {
            "priority": d.severity,
            "category": d.type,
            "title": f"Fix {d.type} discrepancy",
            "description": d.description,
            "action": d.recommendation
            or "Adjust implementation to match design specifications",
            "estimatedTime": "30-60 minutes",
            "impact": "High",
            "effort": "Medium",
        }
        for d in discrepancies
        if d.severity == "high"
    ]

    action_items = [
        {
            "id": index,
            "priority": d.severity,
            "title": f"Address {d.type} issue",
            "description": d.description,
            "category": d.type,
            "estimatedTime": "15-45 minutes",
            "confidence": 80,
        }
        for index, d in enumerate(discrepancies[:_MAX_ACTION_ITEMS], start=1)
    ]

    quick_wins = [
        {
            "title": f"Quick fix: {d.type}",
            "description": d.description,
            "action": d.recommendation or "Minor adjustment needed",
            "estimatedTime": "5-15 minutes",
            "impact": "Low",
            "confidence": 90,
            "category": d.type,
        }
        for d in discrepancies
        if d.severity == "low"
    ][:_MAX_QUICK_WINS]

    return {
        "timestamp": timestamp,
        "overallScore": metrics.quality_score,
        "insights": insights,
        "recommendations": recommendations,
        "issueBreakdown": {
            "bySeverity": dict(metrics.severity_breakdown),
            "byCategory": dict(metrics.discrepancy_types),
            "total": metrics.total_discrepancies,
        },
        "summary": (
            f"Screenshot comparison completed with {metrics.quality_score:.0f}% "
            f"quality score. {metrics.total_discrepancies} discrepancies found."
        ),
        "actionItems": action_items,
        "quickWins": quick_wins,
    }
