"""Status labels for repository metrics shown next to the raw numbers."""

from dataclasses import dataclass
from typing import Literal

MetricKind = Literal["commits", "contributors", "churn", "refactors"]


@dataclass(frozen=True)
class MetricInsight:
    status: str
    color: str
    explanation: str


UNKNOWN_INSIGHT = MetricInsight("Unknown", "gray", "No data available.")


def metric_insight(kind: str, value: float) -> MetricInsight:
    """Describe a metric value with a status label and a short explanation.

    Args:
        kind: One of "commits", "contributors", "churn", "refactors"
        value: Metric value

    Returns:
        Insight for the value, or ``UNKNOWN_INSIGHT`` for an unknown kind
    """
    if kind == "commits":
        if value < 20:
            return MetricInsight(
                "Early Stage Project", "blue", "Project is in early development phase."
            )
        if value <= 100:
            return MetricInsight(
                "Active Development", "green", "Repository shows steady development activity."
            )
        return MetricInsight(
            "Mature Project", "purple", "Project has significant development history."
        )

    if kind == "contributors":
        if value == 1:
            return MetricInsight("Solo Project", "blue", "Maintained by a single developer.")
        if value <= 5:
            return MetricInsight(
                "Small Team", "green", "Collaborative development with a small team."
            )
        return MetricInsight(
            "Active Community", "purple", "Project has strong collaborative activity."
        )

    if kind == "churn":
        if value < 10:
            return MetricInsight(
                "Stable Codebase", "green", "Minimal code changes. System is stable."
            )
        if value <= 25:
            return MetricInsight("Moderate Changes", "yellow", "Codebase is evolving but stable.")
        if value <= 40:
            return MetricInsight("High Activity", "orange", "Frequent modifications detected.")
        return MetricInsight("High Volatility", "red", "Heavy rewrites may indicate instability.")

    if kind == "refactors":
        if value == 0:
            return MetricInsight(
                "No Structural Improvements",
                "gray",
                "No major architecture improvements detected.",
            )
        if value <= 3:
            return MetricInsight(
                "Improving Architecture", "green", "Some structural refinements detected."
            )
        return MetricInsight(
            "Active Optimization", "blue", "System is actively being optimized."
        )

    return UNKNOWN_INSIGHT
