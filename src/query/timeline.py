"""Sentiment timeline aggregation with adaptive bucketing.

Granularity follows volume: one point per commit below
``PER_COMMIT_THRESHOLD`` commits, daily buckets up to ``WEEKLY_THRESHOLD``,
weekly buckets (starting Sunday) above that. All bucketing is done in UTC.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import numpy as np

from common.constants import (
    FALLBACK_COMMIT_COUNT,
    FLAT_LINE_EPSILON,
    JITTER_AMPLITUDE,
    JITTER_SEED,
    PER_COMMIT_THRESHOLD,
    SENTIMENT_SCORES,
    TIMELINE_WINDOWS,
    WEEKLY_THRESHOLD,
)
from common.logger import get_logger
from ingest.models import CommitRecord
from ingest.sentiment import classify

logger = get_logger(__name__)

COMMIT_LABEL_FORMAT = "%b %d %H:%M"
BUCKET_LABEL_FORMAT = "%b %d"


@dataclass
class TimelinePoint:
    """One plotted point: a single commit or a day/week bucket."""

    bucket_label: str
    date: datetime
    sentiment_score: float
    commit_count: int
    example_preview_message: str


@dataclass
class TimelineResult:
    points: list[TimelinePoint] = field(default_factory=list)
    is_fallback: bool = False
    window: str = "30d"
    range_label: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window,
            "range_label": self.range_label,
            "is_fallback": self.is_fallback,
            "points": [
                {
                    "bucket_label": p.bucket_label,
                    "date": p.date.isoformat(),
                    "sentiment_score": p.sentiment_score,
                    "commit_count": p.commit_count,
                    "example_preview_message": p.example_preview_message,
                }
                for p in self.points
            ],
        }


def range_label(window: str) -> str:
    """Human readable label of a window ("Last 30 Days", "All Time")."""
    days = TIMELINE_WINDOWS[window]
    return "All Time" if days is None else f"Last {days} Days"


def commit_score(commit: CommitRecord) -> float:
    """Fixed numeric score of a commit's sentiment label."""
    label = commit.sentiment or classify(commit.message)
    return SENTIMENT_SCORES[label]


def build_timeline(
    commits: list[CommitRecord],
    window: str = "30d",
    now: datetime | None = None,
    rng: np.random.Generator | None = None,
) -> TimelineResult:
    """Build a smoothed sentiment series for a time window.

    When the window holds no commits but the input does, the most recent
    ``FALLBACK_COMMIT_COUNT`` commits are used instead and ``is_fallback``
    is set. Commits without a date are ignored before either step, so an
    input of only undated commits yields no points and no fallback: there
    is nothing to place on the time axis.

    Args:
        commits: Commits in any order
        window: One of "7d", "30d", "90d", "all"
        now: Reference time for the window (default: current UTC time)
        rng: Generator for flat-line jitter (default: seeded with JITTER_SEED)

    Returns:
        Points in non-decreasing date order

    Raises:
        ValueError: If the window is not supported
    """
    if window not in TIMELINE_WINDOWS:
        raise ValueError(f"Unsupported window {window!r}, expected one of {list(TIMELINE_WINDOWS)}")

    days = TIMELINE_WINDOWS[window]
    now = _as_utc(now or datetime.now(timezone.utc))

    dated = sorted(
        ((_as_utc(c.authored_date), c) for c in commits if c.authored_date is not None),
        key=lambda pair: pair[0],
    )
    if len(dated) < len(commits):
        logger.debug(f"Ignoring {len(commits) - len(dated)} undated commit(s)")

    if days is None:
        selected = dated
    else:
        cutoff = now - timedelta(days=days)
        selected = [pair for pair in dated if pair[0] > cutoff]

    is_fallback = False
    if not selected and dated:
        selected = dated[-FALLBACK_COMMIT_COUNT:]
        is_fallback = True

    result = TimelineResult(is_fallback=is_fallback, window=window, range_label=range_label(window))
    if not selected:
        return result

    if len(selected) < PER_COMMIT_THRESHOLD:
        points = [
            TimelinePoint(
                bucket_label=date.strftime(COMMIT_LABEL_FORMAT),
                date=date,
                sentiment_score=commit_score(commit),
                commit_count=1,
                example_preview_message=commit.message,
            )
            for date, commit in selected
        ]
    else:
        points = _bucket(selected, weekly=len(selected) > WEEKLY_THRESHOLD)

    scores = np.array([p.sentiment_score for p in points], dtype=float)
    scores = _jitter_flat_line(scores, rng or np.random.default_rng(JITTER_SEED))
    scores = np.clip(smooth(scores), -1.0, 1.0)

    for point, score in zip(points, scores):
        point.sentiment_score = float(score)

    result.points = points
    return result


def smooth(scores: np.ndarray) -> np.ndarray:
    """3-point moving average; edge points stand in for their missing neighbor."""
    if scores.size == 0:
        return scores
    padded = np.concatenate(([scores[0]], scores, [scores[-1]]))
    return np.convolve(padded, np.ones(3) / 3, mode="valid")


def week_start(value: datetime) -> datetime:
    """Midnight of the Sunday starting the week of ``value``."""
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _bucket(selected: list[tuple[datetime, CommitRecord]], weekly: bool) -> list[TimelinePoint]:
    buckets: dict[datetime, list[tuple[datetime, CommitRecord]]] = defaultdict(list)
    for date, commit in selected:
        if weekly:
            key = week_start(date)
        else:
            key = date.replace(hour=0, minute=0, second=0, microsecond=0)
        buckets[key].append((date, commit))

    points = []
    for key in sorted(buckets):
        members = buckets[key]
        points.append(
            TimelinePoint(
                bucket_label=key.strftime(BUCKET_LABEL_FORMAT),
                date=key,
                sentiment_score=float(np.mean([commit_score(c) for _, c in members])),
                commit_count=len(members),
                # members are in ascending date order
                example_preview_message=members[-1][1].message,
            )
        )
    return points


def _jitter_flat_line(scores: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    if scores.size < 2 or not np.all(np.abs(scores - scores[0]) < FLAT_LINE_EPSILON):
        return scores
    return scores + rng.uniform(-JITTER_AMPLITUDE, JITTER_AMPLITUDE, size=scores.size)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
