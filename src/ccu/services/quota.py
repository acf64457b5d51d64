"""Rolling-window prompt counters and quota estimates.

Two estimators exist. The local one divides raw prompt counts by a fixed
5-hour limit; the one used alongside the Admin API divides a weighted usage
score by different limits. They do not agree for the same activity.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from ccu.data.parser import (
    iter_lines,
    iter_prompt_timestamps,
    parse_line,
    parse_timestamp,
    parse_user_prompt_timestamp,
)
from ccu.models.entries import Parsed
from ccu.models.usage import QuotaInfo
from ccu.services.cost import model_family

logger = logging.getLogger(__name__)

PLAN = "Max 5x"
WINDOW_HOURS = 5
WEEK_HOURS = 24 * 7
WEEK_LIMIT_HOURS = 210

# Max 5x allows roughly 50-200 prompts per 5 hours; 125 is the midpoint
LOCAL_PROMPT_LIMIT = 125
LOCAL_WEEK_PROMPT_LIMIT = LOCAL_PROMPT_LIMIT * WEEK_HOURS // WINDOW_HOURS

WEIGHTED_LIMIT = 500
WEIGHTED_WEEK_LIMIT = 2590

# Weighted score per assistant turn by model family; prompts count 1.0
MODEL_WEIGHTS: dict[str, float] = {"opus": 5.0, "sonnet": 1.0, "haiku": 0.25}
DEFAULT_MODEL_WEIGHT = 1.0
PROMPT_WEIGHT = 1.0


def count_user_prompts_in_window(
    files: Iterable[Path], hours: int, *, now: datetime | None = None
) -> int:
    """Count genuine user prompts timestamped within the trailing window."""
    window_start = (now or datetime.now(UTC)) - timedelta(hours=hours)
    return sum(1 for ts in iter_prompt_timestamps(files) if ts >= window_start)


def count_weighted_usage_in_window(
    files: Iterable[Path], hours: int, *, now: datetime | None = None
) -> float:
    """Weighted load within the trailing window.

    Each genuine user prompt adds ``PROMPT_WEIGHT``; each assistant turn adds the
    weight of its model family, so Opus-heavy work consumes quota faster.
    """
    window_start = (now or datetime.now(UTC)) - timedelta(hours=hours)
    score = 0.0
    for path in files:
        try:
            for line in iter_lines(path):
                if not line.strip():
                    continue
                score += _line_weight(line, window_start)
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
    return score


def _line_weight(line: str, window_start: datetime) -> float:
    prompt_ts = parse_user_prompt_timestamp(line)
    if prompt_ts is not None:
        ts = parse_timestamp(prompt_ts)
        return PROMPT_WEIGHT if ts is not None and ts >= window_start else 0.0

    outcome = parse_line(line)
    if not isinstance(outcome, Parsed):
        return 0.0
    ts = parse_timestamp(outcome.entry.timestamp)
    if ts is None or ts < window_start:
        return 0.0
    family = model_family(outcome.entry.model)
    return MODEL_WEIGHTS[family] if family else DEFAULT_MODEL_WEIGHT


def clamp_percent(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def local_quota(prompts_in_window: int, week_prompts: int) -> QuotaInfo:
    """Quota from raw prompt counts against the fixed prompt heuristic."""
    return QuotaInfo(
        messages_in_window=prompts_in_window,
        window_hours=WINDOW_HOURS,
        estimated_limit=LOCAL_PROMPT_LIMIT,
        usage_percent=clamp_percent(prompts_in_window / LOCAL_PROMPT_LIMIT * 100),
        plan=PLAN,
        week_usage_percent=clamp_percent(week_prompts / LOCAL_WEEK_PROMPT_LIMIT * 100),
        week_limit_hours=WEEK_LIMIT_HOURS,
    )


def remote_quota(prompts_in_window: int, weighted_window: float, weighted_week: float) -> QuotaInfo:
    """Quota from weighted usage scores, used with Admin API figures."""
    return QuotaInfo(
        messages_in_window=prompts_in_window,
        window_hours=WINDOW_HOURS,
        estimated_limit=WEIGHTED_LIMIT,
        usage_percent=clamp_percent(weighted_window / WEIGHTED_LIMIT * 100),
        plan=PLAN,
        week_usage_percent=clamp_percent(weighted_week / WEIGHTED_WEEK_LIMIT * 100),
        week_limit_hours=WEEK_LIMIT_HOURS,
    )
