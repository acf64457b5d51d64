"""Daily activity heatmap and weekly usage rollups."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from ccu.data.parser import iter_prompt_timestamps
from ccu.models.usage import DailyActivity, WeekDay, WeeklyUsage

HEATMAP_DAYS = 84
HEATMAP_WEEKS = HEATMAP_DAYS // 7
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def collect_daily_activity(
    files: Iterable[Path], *, now: datetime | None = None
) -> list[DailyActivity]:
    """Count genuine user prompts per UTC day over the trailing 12 weeks."""
    cutoff = (now or datetime.now(UTC)) - timedelta(days=HEATMAP_DAYS)
    counts: Counter[str] = Counter(
        ts.strftime("%Y-%m-%d") for ts in iter_prompt_timestamps(files) if ts >= cutoff
    )
    return [
        DailyActivity(date=day, prompt_count=count) for day, count in sorted(counts.items())
    ]


def week_start(today: date) -> date:
    """The Sunday on or before ``today``; weekly limits reset at Sunday 00:00 UTC."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def bucket_weeks(
    daily: Iterable[DailyActivity], *, today: date | None = None
) -> list[list[tuple[str, int]]]:
    """Group daily counts into 12 Sunday-to-Saturday columns.

    The last column is the current week, so future days of this week appear
    with a zero count.
    """
    current = today or datetime.now(UTC).date()
    counts = {d.date: d.prompt_count for d in daily}
    start = week_start(current) - timedelta(weeks=HEATMAP_WEEKS - 1)

    weeks: list[list[tuple[str, int]]] = []
    for w in range(HEATMAP_WEEKS):
        week: list[tuple[str, int]] = []
        for d in range(7):
            day = (start + timedelta(days=w * 7 + d)).isoformat()
            week.append((day, counts.get(day, 0)))
        weeks.append(week)
    return weeks


def compute_weekly_usage(
    daily: Iterable[DailyActivity],
    estimated_weekly_limit: int,
    *,
    today: date | None = None,
) -> WeeklyUsage:
    """Per-day prompt counts for the current reset week."""
    current = today or datetime.now(UTC).date()
    counts = {d.date: d.prompt_count for d in daily}
    start = week_start(current)

    days: list[WeekDay] = []
    for offset, name in enumerate(DAY_NAMES):
        day = start + timedelta(days=offset)
        key = day.isoformat()
        days.append(
            WeekDay(
                date=key,
                day_name=name,
                prompt_count=counts.get(key, 0),
                is_today=day == current,
                is_future=day > current,
            )
        )
    return WeeklyUsage(
        days=days,
        week_start=start.isoformat(),
        estimated_weekly_limit=estimated_weekly_limit,
    )
