"""Status summary for external consumers: weekly usage and days until reset."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import TypeAlias

from result import Err, Result

from ccu.config import Config
from ccu.models.usage import UsageStats
from ccu.services.usage_service import get_current_usage

logger = logging.getLogger(__name__)

UsageSummary: TypeAlias = tuple[float, int]
UsageLoader: TypeAlias = Callable[[str, Config], Result[UsageStats, str]]


def days_until_weekly_reset(today: date) -> int:
    """Days until next Sunday (UTC); 7 when today is Sunday."""
    days_since_sunday = (today.weekday() + 1) % 7
    return 7 - days_since_sunday


class StatusService:
    """Caches the weekly summary so repeated queries do not rescan logs."""

    def __init__(self, config: Config, loader: UsageLoader = get_current_usage) -> None:
        self._config = config
        self._loader = loader
        self._cache: UsageSummary | None = None
        self._lock = asyncio.Lock()

    def compute_usage_summary(self, *, today: date | None = None) -> UsageSummary:
        """Return (week_usage_percent, days_left); percent is 0.0 when no data."""
        days_left = days_until_weekly_reset(today or datetime.now(UTC).date())
        result = self._loader("week", self._config)
        if isinstance(result, Err):
            logger.info("No usage summary available: %s", result.err_value)
            return (0.0, days_left)
        return (result.ok_value.quota.week_usage_percent, days_left)

    async def update_cache(self) -> None:
        """Recompute the summary; call when the logs change."""
        summary = await asyncio.to_thread(self.compute_usage_summary)
        async with self._lock:
            self._cache = summary

    async def get_usage_summary(self) -> UsageSummary:
        async with self._lock:
            if self._cache is not None:
                return self._cache
        return await asyncio.to_thread(self.compute_usage_summary)
