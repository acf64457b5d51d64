"""Usage snapshot assembly from local logs, optionally merged with Admin API figures."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from result import Err, Ok, Result

from ccu.config import Config, load_app_config
from ccu.data.admin_api import AdminApiClient, format_api_time
from ccu.data.discovery import collect_jsonl_files, get_data_dirs
from ccu.data.parser import parse_files, parse_timestamp
from ccu.models.remote import CostReportResponse, UsageReportResponse
from ccu.models.usage import (
    ActiveSession,
    DailyActivity,
    ModelUsage,
    QuotaInfo,
    TokenUsage,
    UsageStats,
    WeeklyUsage,
)
from ccu.services.activity import collect_daily_activity, compute_weekly_usage
from ccu.services.aggregation import aggregate_usage, build_active_sessions, sort_model_usage
from ccu.services.cost import get_model_display_name
from ccu.services.protocols import ReportSourceProtocol
from ccu.services.quota import (
    LOCAL_WEEK_PROMPT_LIMIT,
    WEEK_HOURS,
    WEIGHTED_WEEK_LIMIT,
    WINDOW_HOURS,
    count_user_prompts_in_window,
    count_weighted_usage_in_window,
    local_quota,
    remote_quota,
)

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "all")

# File mtime filters per period, with a buffer over the period itself
_PERIOD_FILE_HOURS: dict[str, int | None] = {
    "today": 25,
    "week": 24 * 8,
    "month": 24 * 32,
    "all": None,
}
_SESSION_FILE_HOURS = 25
_WINDOW_FILE_HOURS = 6
_WEEK_FILE_HOURS = 24 * 8
_ACTIVITY_FILE_HOURS = 24 * 85


def start_of_day(now: datetime) -> datetime:
    return now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def period_start(period: str, now: datetime) -> datetime | None:
    """Lower bound for totals: start of today (UTC), now-7d, now-30d or none."""
    match period:
        case "today":
            return start_of_day(now)
        case "week":
            return now - timedelta(days=7)
        case "month":
            return now - timedelta(days=30)
        case _:
            return None


def get_current_usage(
    period: str = "today",
    config: Config | None = None,
    *,
    now: datetime | None = None,
) -> Result[UsageStats, str]:
    """Compute a usage snapshot for a period from local logs only."""
    if period not in PERIODS:
        return Err(f"Unknown period: {period!r} (expected one of {', '.join(PERIODS)})")
    config = config or Config()
    data_dirs = get_data_dirs(config)
    if not data_dirs:
        return Err("No Claude data directories found")

    current = now or datetime.now(UTC)
    entries = parse_files(collect_jsonl_files(data_dirs, _PERIOD_FILE_HOURS[period], now=current))

    window_files = collect_jsonl_files(data_dirs, _WINDOW_FILE_HOURS, now=current)
    window_prompts = count_user_prompts_in_window(window_files, WINDOW_HOURS, now=current)
    week_files = collect_jsonl_files(data_dirs, _WEEK_FILE_HOURS, now=current)
    week_prompts = count_user_prompts_in_window(week_files, WEEK_HOURS, now=current)

    activity_files = collect_jsonl_files(data_dirs, _ACTIVITY_FILE_HOURS, now=current)
    daily_activity = collect_daily_activity(activity_files, now=current)

    aggregate = aggregate_usage(
        entries,
        period_start(period, current),
        now=current,
        todos_dirs=config.todos_dirs,
    )
    logger.debug(
        "Aggregated %d entries for %s: %d in period", len(entries), period, aggregate.message_count
    )

    return Ok(
        UsageStats(
            total_tokens=aggregate.total_tokens,
            total_cost_usd=aggregate.total_cost_usd,
            by_model=aggregate.by_model,
            message_count=aggregate.message_count,
            last_updated=aggregate.last_updated,
            quota=local_quota(window_prompts, week_prompts),
            active_sessions=aggregate.active_sessions,
            daily_activity=daily_activity,
            weekly_usage=compute_weekly_usage(
                daily_activity, LOCAL_WEEK_PROMPT_LIMIT, today=current.date()
            ),
        )
    )


@dataclass(frozen=True, slots=True)
class LocalSupplementalData:
    """Local figures merged into an Admin API snapshot."""

    active_sessions: list[ActiveSession]
    quota: QuotaInfo
    daily_activity: list[DailyActivity]
    weekly_usage: WeeklyUsage
    last_updated: str
    today_message_count: int


def get_local_supplemental_data(
    config: Config | None = None, *, now: datetime | None = None
) -> LocalSupplementalData:
    """Sessions, weighted quota and activity from local logs.

    Blocking file I/O; callers on an event loop run it in a worker thread.
    """
    config = config or Config()
    current = now or datetime.now(UTC)
    data_dirs = get_data_dirs(config)

    session_entries = parse_files(
        collect_jsonl_files(data_dirs, _SESSION_FILE_HOURS, now=current)
    )
    last_updated = max((e.timestamp for e in session_entries), default="")
    today_start = start_of_day(current)
    today_message_count = 0
    for entry in session_entries:
        ts = parse_timestamp(entry.timestamp)
        if ts is not None and ts >= today_start:
            today_message_count += 1

    window_files = collect_jsonl_files(data_dirs, _WINDOW_FILE_HOURS, now=current)
    window_prompts = count_user_prompts_in_window(window_files, WINDOW_HOURS, now=current)
    window_weighted = count_weighted_usage_in_window(window_files, WINDOW_HOURS, now=current)
    week_files = collect_jsonl_files(data_dirs, _WEEK_FILE_HOURS, now=current)
    week_weighted = count_weighted_usage_in_window(week_files, WEEK_HOURS, now=current)

    activity_files = collect_jsonl_files(data_dirs, _ACTIVITY_FILE_HOURS, now=current)
    daily_activity = collect_daily_activity(activity_files, now=current)

    return LocalSupplementalData(
        active_sessions=build_active_sessions(
            session_entries, now=current, todos_dirs=config.todos_dirs
        ),
        quota=remote_quota(window_prompts, window_weighted, week_weighted),
        daily_activity=daily_activity,
        weekly_usage=compute_weekly_usage(
            daily_activity, WEIGHTED_WEEK_LIMIT, today=current.date()
        ),
        last_updated=last_updated,
        today_message_count=today_message_count,
    )


def merge_remote_models(
    usage_report: UsageReportResponse, cost_report: CostReportResponse
) -> list[ModelUsage]:
    """Join remote token counts and costs by model id.

    Cost amounts are decimal strings in cents.
    """
    model_tokens: dict[str, TokenUsage] = {}
    for bucket in usage_report.data:
        for result in bucket.results:
            model = result.model or "unknown"
            cache_creation = 0
            if result.cache_creation is not None:
                cache_creation = (
                    result.cache_creation.ephemeral_5m_input_tokens
                    + result.cache_creation.ephemeral_1h_input_tokens
                )
            tokens = TokenUsage(
                input_tokens=result.uncached_input_tokens,
                output_tokens=result.output_tokens,
                cache_creation_input_tokens=cache_creation,
                cache_read_input_tokens=result.cache_read_input_tokens,
            )
            model_tokens[model] = model_tokens.get(model, TokenUsage()) + tokens

    model_costs: dict[str, float] = {}
    for bucket in cost_report.data:
        for cost in bucket.results:
            if cost.model is None or cost.amount is None:
                continue
            try:
                cents = float(cost.amount)
            except ValueError:
                logger.debug("Ignoring unparseable cost amount %r", cost.amount)
                continue
            model_costs[cost.model] = model_costs.get(cost.model, 0.0) + cents / 100

    return sort_model_usage(
        ModelUsage(
            model=model,
            display_name=get_model_display_name(model),
            tokens=tokens,
            cost_usd=model_costs.get(model, 0.0),
        )
        for model, tokens in model_tokens.items()
    )


async def build_usage_stats_from_api(
    client: ReportSourceProtocol,
    config: Config | None = None,
    *,
    now: datetime | None = None,
) -> Result[UsageStats, str]:
    """Today's snapshot with token/cost figures from the Admin API.

    The two report requests and the local log scan run concurrently.
    """
    current = now or datetime.now(UTC)
    starting_at = format_api_time(start_of_day(current))
    ending_at = format_api_time(current)

    usage_result, cost_result, local = await asyncio.gather(
        client.fetch_usage_report(starting_at, ending_at, "1d", ("model",)),
        client.fetch_cost_report(starting_at, ending_at),
        asyncio.to_thread(get_local_supplemental_data, config, now=current),
    )
    if isinstance(usage_result, Err):
        return usage_result
    if isinstance(cost_result, Err):
        return cost_result

    by_model = merge_remote_models(usage_result.ok_value, cost_result.ok_value)
    total = sum((m.tokens for m in by_model), TokenUsage())

    return Ok(
        UsageStats(
            total_tokens=total,
            total_cost_usd=sum(m.cost_usd for m in by_model),
            by_model=by_model,
            message_count=local.today_message_count,
            last_updated=local.last_updated,
            quota=local.quota,
            active_sessions=local.active_sessions,
            daily_activity=local.daily_activity,
            weekly_usage=local.weekly_usage,
        )
    )


async def get_usage(period: str = "today", config: Config | None = None) -> Result[UsageStats, str]:
    """Snapshot for display: Admin API figures for today when a key is set, else local."""
    config = config or Config()
    api_key = load_app_config(config.app_config_path).admin_api_key
    if api_key and period == "today":
        match AdminApiClient.create(api_key):
            case Ok(client):
                remote = await build_usage_stats_from_api(client, config)
                if isinstance(remote, Ok):
                    return remote
                logger.warning("Admin API unavailable, using local logs: %s", remote.err_value)
            case Err(message):
                logger.warning("%s", message)
    return await asyncio.to_thread(get_current_usage, period, config)
