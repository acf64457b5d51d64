"""Fold parsed assistant turns into per-model totals and active sessions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from ccu.data.parser import parse_timestamp
from ccu.data.todos import count_pending_todos
from ccu.models.entries import ParsedEntry
from ccu.models.usage import ActiveSession, ModelUsage, TokenUsage
from ccu.services.cost import (
    calculate_cost,
    context_remaining_percent,
    get_model_display_name,
)

ACTIVE_SESSION_HOURS = 24
SESSION_ID_DISPLAY_LEN = 8


@dataclass(frozen=True, slots=True)
class UsageAggregate:
    """Result of one aggregation pass."""

    by_model: list[ModelUsage]
    total_tokens: TokenUsage
    total_cost_usd: float
    message_count: int
    last_updated: str
    active_sessions: list[ActiveSession]


@dataclass
class _SessionAccumulator:
    """Running state for one session id."""

    cwd: str
    first_activity: str
    last_activity: str
    model: str
    context_tokens: int
    message_count: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0


@dataclass
class _Totals:
    by_model: dict[str, TokenUsage] = field(default_factory=dict)
    total: TokenUsage = field(default_factory=TokenUsage)
    message_count: int = 0
    latest: str = ""


def aggregate_usage(
    entries: Iterable[ParsedEntry],
    since: datetime | None = None,
    *,
    now: datetime | None = None,
    todos_dirs: Iterable[Path] = (),
) -> UsageAggregate:
    """Aggregate entries into model totals and the active-session table.

    ``since`` bounds the totals only; the 24-hour session window is measured
    from ``now`` independently of it.
    """
    entries = list(entries)
    totals = _Totals()

    for entry in entries:
        if since is not None:
            ts = parse_timestamp(entry.timestamp)
            if ts is not None and ts < since:
                continue

        totals.message_count += 1
        if entry.timestamp > totals.latest:
            totals.latest = entry.timestamp
        totals.by_model[entry.model] = totals.by_model.get(entry.model, TokenUsage()) + entry.tokens
        totals.total = totals.total + entry.tokens

    by_model = sort_model_usage(
        ModelUsage(
            model=model,
            display_name=get_model_display_name(model),
            tokens=tokens,
            cost_usd=calculate_cost(model, tokens),
        )
        for model, tokens in totals.by_model.items()
    )

    return UsageAggregate(
        by_model=by_model,
        total_tokens=totals.total,
        total_cost_usd=sum(m.cost_usd for m in by_model),
        message_count=totals.message_count,
        last_updated=totals.latest,
        active_sessions=build_active_sessions(entries, now=now, todos_dirs=todos_dirs),
    )


def sort_model_usage(usages: Iterable[ModelUsage]) -> list[ModelUsage]:
    """Sort by input+output tokens, highest first; ties keep their order."""
    return sorted(
        usages,
        key=lambda m: m.tokens.input_tokens + m.tokens.output_tokens,
        reverse=True,
    )


def build_active_sessions(
    entries: Iterable[ParsedEntry],
    *,
    now: datetime | None = None,
    todos_dirs: Iterable[Path] = (),
) -> list[ActiveSession]:
    """Build one row per session with assistant activity in the trailing 24 hours.

    First/last activity compare the raw RFC3339 strings, which order correctly
    as long as every log uses the same UTC representation.
    """
    current = now or datetime.now(UTC)
    day_ago = current - timedelta(hours=ACTIVE_SESSION_HOURS)
    sessions: dict[str, _SessionAccumulator] = {}

    for entry in entries:
        if not entry.session_id:
            continue
        ts = parse_timestamp(entry.timestamp)
        if ts is None or ts < day_ago:
            continue

        context_tokens = entry.tokens.context_tokens
        acc = sessions.get(entry.session_id)
        if acc is None:
            acc = sessions[entry.session_id] = _SessionAccumulator(
                cwd=entry.cwd,
                first_activity=entry.timestamp,
                last_activity=entry.timestamp,
                model=entry.model,
                context_tokens=context_tokens,
            )
        if entry.timestamp < acc.first_activity:
            acc.first_activity = entry.timestamp
        if entry.timestamp > acc.last_activity:
            acc.last_activity = entry.timestamp
            acc.model = entry.model
            acc.context_tokens = context_tokens
        acc.message_count += 1
        acc.total_tokens += entry.tokens.total
        acc.cost_usd += calculate_cost(entry.model, entry.tokens)

    todos_dirs = tuple(todos_dirs)
    active = [
        _to_active_session(session_id, acc, todos_dirs) for session_id, acc in sessions.items()
    ]
    active.sort(key=lambda s: s.last_activity, reverse=True)
    return active


def _to_active_session(
    session_id: str, acc: _SessionAccumulator, todos_dirs: tuple[Path, ...]
) -> ActiveSession:
    return ActiveSession(
        session_id=session_id[:SESSION_ID_DISPLAY_LEN],
        project=_project_name(acc.cwd),
        directory=acc.cwd,
        first_activity=acc.first_activity,
        last_activity=acc.last_activity,
        duration_minutes=_duration_minutes(acc.first_activity, acc.last_activity),
        message_count=acc.message_count,
        total_tokens=acc.total_tokens,
        cost_usd=acc.cost_usd,
        model=acc.model,
        model_display_name=get_model_display_name(acc.model),
        context_remaining_percent=context_remaining_percent(acc.context_tokens),
        todo_count=count_pending_todos(session_id, todos_dirs),
    )


def _project_name(cwd: str) -> str:
    return cwd.rstrip("/").split("/")[-1]


def _duration_minutes(first: str, last: str) -> int:
    start = parse_timestamp(first)
    end = parse_timestamp(last)
    if start is None or end is None:
        return 0
    return max(int((end - start).total_seconds() // 60), 0)
