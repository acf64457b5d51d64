"""Typer CLI for CCU: usage, status and API key commands."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from ccu.config import AppConfig, Config, load_app_config, mask_api_key, save_app_config

app = typer.Typer(
    name="ccu",
    help="Claude Code Usage: token, cost and quota telemetry from local session logs.",
    no_args_is_help=True,
)

_BAR_WIDTH = 20
_HEAT_LEVELS = " .:-=+*#"


class Period(StrEnum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


HomeOption = Annotated[
    Path | None,
    typer.Option("--home", help="Home directory holding .claude / .config/claude"),
]


def _config(home: Path | None) -> Config:
    return Config(home=home) if home else Config()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Summarize Claude Code usage."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def usage(
    period: Annotated[Period, typer.Option("--period", "-p", help="Totals period")] = Period.TODAY,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw snapshot")] = False,
    home: HomeOption = None,
) -> None:
    """Show token, cost, quota and session figures."""
    from ccu.services.usage_service import get_usage

    result = asyncio.run(get_usage(period.value, _config(home)))
    if isinstance(result, Err):
        typer.echo(result.err_value, err=True)
        raise typer.Exit(1)
    stats = result.ok_value

    if as_json:
        typer.echo(stats.model_dump_json(indent=2))
        return

    total = stats.total_tokens
    typer.echo(
        f"Usage ({period.value}): ${stats.total_cost_usd:.2f}, {stats.message_count} messages"
    )
    typer.echo(
        f"  input {total.input_tokens:,}  output {total.output_tokens:,}  "
        f"cache write {total.cache_creation_input_tokens:,}  "
        f"cache read {total.cache_read_input_tokens:,}"
    )
    for model in stats.by_model:
        tokens = model.tokens.input_tokens + model.tokens.output_tokens
        typer.echo(f"  {model.display_name:<12} {tokens:>12,} tok  ${model.cost_usd:>8.2f}")

    quota = stats.quota
    typer.echo(f"\nQuota ({quota.plan})")
    typer.echo(
        f"  {quota.window_hours}h window  {_bar(quota.usage_percent)} {quota.usage_percent:5.1f}%"
    )
    typer.echo(f"  weekly     {_bar(quota.week_usage_percent)} {quota.week_usage_percent:5.1f}%")

    if stats.active_sessions:
        typer.echo("\nActive sessions")
    for session in stats.active_sessions:
        typer.echo(
            f"  {session.session_id}  {session.project:<20} {session.model_display_name:<10} "
            f"{session.message_count:>4} msg  ${session.cost_usd:.2f}  "
            f"ctx {session.context_remaining_percent:.0f}% left  todos {session.todo_count}"
        )


@app.command()
def status(home: HomeOption = None) -> None:
    """Print weekly usage percent and days until the weekly reset."""
    from ccu.services.status_service import StatusService

    service = StatusService(_config(home))
    percent, days_left = asyncio.run(service.get_usage_summary())
    typer.echo(f"{percent:.1f}% of weekly limit, resets in {days_left} day(s)")


@app.command()
def heatmap(home: HomeOption = None) -> None:
    """Render the 12-week prompt activity grid."""
    from ccu.services.activity import DAY_NAMES, bucket_weeks
    from ccu.services.usage_service import get_current_usage

    result = get_current_usage("today", _config(home))
    if isinstance(result, Err):
        typer.echo(result.err_value, err=True)
        raise typer.Exit(1)

    weeks = bucket_weeks(result.ok_value.daily_activity)
    peak = max((count for week in weeks for _, count in week), default=0)
    for dow, name in enumerate(DAY_NAMES):
        cells = "".join(_heat_cell(week[dow][1], peak) for week in weeks)
        typer.echo(f"{name} {cells}")


@app.command()
def dirs(home: HomeOption = None) -> None:
    """List the Claude data directories that were found."""
    from ccu.data.discovery import get_data_dirs

    found = get_data_dirs(_config(home))
    if not found:
        typer.echo("No Claude data directories found", err=True)
        raise typer.Exit(1)
    for path in found:
        typer.echo(str(path))


@app.command("set-key")
def set_key(
    api_key: Annotated[str, typer.Argument(help="Anthropic Admin API key; empty to clear")],
    home: HomeOption = None,
) -> None:
    """Store the Admin API key used for authoritative token and cost figures."""
    config = _config(home)
    saved = save_app_config(AppConfig(admin_api_key=api_key or None), config.app_config_path)
    if isinstance(saved, Err):
        typer.echo(saved.err_value, err=True)
        raise typer.Exit(1)
    typer.echo(f"Saved {mask_api_key(api_key)}" if api_key else "Cleared API key")


@app.command("validate-key")
def validate_key(home: HomeOption = None) -> None:
    """Check the stored Admin API key against the usage report endpoint."""
    from ccu.data.admin_api import AdminApiClient

    api_key = load_app_config(_config(home).app_config_path).admin_api_key
    if not api_key:
        typer.echo("No API key configured", err=True)
        raise typer.Exit(1)

    client = AdminApiClient.create(api_key)
    if isinstance(client, Err):
        typer.echo(client.err_value, err=True)
        raise typer.Exit(1)
    checked = asyncio.run(client.ok_value.validate())
    if isinstance(checked, Err):
        typer.echo(checked.err_value, err=True)
        raise typer.Exit(1)
    typer.echo(f"{mask_api_key(api_key)} is valid")


def _bar(percent: float) -> str:
    filled = round(percent / 100 * _BAR_WIDTH)
    return "[" + "#" * filled + "-" * (_BAR_WIDTH - filled) + "]"


def _heat_cell(count: int, peak: int) -> str:
    if count <= 0 or peak <= 0:
        return _HEAT_LEVELS[0]
    level = 1 + (count * (len(_HEAT_LEVELS) - 2)) // peak
    return _HEAT_LEVELS[min(level, len(_HEAT_LEVELS) - 1)]
