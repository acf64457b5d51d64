"""Tolerant line-oriented parser for Claude Code JSONL logs."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Generator, Iterable
from datetime import UTC, datetime
from pathlib import Path

from result import Err, Ok, Result

from ccu.models.entries import LineOutcome, Parsed, ParsedEntry, Skip
from ccu.models.usage import TokenUsage

logger = logging.getLogger(__name__)

_RFC3339 = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})"
)


def parse_line(line: str, last_cwd: str = "") -> LineOutcome:
    """Classify and decode one log line.

    Returns ``Parsed`` for an assistant turn carrying both a model and a usage
    block, otherwise ``Skip``. Either way the outcome carries the working
    directory that later lines should inherit.
    """
    line = line.strip()
    if not line:
        return Skip(last_cwd)
    try:
        raw = json.loads(line)
    except (ValueError, RecursionError):
        return Skip(last_cwd)
    if not isinstance(raw, dict):
        return Skip(last_cwd)

    cwd = raw.get("cwd")
    if isinstance(cwd, str):
        last_cwd = cwd

    if raw.get("type") != "assistant":
        return Skip(last_cwd)

    msg = raw.get("message")
    if not isinstance(msg, dict):
        return Skip(last_cwd)
    model = msg.get("model")
    usage = msg.get("usage")
    if not isinstance(model, str) or not isinstance(usage, dict):
        return Skip(last_cwd)

    return Parsed(
        ParsedEntry(
            model=model,
            tokens=_parse_usage(usage),
            timestamp=_as_str(raw.get("timestamp")),
            session_id=_as_str(raw.get("sessionId")),
            cwd=last_cwd,
        )
    )


def parse_usage_file(path: Path) -> Result[list[ParsedEntry], str]:
    """Parse every assistant turn in a log file.

    Malformed lines are skipped; only a failure to read the file is an error.
    """
    entries: list[ParsedEntry] = []
    last_cwd = ""
    try:
        for line_num, line in enumerate(iter_lines(path), 1):
            outcome = parse_line(line, last_cwd)
            last_cwd = outcome.cwd
            match outcome:
                case Parsed(entry=entry):
                    entries.append(entry)
                case Skip() if line.strip():
                    logger.debug("Skipped line %s:%d", path, line_num)
    except OSError as exc:
        return Err(f"Failed to read {path}: {exc}")
    return Ok(entries)


def parse_files(paths: Iterable[Path]) -> list[ParsedEntry]:
    """Parse several files, skipping any that cannot be read."""
    entries: list[ParsedEntry] = []
    for path in paths:
        match parse_usage_file(path):
            case Ok(parsed):
                entries.extend(parsed)
            case Err(message):
                logger.warning("%s", message)
    return entries


def parse_user_prompt_timestamp(line: str) -> str | None:
    """Return the timestamp of a genuine user prompt, else ``None``.

    A prompt is genuine when its content is plain text or contains at least one
    ``text`` block; user entries holding only tool results do not count.
    """
    try:
        raw = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if not isinstance(raw, dict) or raw.get("type") != "user":
        return None

    msg = raw.get("message")
    if not isinstance(msg, dict) or "content" not in msg:
        return None
    content = msg["content"]

    if isinstance(content, str):
        is_prompt = True
    elif isinstance(content, list):
        is_prompt = any(
            isinstance(block, dict) and block.get("type") == "text" for block in content
        )
    else:
        is_prompt = False

    if not is_prompt:
        return None
    timestamp = raw.get("timestamp")
    return timestamp if isinstance(timestamp, str) else None


def iter_prompt_timestamps(paths: Iterable[Path]) -> Generator[datetime]:
    """Yield the parsed timestamp of every genuine user prompt in the files."""
    for path in paths:
        try:
            for line in iter_lines(path):
                if not line.strip():
                    continue
                ts = parse_user_prompt_timestamp(line)
                if ts is None:
                    continue
                parsed = parse_timestamp(ts)
                if parsed is not None:
                    yield parsed
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)


def iter_lines(path: Path) -> Generator[str]:
    """Stream the lines of a text log; undecodable bytes are replaced."""
    with open(path, encoding="utf-8", errors="replace") as file:
        yield from file


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Dates without a time, basic ISO forms and timestamps without an offset
    are rejected.
    """
    if not _RFC3339.fullmatch(value):
        return None
    if value[-1] in "Zz":
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value.replace("t", "T"))
    except ValueError:
        return None
    return parsed.astimezone(UTC)


def _parse_usage(usage: dict[str, object]) -> TokenUsage:
    return TokenUsage(
        input_tokens=_count(usage.get("input_tokens")),
        output_tokens=_count(usage.get("output_tokens")),
        cache_creation_input_tokens=_count(usage.get("cache_creation_input_tokens")),
        cache_read_input_tokens=_count(usage.get("cache_read_input_tokens")),
    )


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _count(val: object) -> int:
    """Coerce a token counter to a non-negative int."""
    if isinstance(val, bool):
        return 0
    if isinstance(val, int):
        return max(val, 0)
    if isinstance(val, float | str):
        try:
            return max(int(float(val)), 0)
        except (ValueError, OverflowError):
            return 0
    return 0
