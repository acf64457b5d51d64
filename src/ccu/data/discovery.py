"""Discover Claude data directories and JSONL log files."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path

from ccu.config import Config

logger = logging.getLogger(__name__)


def get_data_dirs(config: Config) -> list[Path]:
    """Return the Claude projects directories that exist, current location first."""
    dirs: list[Path] = []
    for projects_dir in config.projects_dirs:
        if projects_dir.is_dir():
            dirs.append(projects_dir)
        else:
            logger.info("Claude projects directory not found: %s", projects_dir)
    return dirs


def collect_jsonl_files(
    data_dirs: list[Path],
    max_age_hours: int | None = None,
    *,
    now: datetime | None = None,
) -> list[Path]:
    """Collect ``*.jsonl`` files beneath each root.

    With ``max_age_hours`` only files modified at or after ``now - max_age_hours``
    are returned. A file whose mtime cannot be read is kept; the parser reports it.
    """
    cutoff: float | None = None
    if max_age_hours is not None:
        current = now or datetime.now(UTC)
        cutoff = (current - timedelta(hours=max_age_hours)).timestamp()

    files: list[Path] = []
    for data_dir in data_dirs:
        if not data_dir.is_dir():
            continue
        for jsonl_path in sorted(data_dir.rglob("*.jsonl")):
            if cutoff is not None and not _modified_since(jsonl_path, cutoff):
                continue
            files.append(jsonl_path)
    return files


def _modified_since(path: Path, cutoff: float) -> bool:
    try:
        mtime = path.stat().st_mtime
    except OSError:
        logger.debug("Could not stat %s, keeping it", path)
        return True
    return mtime >= cutoff
