"""Pending todo counts from Claude's per-session todo files."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def count_pending_todos(session_id: str, todos_dirs: Iterable[Path]) -> int:
    """Count todos not marked completed for a session.

    The first ``<session_id>*.json`` file (by name) holding a JSON list wins.
    Session ids are matched as a literal name prefix.
    """
    if not session_id:
        return 0
    for todos_dir in todos_dirs:
        for path in _todo_files(session_id, todos_dir):
            todos = _load_todo_list(path)
            if todos is None:
                continue
            return sum(
                1
                for item in todos
                if not (isinstance(item, dict) and item.get("status") == "completed")
            )
    return 0


def _todo_files(session_id: str, todos_dir: Path) -> list[Path]:
    try:
        return sorted(
            path
            for path in todos_dir.iterdir()
            if path.name.startswith(session_id) and path.name.endswith(".json")
        )
    except OSError:
        return []


def _load_todo_list(path: Path) -> list[object] | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError):
        logger.debug("Unreadable todo file %s", path)
        return None
    return payload if isinstance(payload, list) else None
