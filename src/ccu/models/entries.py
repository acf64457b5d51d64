"""Line-level models produced while parsing JSONL logs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from ccu.models.usage import TokenUsage


@dataclass(frozen=True, slots=True)
class ParsedEntry:
    """A validated assistant turn."""

    model: str
    tokens: TokenUsage
    timestamp: str
    session_id: str
    cwd: str


@dataclass(frozen=True, slots=True)
class Skip:
    """Line carried no assistant turn; `cwd` is the working directory to carry forward."""

    cwd: str


@dataclass(frozen=True, slots=True)
class Parsed:
    """Line decoded into an assistant turn."""

    entry: ParsedEntry

    @property
    def cwd(self) -> str:
        return self.entry.cwd


LineOutcome: TypeAlias = Skip | Parsed
