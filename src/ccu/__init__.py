"""Claude Code usage telemetry from local session logs."""

__version__ = "0.1.0"
