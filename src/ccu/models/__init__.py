"""Pydantic models for CCU."""

from ccu.models.entries import LineOutcome, Parsed, ParsedEntry, Skip
from ccu.models.remote import (
    CacheCreation,
    CostBucket,
    CostReportResponse,
    CostResult,
    UsageBucket,
    UsageReportResponse,
    UsageResult,
)
from ccu.models.usage import (
    ActiveSession,
    DailyActivity,
    ModelUsage,
    QuotaInfo,
    TokenUsage,
    UsageStats,
    WeekDay,
    WeeklyUsage,
)

__all__ = [
    "ActiveSession",
    "CacheCreation",
    "CostBucket",
    "CostReportResponse",
    "CostResult",
    "DailyActivity",
    "LineOutcome",
    "ModelUsage",
    "Parsed",
    "ParsedEntry",
    "QuotaInfo",
    "Skip",
    "TokenUsage",
    "UsageBucket",
    "UsageReportResponse",
    "UsageResult",
    "UsageStats",
    "WeekDay",
    "WeeklyUsage",
]
