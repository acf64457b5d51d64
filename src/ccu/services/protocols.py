"""Protocol definitions for services."""

from __future__ import annotations

from typing import Protocol

from result import Result

from ccu.models.remote import CostReportResponse, UsageReportResponse


class ReportSourceProtocol(Protocol):
    """Interface for an authoritative source of today's token and cost reports."""

    async def fetch_usage_report(
        self,
        starting_at: str,
        ending_at: str | None = None,
        bucket_width: str = "1d",
        group_by: tuple[str, ...] = ("model",),
    ) -> Result[UsageReportResponse, str]: ...

    async def fetch_cost_report(
        self,
        starting_at: str,
        ending_at: str | None = None,
    ) -> Result[CostReportResponse, str]: ...
