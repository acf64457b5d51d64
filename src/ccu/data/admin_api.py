"""httpx-based client for the Anthropic Admin usage and cost reports.

All methods return ``Result`` values; request failures never raise.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from result import Err, Ok, Result

from ccu.models.remote import CostReportResponse, UsageReportResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


def format_api_time(value: datetime) -> str:
    """Format an instant the way the Admin API expects: ``2025-01-01T00:00:00Z``."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class AdminApiClient:
    """Async client for the organization usage/cost report endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def create(cls, api_key: str, **kwargs: object) -> Result[AdminApiClient, str]:
        """Build a client after checking the key can be sent as a header."""
        key = api_key.strip()
        if not key or not key.isascii() or any(ch.isspace() for ch in key):
            return Err("Invalid API key: must be a non-empty ASCII token")
        return Ok(cls(key, **kwargs))  # type: ignore[arg-type]

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key, "anthropic-version": ANTHROPIC_VERSION}

    async def _get(
        self, path: str, params: list[tuple[str, str]], label: str
    ) -> Result[httpx.Response, str]:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    f"{self._base_url}{path}", headers=self._headers, params=params
                )
        except httpx.HTTPError as exc:
            return Err(f"{label} request failed: {exc}")
        if not resp.is_success:
            return Err(f"{label} API error {resp.status_code}: {resp.text}")
        return Ok(resp)

    async def _get_report(
        self,
        path: str,
        params: list[tuple[str, str]],
        label: str,
        model: type[ModelT],
    ) -> Result[ModelT, str]:
        response = await self._get(path, params, label)
        if isinstance(response, Err):
            return response
        try:
            report = model.model_validate_json(response.ok_value.content)
        except ValidationError as exc:
            return Err(f"Failed to parse {label.lower()}: {exc}")
        if getattr(report, "has_more", False):
            logger.info("%s has more pages; only the first page is used", label)
        return Ok(report)

    async def fetch_usage_report(
        self,
        starting_at: str,
        ending_at: str | None = None,
        bucket_width: str = "1d",
        group_by: tuple[str, ...] = ("model",),
    ) -> Result[UsageReportResponse, str]:
        """GET /v1/organizations/usage_report/messages (first page only)."""
        params = [("starting_at", starting_at), ("bucket_width", bucket_width)]
        if ending_at:
            params.append(("ending_at", ending_at))
        params.extend(("group_by[]", g) for g in group_by)
        return await self._get_report(
            "/v1/organizations/usage_report/messages",
            params,
            "Usage report",
            UsageReportResponse,
        )

    async def fetch_cost_report(
        self,
        starting_at: str,
        ending_at: str | None = None,
    ) -> Result[CostReportResponse, str]:
        """GET /v1/organizations/cost_report grouped by description (first page only)."""
        params = [
            ("starting_at", starting_at),
            ("bucket_width", "1d"),
            ("group_by[]", "description"),
        ]
        if ending_at:
            params.append(("ending_at", ending_at))
        return await self._get_report(
            "/v1/organizations/cost_report",
            params,
            "Cost report",
            CostReportResponse,
        )

    async def validate(self, *, now: datetime | None = None) -> Result[None, str]:
        """Check the key with a minimal one-hour usage request."""
        current = now or datetime.now(UTC)
        params = [
            ("starting_at", format_api_time(current - timedelta(hours=1))),
            ("bucket_width", "1h"),
            ("limit", "1"),
        ]
        response = await self._get(
            "/v1/organizations/usage_report/messages", params, "Validation"
        )
        if isinstance(response, Err):
            return Err(f"API key validation failed: {response.err_value}")
        return Ok(None)
