"""Response models for the Anthropic Admin usage and cost reports."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CacheCreation(BaseModel):
    ephemeral_1h_input_tokens: int = 0
    ephemeral_5m_input_tokens: int = 0


class UsageResult(BaseModel):
    """Token counts for one model inside a usage bucket."""

    model: str | None = None
    uncached_input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation: CacheCreation | None = None


class UsageBucket(BaseModel):
    starting_at: str
    ending_at: str
    results: list[UsageResult] = Field(default_factory=list)


class UsageReportResponse(BaseModel):
    data: list[UsageBucket] = Field(default_factory=list)
    has_more: bool = False
    next_page: str | None = None


class CostResult(BaseModel):
    """One cost line; `amount` is a decimal string in cents."""

    amount: str | None = None
    currency: str | None = None
    model: str | None = None
    cost_type: str | None = None


class CostBucket(BaseModel):
    starting_at: str
    ending_at: str
    results: list[CostResult] = Field(default_factory=list)


class CostReportResponse(BaseModel):
    data: list[CostBucket] = Field(default_factory=list)
    has_more: bool = False
    next_page: str | None = None
