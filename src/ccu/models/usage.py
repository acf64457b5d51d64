"""Usage snapshot models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenUsage(BaseModel):
    """Token counters from one or more API calls."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_creation_input_tokens: int = Field(default=0, ge=0)
    cache_read_input_tokens: int = Field(default=0, ge=0)

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_creation_input_tokens=(
                self.cache_creation_input_tokens + other.cache_creation_input_tokens
            ),
            cache_read_input_tokens=self.cache_read_input_tokens + other.cache_read_input_tokens,
        )

    @property
    def total(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_input_tokens
            + self.cache_read_input_tokens
        )

    @property
    def context_tokens(self) -> int:
        """Tokens occupying the context window at this turn."""
        return self.cache_read_input_tokens + self.cache_creation_input_tokens + self.input_tokens


class ModelUsage(BaseModel):
    """Per-model rollup."""

    model_config = ConfigDict(frozen=True)

    model: str
    display_name: str
    tokens: TokenUsage = Field(default_factory=TokenUsage)
    cost_usd: float = 0.0


class QuotaInfo(BaseModel):
    """Rolling-window quota estimate."""

    model_config = ConfigDict(frozen=True)

    messages_in_window: int = 0
    window_hours: int = 5
    estimated_limit: int = 0
    usage_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    plan: str = ""
    week_usage_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    week_limit_hours: int = 0


class ActiveSession(BaseModel):
    """A session with assistant activity in the trailing 24 hours."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    project: str = ""
    directory: str = ""
    first_activity: str = ""
    last_activity: str = ""
    duration_minutes: int = 0
    message_count: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    model: str = ""
    model_display_name: str = ""
    context_remaining_percent: float = 100.0
    todo_count: int = 0


class DailyActivity(BaseModel):
    """Genuine user prompts on one UTC calendar day."""

    model_config = ConfigDict(frozen=True)

    date: str  # YYYY-MM-DD
    prompt_count: int = 0


class WeekDay(BaseModel):
    """One day of the current reset week."""

    model_config = ConfigDict(frozen=True)

    date: str
    day_name: str
    prompt_count: int = 0
    is_today: bool = False
    is_future: bool = False


class WeeklyUsage(BaseModel):
    """Sunday-to-Saturday prompt counts for the current week."""

    model_config = ConfigDict(frozen=True)

    days: list[WeekDay] = Field(default_factory=list)
    week_start: str = ""
    estimated_weekly_limit: int = 0


class UsageStats(BaseModel):
    """Aggregate usage snapshot, rebuilt from raw logs on every call."""

    model_config = ConfigDict(frozen=True)

    total_tokens: TokenUsage = Field(default_factory=TokenUsage)
    total_cost_usd: float = 0.0
    by_model: list[ModelUsage] = Field(default_factory=list)
    message_count: int = 0
    last_updated: str = ""
    quota: QuotaInfo = Field(default_factory=QuotaInfo)
    active_sessions: list[ActiveSession] = Field(default_factory=list)
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    weekly_usage: WeeklyUsage = Field(default_factory=WeeklyUsage)
