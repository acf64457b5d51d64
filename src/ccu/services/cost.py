"""Model pricing table, cost estimation and display names."""

from __future__ import annotations

from ccu.models.usage import TokenUsage

# Prices per million tokens (USD), matched by model-family substring in order.
# Static; update by hand when Anthropic pricing changes.
MODEL_PRICING: dict[str, dict[str, float]] = {
    "opus": {
        "input": 15.0,
        "output": 75.0,
        "cache_creation": 18.75,
        "cache_read": 1.50,
    },
    "sonnet": {
        "input": 3.0,
        "output": 15.0,
        "cache_creation": 3.75,
        "cache_read": 0.30,
    },
    "haiku": {
        "input": 0.25,
        "output": 1.25,
        "cache_creation": 0.30,
        "cache_read": 0.03,
    },
}

# Unknown models are billed at Sonnet rates
DEFAULT_PRICING: dict[str, float] = MODEL_PRICING["sonnet"]

# All Claude 3.5/4 models share a 200K context window
CONTEXT_LIMIT = 200_000

_DISPLAY_NAMES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("opus-4-5", "opus-4.5"), "Opus 4.5"),
    (("opus-4",), "Opus 4"),
    (("opus",), "Opus"),
    (("sonnet-4",), "Sonnet 4"),
    (("sonnet-3-5", "sonnet-3.5"), "Sonnet 3.5"),
    (("sonnet",), "Sonnet"),
    (("haiku-3-5", "haiku-3.5"), "Haiku 3.5"),
    (("haiku",), "Haiku"),
)


def model_family(model: str) -> str | None:
    """Return 'opus', 'sonnet' or 'haiku' for a model id, or None."""
    for family in MODEL_PRICING:
        if family in model:
            return family
    return None


def get_pricing(model: str) -> dict[str, float]:
    """Get pricing for a model, falling back to default."""
    family = model_family(model)
    return MODEL_PRICING[family] if family else DEFAULT_PRICING


def calculate_cost(model: str, tokens: TokenUsage) -> float:
    """Cost in USD of the given token counts at the model's rates."""
    pricing = get_pricing(model)
    million = 1_000_000
    return (
        tokens.input_tokens / million * pricing["input"]
        + tokens.output_tokens / million * pricing["output"]
        + tokens.cache_creation_input_tokens / million * pricing["cache_creation"]
        + tokens.cache_read_input_tokens / million * pricing["cache_read"]
    )


def get_model_display_name(model: str) -> str:
    """Short name like 'Opus 4.5' for 'claude-opus-4-5-20251101'."""
    for patterns, name in _DISPLAY_NAMES:
        if any(p in model for p in patterns):
            return name
    return model


def context_remaining_percent(context_tokens: int, limit: int = CONTEXT_LIMIT) -> float:
    used_percent = context_tokens / limit * 100
    return max(0.0, 100.0 - used_percent)
