"""Rough per-model pricing for scan cost estimates."""
from __future__ import annotations

from types import MappingProxyType

# USD per 1K tokens, keyed by model-name prefix.
MODEL_PRICES = MappingProxyType(
    {
        "claude-sonnet-4": 0.003,
        "claude-3-5-sonnet": 0.003,
        "claude-3-5-haiku": 0.00025,
        "claude-3-opus": 0.015,
        "gemini": 0.0001,
        "gpt-4o": 0.005,
        "gpt-4-turbo": 0.01,
        "gpt-4": 0.03,
        "gpt-3.5": 0.0005,
        "o1": 0.015,
    }
)

DEFAULT_MODEL = "claude-3-5-sonnet"
DEFAULT_PRICE = 0.003

# Fallback price when a model matches no prefix.
TOOL_DEFAULT_PRICES = MappingProxyType({"copilot": 0.005, "windsurf": 0.003})

TOOL_MULTIPLIERS = MappingProxyType(
    {
        "claude": 1.0,
        "cursor": 1.0,
        "gemini": 1.0,
        "copilot": 1.0,
        "windsurf": 1.0,
    }
)


def base_price(model: str, tool: str = "") -> float:
    """Price of the longest table prefix matching the model.

    `gpt-4o` and `gpt-4-turbo` both start with `gpt-4` and must not be
    priced as it.
    """
    name = (model or DEFAULT_MODEL).strip().lower()
    best_prefix = ""
    for prefix in MODEL_PRICES:
        if name.startswith(prefix) and len(prefix) > len(best_prefix):
            best_prefix = prefix
    if best_prefix:
        return MODEL_PRICES[best_prefix]
    return TOOL_DEFAULT_PRICES.get(tool, DEFAULT_PRICE)


def tool_multiplier(tool: str) -> float:
    return TOOL_MULTIPLIERS.get(tool, 1.0)


def estimate_cost(total_tokens: int, model: str, tool: str = "") -> float:
    if total_tokens <= 0:
        return 0.0
    return total_tokens / 1000.0 * base_price(model, tool) * tool_multiplier(tool)
