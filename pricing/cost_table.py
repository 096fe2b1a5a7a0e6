"""
Cost Table
Maps media duration and audit mode to a point cost.

Pricing chain: estimated tokens -> USD at model list price -> EUR -> points,
then a per-mode profit multiplier and a per-mode floor. Every step is
non-decreasing in duration, so longer media never costs less, and the deep
multiplier and floor are both above the standard ones, so deep >= standard.
"""

from __future__ import annotations

import math
from typing import Dict

from core import AuditMode, CostEstimate


MODEL_PRICING = {
    "gemini-2.5-flash": {"input_per_million": 0.50, "output_per_million": 2.00},
    "gemini-2.5-pro": {"input_per_million": 1.25, "output_per_million": 5.00},
}
DEFAULT_MODEL = "gemini-2.5-flash"

USD_TO_EUR_RATE = 0.95
POINTS_PER_EUR = 100

PROFIT_MULTIPLIERS = {
    AuditMode.STANDARD: 2.0,
    AuditMode.DEEP: 3.0,
}

MIN_POINTS = {
    AuditMode.STANDARD: 5,
    AuditMode.DEEP: 10,
}

FIXED_PRICES = {
    "link_article": 12,
    "social_post": 12,
    "comment_analysis": 15,
    "social_full_audit": 20,
    "compare_mode": 5,
}

LINK_ARTICLE_PRICE = FIXED_PRICES["link_article"]

# video frames + audio, per minute
VIDEO_TOKENS_PER_MINUTE = 2500
AUDIO_TOKENS_PER_MINUTE = 1920
PROMPT_OVERHEAD_TOKENS = 3000
OUTPUT_BASE_TOKENS = 5000
OUTPUT_TOKENS_PER_MINUTE = 100


def estimate_video_tokens(duration_seconds: int) -> Dict[str, int]:
    minutes = max(0, duration_seconds) / 60
    input_tokens = round(minutes * (VIDEO_TOKENS_PER_MINUTE + AUDIO_TOKENS_PER_MINUTE) + PROMPT_OVERHEAD_TOKENS)
    output_tokens = round(OUTPUT_BASE_TOKENS + minutes * OUTPUT_TOKENS_PER_MINUTE)
    return {"input": int(input_tokens), "output": int(output_tokens)}


def tokens_to_usd(input_tokens: int, output_tokens: int, model: str = DEFAULT_MODEL) -> float:
    pricing = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_MODEL])
    return (
        input_tokens / 1_000_000 * pricing["input_per_million"]
        + output_tokens / 1_000_000 * pricing["output_per_million"]
    )


def usd_to_points(cost_usd: float, mode: AuditMode) -> int:
    base_points = cost_usd * USD_TO_EUR_RATE * POINTS_PER_EUR
    return max(MIN_POINTS[mode], math.ceil(base_points * PROFIT_MULTIPLIERS[mode]))


def estimate_mode(duration_seconds: int, mode: AuditMode, model: str = DEFAULT_MODEL) -> CostEstimate:
    tokens = estimate_video_tokens(duration_seconds)
    cost_usd = tokens_to_usd(tokens["input"], tokens["output"], model)
    return CostEstimate(
        mode=mode,
        points_cost=usd_to_points(cost_usd, mode),
        estimated_tokens=tokens["input"] + tokens["output"],
        estimated_cost_usd=max(0.0, cost_usd),
    )


def estimate(duration_seconds: int, model: str = DEFAULT_MODEL) -> Dict[AuditMode, CostEstimate]:
    """Both mode estimates for a video of the given length. Negative input clamps to 0."""
    seconds = max(0, int(duration_seconds or 0))
    return {mode: estimate_mode(seconds, mode, model) for mode in (AuditMode.STANDARD, AuditMode.DEEP)}


def fallback_cost(mode: AuditMode) -> int:
    """Admission price used before any estimate exists."""
    return MIN_POINTS[mode]
