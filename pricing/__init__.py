"""Point pricing."""

from .cost_table import (
    FIXED_PRICES,
    LINK_ARTICLE_PRICE,
    MIN_POINTS,
    estimate,
    estimate_mode,
    estimate_video_tokens,
    fallback_cost,
    tokens_to_usd,
    usd_to_points,
)

__all__ = [
    "FIXED_PRICES",
    "LINK_ARTICLE_PRICE",
    "MIN_POINTS",
    "estimate",
    "estimate_mode",
    "estimate_video_tokens",
    "fallback_cost",
    "tokens_to_usd",
    "usd_to_points",
]
