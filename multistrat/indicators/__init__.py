from .technical import (
    atr,
    average_volume,
    bollinger_bands,
    closes,
    ema,
    highest_high,
    lowest_low,
    rsi,
    sma,
    true_ranges,
)

__all__ = [
    "atr",
    "average_volume",
    "bollinger_bands",
    "closes",
    "ema",
    "highest_high",
    "lowest_low",
    "rsi",
    "sma",
    "true_ranges",
]
