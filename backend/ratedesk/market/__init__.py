"""Market data layer for RateDesk.

Public API:
    Candle, ChartSeries  - Chart-ready OHLC records
    RateQuote            - Latest rate for one symbol
    HistoryPoint         - One backend price per time bucket
    StatsSummary         - Max/min/avg summary with optional fields
    CandleGenerator      - Random-walk generator and history expansion
    generate             - Synthetic series from a base price
    price_change_percent - First-to-last close change, None when undefined
    date_range           - Timeframe to (start, end) date strings
"""

from .models import (
    Candle,
    ChartSeries,
    HistoryPoint,
    RateQuote,
    StatsSummary,
    price_change_percent,
)
from .synthetic import CandleGenerator, expand_history, generate
from .timeframes import TIMEFRAMES, date_range, stats_range

__all__ = [
    "Candle",
    "ChartSeries",
    "HistoryPoint",
    "RateQuote",
    "StatsSummary",
    "price_change_percent",
    "CandleGenerator",
    "expand_history",
    "generate",
    "TIMEFRAMES",
    "date_range",
    "stats_range",
]
