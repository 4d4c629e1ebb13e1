"""Data models for market data."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Candle:
    """One open/high/low/close/volume bucket of a chart series."""

    time: int | str  # Ordinal index for synthetic data, yyyy-MM-dd for history
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def is_up(self) -> bool:
        return self.close >= self.open

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            "isUp": self.is_up,
        }


@dataclass(frozen=True, slots=True)
class ChartSeries:
    """Candles for exactly one (symbol, timeframe) pair.

    Replaced wholesale on every fetch. ``synthetic`` is True when the candles
    came from the random-walk generator rather than backend history.
    """

    symbol: str
    timeframe: str
    candles: tuple[Candle, ...] = ()
    synthetic: bool = False

    @property
    def price_change_percent(self) -> float | None:
        """Change from first to last close, or None with fewer than 2 candles."""
        return price_change_percent(self.candles)

    def __len__(self) -> int:
        return len(self.candles)

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "synthetic": self.synthetic,
            "candles": [c.to_dict() for c in self.candles],
        }


@dataclass(frozen=True, slots=True)
class RateQuote:
    """Latest rate for a single symbol as returned by /rates/latest."""

    symbol: str
    rate: float
    timestamp: int | None = None  # Unix seconds

    @classmethod
    def from_payload(cls, item: dict) -> RateQuote:
        """Build from a backend item. Raises KeyError/TypeError/ValueError if malformed."""
        return cls(
            symbol=str(item["symbol"]).strip().upper(),
            rate=float(item["rate"]),
            timestamp=item.get("timestamp"),
        )


@dataclass(frozen=True, slots=True)
class HistoryPoint:
    """A single backend price per time bucket."""

    date: str | None
    rate: float

    @classmethod
    def from_payload(cls, item: dict) -> HistoryPoint:
        return cls(date=item.get("date"), rate=float(item.get("rate") or 0.0))


@dataclass(frozen=True, slots=True)
class StatsSummary:
    """Summary statistics for a (symbol, range) pair.

    Fields the backend did not supply stay None so they render as
    "not available" rather than zero.
    """

    max_value: float | None = None
    min_value: float | None = None
    avg_value: float | None = None
    price_change_percent: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> StatsSummary:
        def _num(key: str) -> float | None:
            value = data.get(key)
            return float(value) if value is not None else None

        change = data.get("priceChangePercent")
        return cls(
            max_value=_num("maxValue"),
            min_value=_num("minValue"),
            avg_value=_num("avgValue"),
            price_change_percent=str(change) if change not in (None, "") else None,
        )

    def to_dict(self) -> dict:
        return {
            "maxValue": self.max_value,
            "minValue": self.min_value,
            "avgValue": self.avg_value,
            "priceChangePercent": self.price_change_percent,
        }



def price_change_percent(candles: Sequence[Candle]) -> float | None:
    """Percentage change from the first close to the last close.

    Undefined (None, never 0.0) when fewer than two candles exist or the first
    close is zero.
    """
    if len(candles) < 2:
        return None
    first = candles[0].close
    if first == 0:
        return None
    return (candles[-1].close - first) * 100 / first
