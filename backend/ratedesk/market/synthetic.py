"""Random-walk candle generation and history expansion."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from .models import Candle, HistoryPoint

VOLATILITY_RATIO = 0.02  # Band is 2% of the reference price
WICK_RATIO = 0.5  # Wicks extend up to half the band beyond the body
VOLUME_RANGE = (500.0, 1500.0)
DEFAULT_LENGTH = 50


class CandleGenerator:
    """Synthesizes OHLC candles when the backend has no usable history.

    Math (per candle, v = 0.02 * base_price):
        open  = previous close (first open = base_price)
        close = open + U(-1, 1) * v / 2
        high  = max(open, close) + U(0, 1) * 0.5 * v
        low   = min(open, close) - U(0, 1) * 0.5 * v
        volume ~ U(500, 1500)

    Because the wicks are built outward from the body, every candle satisfies
    low <= min(open, close) and high >= max(open, close).
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    def generate(self, base_price: float, length: int = DEFAULT_LENGTH) -> list[Candle]:
        """Random walk of ``length`` candles starting at ``base_price``.

        Never raises. A non-positive or non-finite price produces a flat series
        with zero volatility.
        """
        if length <= 0:
            return []
        base = float(base_price) if np.isfinite(base_price) and base_price > 0 else 0.0
        volatility = base * VOLATILITY_RATIO

        steps = (self._rng.uniform(-1.0, 1.0, length) * volatility / 2).tolist()
        upper = (self._rng.random(length) * volatility * WICK_RATIO).tolist()
        lower = (self._rng.random(length) * volatility * WICK_RATIO).tolist()
        volumes = self._rng.uniform(*VOLUME_RANGE, length).tolist()

        candles: list[Candle] = []
        current = base
        for i in range(length):
            open_ = current
            close = open_ + steps[i]
            candles.append(
                Candle(
                    time=i,
                    open=open_,
                    high=max(open_, close) + upper[i],
                    low=min(open_, close) - lower[i],
                    close=close,
                    volume=volumes[i],
                )
            )
            current = close
        return candles

    def expand_history(self, points: Iterable[HistoryPoint]) -> list[Candle]:
        """Turn one backend price per bucket into chart-ready candles.

        The backend only stores a single rate per period, so the body and wicks
        are synthesized around that rate with the same 2% band as generate().
        """
        candles: list[Candle] = []
        for index, point in enumerate(points):
            rate = point.rate
            volatility = abs(rate) * VOLATILITY_RATIO
            close = rate + self._rng.uniform(-1.0, 1.0) * volatility / 2
            candles.append(
                Candle(
                    time=point.date if point.date else index,
                    open=rate,
                    high=max(rate, close) + self._rng.random() * volatility * WICK_RATIO,
                    low=min(rate, close) - self._rng.random() * volatility * WICK_RATIO,
                    close=close,
                    volume=float(self._rng.uniform(*VOLUME_RANGE)),
                )
            )
        return candles


_default = CandleGenerator()


def _generator(rng: np.random.Generator | None) -> CandleGenerator:
    return _default if rng is None else CandleGenerator(rng)


def generate(
    base_price: float,
    length: int = DEFAULT_LENGTH,
    rng: np.random.Generator | None = None,
) -> list[Candle]:
    """Module-level convenience; uses a shared CandleGenerator unless ``rng`` is given."""
    return _generator(rng).generate(base_price, length)


def expand_history(
    points: Iterable[HistoryPoint], rng: np.random.Generator | None = None
) -> list[Candle]:
    return _generator(rng).expand_history(points)
