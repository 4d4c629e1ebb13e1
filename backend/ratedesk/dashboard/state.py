"""Application state and the store that commits transitions to it."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from ..client.session import Session
from ..market.models import ChartSeries, StatsSummary
from ..market.reference import DEFAULT_FAVORITES, DEFAULT_SYMBOL, DEFAULT_TIMEFRAME


@dataclass(frozen=True, slots=True)
class DirectoryState:
    all: tuple[str, ...] = ()
    visible: tuple[str, ...] = ()
    query: str = ""


@dataclass(frozen=True, slots=True)
class RatesState:
    rates: dict[str, float] = field(default_factory=dict)  # Replaced wholesale, never mutated
    current_price: float | None = None  # Selected symbol's live price
    ever_live: bool = False  # At least one poll delivered live prices


@dataclass(frozen=True, slots=True)
class ChartState:
    series: ChartSeries | None = None
    stats: StatsSummary | None = None
    degraded: tuple[str, ...] = ()  # Halves that failed on the last commit


@dataclass(frozen=True, slots=True)
class AnalysisState:
    reports: dict[str, str] = field(default_factory=dict)
    visible_for: str | None = None  # Symbol whose analysis panel is open


@dataclass(frozen=True, slots=True)
class DashboardState:
    """Everything the view model is assembled from.

    Never mutated in place. Each component commits changes through
    StateStore.apply() with a pure reducer returning a new instance.
    """

    directory: DirectoryState = field(default_factory=DirectoryState)
    rates: RatesState = field(default_factory=RatesState)
    chart: ChartState = field(default_factory=ChartState)
    analysis: AnalysisState = field(default_factory=AnalysisState)
    selected: str = DEFAULT_SYMBOL
    timeframe: str = DEFAULT_TIMEFRAME
    favorites: tuple[str, ...] = DEFAULT_FAVORITES
    loading: frozenset[str] = frozenset()
    error: str | None = None
    session: Session | None = None
    show_login: bool = False


Reducer = Callable[..., DashboardState]


class StateStore:
    """Holder of the current DashboardState.

    Single event loop, so no locking: a reducer runs to completion between
    suspension points.
    """

    def __init__(self, state: DashboardState | None = None) -> None:
        self._state = state or DashboardState()
        self._version: int = 0  # Monotonically increasing; bumped on every commit

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def version(self) -> int:
        """Current version counter. Useful for SSE change detection."""
        return self._version

    def apply(self, reducer: Reducer, *args: Any) -> DashboardState:
        """Commit ``reducer(state, *args)``. Identity results are not counted as changes."""
        new_state = reducer(self._state, *args)
        if new_state is not self._state:
            self._state = new_state
            self._version += 1
        return self._state


class RequestEpoch:
    """Monotonic counter tagging dispatched requests of one category.

    A completion is committed only if its token is still the latest one
    handed out, so the last dispatched request wins regardless of the order
    in which responses arrive.
    """

    def __init__(self) -> None:
        self._current = 0

    def next(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    @property
    def current(self) -> int:
        return self._current


# --- Shared reducers ---


def set_loading(state: DashboardState, keys: str | Iterable[str], on: bool) -> DashboardState:
    keys = {keys} if isinstance(keys, str) else set(keys)
    loading = state.loading | keys if on else state.loading - keys
    if loading == state.loading:
        return state
    return replace(state, loading=frozenset(loading))


def set_error(state: DashboardState, message: str | None) -> DashboardState:
    if message == state.error:
        return state
    return replace(state, error=message)
