"""Dashboard orchestration for RateDesk.

Public API:
    Dashboard              - Root state holder and view-model assembler
    DashboardState         - Immutable application state
    StateStore             - Versioned holder that commits reducer results
    SymbolDirectory        - Symbol list with debounced search
    LiveRatePoller         - Periodic latest-rate poller
    HistoryStatsFetcher    - Chart series and stats for the selected pair
    AnalysisCache          - Per-symbol narrative cache
    FavoritesManager       - Local/remote favorites
    create_dashboard       - Factory configured from environment variables
    create_stream_router   - FastAPI router factory for the SSE endpoint
    create_dashboard_router - FastAPI router factory for user actions
"""

from .analysis import AnalysisCache
from .assembler import Dashboard
from .directory import SymbolDirectory
from .factory import create_dashboard
from .favorites import FavoritesManager
from .history import HistoryStatsFetcher
from .poller import LiveRatePoller
from .routes import create_dashboard_router
from .state import DashboardState, StateStore
from .stream import create_stream_router

__all__ = [
    "AnalysisCache",
    "Dashboard",
    "DashboardState",
    "FavoritesManager",
    "HistoryStatsFetcher",
    "LiveRatePoller",
    "StateStore",
    "SymbolDirectory",
    "create_dashboard",
    "create_dashboard_router",
    "create_stream_router",
]
