"""Backend client for RateDesk.

Public API:
    RateApiClient     - Async client for the rates/stats/analysis/user API
    AuthSessionGuard  - httpx auth flow that attaches and invalidates sessions
    Session           - Logged-in user's credential material
    SessionStore      - In-memory session holder
    LogoutNotifier    - Idempotent logout broadcast
    RateDeskError and subclasses - Error taxonomy
"""

from .api import RateApiClient
from .errors import AuthInvalid, BusinessError, EmptyResult, NetworkFailure, RateDeskError
from .guard import AuthSessionGuard
from .session import LogoutNotifier, Session, SessionStore

__all__ = [
    "RateApiClient",
    "AuthSessionGuard",
    "Session",
    "SessionStore",
    "LogoutNotifier",
    "RateDeskError",
    "NetworkFailure",
    "AuthInvalid",
    "BusinessError",
    "EmptyResult",
]
