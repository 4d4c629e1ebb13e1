"""Error taxonomy for backend calls."""

from __future__ import annotations


class RateDeskError(Exception):
    """Base class for every failure raised by the API client."""


class NetworkFailure(RateDeskError):
    """Backend unreachable, timed out, or returned an unreadable body."""


class AuthInvalid(RateDeskError):
    """Session rejected, either by HTTP 401 or by an embedded 401 code."""


class BusinessError(RateDeskError):
    """Non-200 application code other than 401."""

    def __init__(self, code: int, msg: str) -> None:
        super().__init__(msg or f"Request failed with code {code}")
        self.code = code
        self.msg = msg


class EmptyResult(RateDeskError):
    """Successful response that carried no usable data."""
