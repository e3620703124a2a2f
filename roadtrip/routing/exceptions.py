from __future__ import annotations

from enum import Enum


class UpstreamErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NO_ROUTE = "no_route"
    INVALID_REQUEST = "invalid_request"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    THROTTLED = "throttled"


# Failures caused by what the user asked for rather than by the provider.
USER_INPUT_KINDS = frozenset(
    {UpstreamErrorKind.NOT_FOUND, UpstreamErrorKind.NO_ROUTE, UpstreamErrorKind.INVALID_REQUEST}
)


class RoutingError(Exception):
    pass


class RouteNotFound(RoutingError):
    """The provider could not route between the requested endpoints."""

    def __init__(self, message: str, kind: UpstreamErrorKind = UpstreamErrorKind.NO_ROUTE):
        super().__init__(message)
        self.kind = kind


class UpstreamUnavailable(RoutingError):
    """The provider failed, timed out, or is not configured. Safe for the user to retry later."""

    def __init__(self, message: str, kind: UpstreamErrorKind = UpstreamErrorKind.UNAVAILABLE):
        super().__init__(message)
        self.kind = kind


class UpstreamThrottled(UpstreamUnavailable):
    def __init__(self, message: str, retry_after_ms: int = 0):
        super().__init__(message, kind=UpstreamErrorKind.THROTTLED)
        self.retry_after_ms = retry_after_ms
