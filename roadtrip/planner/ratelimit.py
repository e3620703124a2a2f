"""
In-memory sliding window rate limiting.

Each key keeps the timestamps of its admitted requests inside the
trailing window. State is process-local: every process (and every
restart) starts with an empty table, so limits are per instance.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from functools import wraps
from typing import Callable

from django.conf import settings

from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_MS = 60_000
MAX_KEYS = 10_000
EVICTION_TARGET_FRACTION = 0.8


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in_ms: int


RATE_LIMITS: dict[str, RateLimitRule] = {
    # public endpoints, per client IP
    "roadtrip": RateLimitRule(limit=10, window_ms=60_000),
    "search": RateLimitRule(limit=30, window_ms=60_000),
    "general": RateLimitRule(limit=100, window_ms=60_000),
    # outbound calls, per process
    "directions": RateLimitRule(limit=1, window_ms=1_000),
    "geocoding": RateLimitRule(limit=1, window_ms=1_000),
}


@dataclass
class _Window:
    window_ms: int
    timestamps: deque = field(default_factory=deque)

    def prune(self, now: float) -> None:
        cutoff = now - self.window_ms
        while self.timestamps and self.timestamps[0] <= cutoff:
            self.timestamps.popleft()


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SlidingWindowRateLimiter:

    def __init__(
        self,
        *,
        max_keys: int = MAX_KEYS,
        cleanup_interval_ms: int = CLEANUP_INTERVAL_MS,
        target_fraction: float = EVICTION_TARGET_FRACTION,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        self.max_keys = max_keys
        self.cleanup_interval_ms = cleanup_interval_ms
        self.target_fraction = target_fraction
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, key: str) -> bool:
        return key in self._windows

    def check(self, key: str, rule: RateLimitRule) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)

            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = _Window(window_ms=rule.window_ms)
            window.window_ms = rule.window_ms
            window.prune(now)

            if len(window.timestamps) < rule.limit:
                window.timestamps.append(now)
                return RateLimitResult(
                    allowed=True,
                    remaining=rule.limit - len(window.timestamps),
                    reset_in_ms=rule.window_ms,
                )

            oldest = window.timestamps[0] if window.timestamps else now
            reset_in = math.ceil(oldest + rule.window_ms - now)
            return RateLimitResult(allowed=False, remaining=0, reset_in_ms=max(0, reset_in))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup < self.cleanup_interval_ms:
            return
        self._last_cleanup = now

        for key in list(self._windows):
            window = self._windows[key]
            window.prune(now)
            if not window.timestamps:
                del self._windows[key]

        if len(self._windows) > self.max_keys:
            target = int(self.max_keys * self.target_fraction)
            by_oldest = sorted(self._windows.items(), key=lambda item: item[1].timestamps[0])
            evicted = 0
            for key, _ in by_oldest:
                if len(self._windows) <= target:
                    break
                del self._windows[key]
                evicted += 1
            logger.warning("Rate limiter table over capacity; evicted %d keys", evicted)


def get_client_ip(request) -> str:
    """
    Client identifier for per-client limits.

    Only the header named by RATE_LIMIT_TRUSTED_IP_HEADER is trusted (it
    must be set by our own proxy); generic forwarding headers can be
    spoofed by clients and are ignored.
    """
    header = getattr(settings, "RATE_LIMIT_TRUSTED_IP_HEADER", None)
    if header:
        forwarded = request.META.get(header)
        if forwarded:
            return forwarded.split(",")[0].strip()

    return request.META.get("REMOTE_ADDR") or "anonymous"


def rate_limited(rule_name: str):
    """
    Decorator for APIView handlers enforcing a per-client limit.

    Responds 429 with Retry-After when the client is over the limit.
    """
    rule = RATE_LIMITS[rule_name]

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(self, request, *args, **kwargs):
            from .apps import get_rate_limiter

            key = f"{rule_name}:{get_client_ip(request)}"
            result = get_rate_limiter().check(key, rule)

            if not result.allowed:
                retry_after = max(1, math.ceil(result.reset_in_ms / 1000))
                logger.info("Rate limit exceeded for %s", key)
                response = Response(
                    {
                        "error": "Rate limit exceeded",
                        "detail": "Too many requests. Please try again later.",
                        "retry_after_seconds": retry_after,
                    },
                    status=status.HTTP_429_TOO_MANY_REQUESTS,
                )
                response["Retry-After"] = str(retry_after)
                response["X-RateLimit-Limit"] = str(rule.limit)
                response["X-RateLimit-Remaining"] = "0"
                return response

            response = view_func(self, request, *args, **kwargs)
            response["X-RateLimit-Limit"] = str(rule.limit)
            response["X-RateLimit-Remaining"] = str(result.remaining)
            return response

        return wrapper

    return decorator
