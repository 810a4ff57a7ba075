"""In-memory fixed-window rate limiter.

Each process enforces its own limits; there is no cross-process coordination
(production deployments with several workers would need Redis or similar).
Bucket expiry is evaluated lazily on the next access to a key.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class _Bucket:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate-limit check."""

    ok: bool
    retry_after_sec: int = 0


class RateLimiter:
    """Fixed-window request counter keyed by ``action:client-id``.

    Safe to share between threads handling concurrent requests.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """Initialize an empty limiter.

        Args:
            clock: Returns the current time in milliseconds. Defaults to a
                monotonic clock.
        """
        self._clock = clock or _monotonic_ms
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def check(self, key: str, window_ms: int, max_requests: int) -> RateLimitDecision:
        """Count one request against ``key`` and decide whether to allow it."""
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)

            if bucket is None or now >= bucket.reset_at:
                self._buckets[key] = _Bucket(count=1, reset_at=now + window_ms)
                return RateLimitDecision(ok=True)

            bucket.count += 1
            if bucket.count > max_requests:
                retry_after = max(1, math.ceil((bucket.reset_at - now) / 1000))
                logger.warning("Rate limit exceeded for %s (retry in %ss)", key, retry_after)
                return RateLimitDecision(ok=False, retry_after_sec=retry_after)

            return RateLimitDecision(ok=True)

    def reset(self) -> None:
        """Clear every bucket."""
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


def client_identifier(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """Derive the rate-limit client id for a request.

    Only the first hop of ``X-Forwarded-For`` is trusted.
    """
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    if peer_host:
        return peer_host
    return UNKNOWN_CLIENT
