# core/rate_limiter.py

import time
from collections import defaultdict, deque
from threading import Lock
from typing import Deque, Dict, Optional, Tuple

from fastapi import HTTPException, Request


class SlidingWindowLimiter:
    """
    In-memory sliding-window limiter keyed by caller
    (login attempts per IP, chat submissions per device).
    """

    def __init__(self):
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def hit(self, identifier: str, max_requests: int, window_seconds: int) -> Tuple[bool, int]:
        """Record one request; returns (allowed, remaining)."""
        now = time.monotonic()
        with self._lock:
            hits = self._hits[identifier]
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()

            if len(hits) >= max_requests:
                return False, 0

            hits.append(now)
            return True, max_requests - len(hits)

    def reset(self):
        with self._lock:
            self._hits.clear()


limiter = SlidingWindowLimiter()


def client_identifier(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First entry is the client address
        return f"ip:{forwarded_for.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def require_rate_limit(
    request: Request,
    identifier: Optional[str] = None,
    max_requests: int = 10,
    window_seconds: int = 60,
) -> int:
    """
    Raises HTTPException 429 once `identifier` exceeds the window budget.
    """
    identifier = identifier or client_identifier(request)
    allowed, remaining = limiter.hit(identifier, max_requests, window_seconds)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
            headers={"Retry-After": str(window_seconds)},
        )

    return remaining
