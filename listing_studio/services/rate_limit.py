"""Fixed-window request limiter for the AI generation endpoint."""
from __future__ import annotations

import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict

from fastapi import Depends, Request

from ..core.config import settings
from ..core.errors import RateLimitedError


@dataclass
class _Window:
    started_at: float
    count: int


class RateLimiter:
    """Very small in-memory per-client counter with lazy window eviction."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def hit(self, key: str) -> None:
        """Count one request for ``key``; raise ``RateLimitedError`` past the quota."""

        now = self._clock()
        self._evict_expired(now)
        window = self._windows.get(key)
        if window is None:
            self._windows[key] = _Window(started_at=now, count=1)
            return
        if window.count >= self._max:
            raise RateLimitedError()
        window.count += 1

    def reset(self) -> None:
        self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now - window.started_at >= self._window]
        for key in expired:
            self._windows.pop(key, None)


@lru_cache
def get_ai_rate_limiter() -> RateLimiter:
    return RateLimiter(settings.ai_rate_limit_max, settings.ai_rate_limit_window_seconds)


def limit_ai_requests(request: Request, limiter: RateLimiter = Depends(get_ai_rate_limiter)) -> None:
    """FastAPI dependency guarding AI-backed routes."""

    client = request.client.host if request.client else "unknown"
    limiter.hit(client)
