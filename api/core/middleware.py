"""
HTTP middleware: panic recovery and per-client rate limiting.

CORS uses FastAPI's `CORSMiddleware` directly (see `api/main.py`).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from .config import Settings
from .responses import rate_limit_exceeded_response, server_error_response

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]

CLIENT_IDLE_SECONDS = 180.0
SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class _Bucket:
    tokens: float
    updated_at: float
    last_seen: float


class RateLimiter:
    """
    Token bucket per client key: refills at `rps` tokens per second up to `burst`.

    Clients idle for longer than `idle_seconds` are forgotten.
    """

    def __init__(
        self,
        *,
        rps: float,
        burst: int,
        idle_seconds: float = CLIENT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rps = rps
        self.burst = burst
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._buckets)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        stale = [key for key, bucket in self._buckets.items() if now - bucket.last_seen > self.idle_seconds]
        for key in stale:
            del self._buckets[key]

    def allow(self, key: str) -> bool:
        # No awaits: bucket updates are atomic on the event loop.
        now = self._clock()
        self._sweep(now)

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=float(self.burst), updated_at=now, last_seen=now)
            self._buckets[key] = bucket

        elapsed = max(0.0, now - bucket.updated_at)
        bucket.tokens = min(float(self.burst), bucket.tokens + elapsed * self.rps)
        bucket.updated_at = now
        bucket.last_seen = now

        if bucket.tokens < 1.0:
            return False
        bucket.tokens -= 1.0
        return True


def _client_ip(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


def install_rate_limit(app: FastAPI, settings: Settings) -> RateLimiter | None:
    if not settings.limiter_enabled:
        return None

    limiter = RateLimiter(rps=settings.limiter_rps, burst=settings.limiter_burst)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next: CallNext) -> Response:
        ip = _client_ip(request)
        if not limiter.allow(ip):
            logger.info("rate_limited ip=%s", ip)
            return rate_limit_exceeded_response(request)
        return await call_next(request)

    return limiter


def install_recover_panic(app: FastAPI) -> None:
    """
    Turn any exception that escapes the route handlers into a 500 response.
    """

    @app.middleware("http")
    async def recover_panic(request: Request, call_next: CallNext) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            response = server_error_response(request, exc)
            response.headers["Connection"] = "close"
            return response
