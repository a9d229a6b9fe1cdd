"""Rate limiting middleware for the Newsroom learning API

Per-IP request limits (per minute and per hour) so a misbehaving dashboard
tab can't flood the correction log.

- Only trusts X-Forwarded-For in development or behind a proxy that sets
  X-Real-IP on every request
- Bucket memory is bounded by TTLCache
"""

from __future__ import annotations

import ipaddress
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from newsroom.api.models import failure
from newsroom.config import APP_ENV, RATE_LIMIT_MAX_IPS
from newsroom.observability.telemetry import log_event

EXEMPT_PATHS = frozenset({"/", "/health", "/health/db"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window rate limiter keyed by client IP.

    For multi-instance deployments, a shared store (e.g. Redis) would be needed.
    """

    def __init__(
        self,
        app: Any,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # {ip: [timestamp, ...]}; TTLCache evicts idle IPs
        self.minute_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=120
        )
        self.hour_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=7200
        )

    def _is_valid_ip(self, ip_str: str) -> bool:
        try:
            ipaddress.ip_address(ip_str)
            return True
        except ValueError:
            return False

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP; forwarded headers only count in development."""
        if APP_ENV == "development":
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                ip = forwarded.split(",")[0].strip()
                if self._is_valid_ip(ip):
                    return ip

            real_ip = request.headers.get("X-Real-IP")
            if real_ip and self._is_valid_ip(real_ip):
                return real_ip

        return request.client.host if request.client else "unknown"

    def _clean_old_requests(self, bucket: list[float], max_age_seconds: int) -> list[float]:
        now = time.time()
        return [ts for ts in bucket if now - ts < max_age_seconds]

    def _limited(self, window: str, limit: int, retry_after: int, ip: str, count: int) -> Response:
        log_event("api.rate_limit.request_exceeded", ip=ip, limit=window, count=count)
        return JSONResponse(
            status_code=429,
            content=failure(
                "Too Many Requests",
                f"Rate limit exceeded. Maximum {limit} requests per {window}.",
            ),
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = self._get_client_ip(request)
        now = time.time()

        self.minute_buckets[client_ip] = self._clean_old_requests(
            self.minute_buckets.get(client_ip, []), 60
        )
        self.hour_buckets[client_ip] = self._clean_old_requests(
            self.hour_buckets.get(client_ip, []), 3600
        )

        minute_requests = len(self.minute_buckets[client_ip])
        if minute_requests >= self.requests_per_minute:
            return self._limited("minute", self.requests_per_minute, 60, client_ip, minute_requests)

        hour_requests = len(self.hour_buckets[client_ip])
        if hour_requests >= self.requests_per_hour:
            return self._limited("hour", self.requests_per_hour, 3600, client_ip, hour_requests)

        self.minute_buckets[client_ip] = [*self.minute_buckets[client_ip], now]
        self.hour_buckets[client_ip] = [*self.hour_buckets[client_ip], now]

        response = await call_next(request)

        response.headers["X-RateLimit-Limit-Minute"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining-Minute"] = str(
            self.requests_per_minute - minute_requests - 1
        )
        response.headers["X-RateLimit-Limit-Hour"] = str(self.requests_per_hour)
        response.headers["X-RateLimit-Remaining-Hour"] = str(
            self.requests_per_hour - hour_requests - 1
        )

        return response
