"""
HTTP middleware: security headers and login rate limiting.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = structlog.get_logger()

MSG_RATE_LIMITED = "Trop de tentatives. Réessayez dans une minute."

# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


# ---------------------------------------------------------------------------
# Rate limiting (fixed window, process-local)
# ---------------------------------------------------------------------------

class FixedWindowRateLimiter:
    """Counts hits per key within a fixed window that starts at the first hit."""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}

    def hit(self, key: str) -> bool:
        """Record a hit. Returns False once the key has spent its budget for the window."""
        now = self._clock()
        self._evict(now)
        count, started = self._windows.get(key, (0, now))
        if count == 0 or now - started > self.window_seconds:
            self._windows[key] = (1, now)
            return True
        if count >= self.limit:
            return False
        self._windows[key] = (count + 1, started)
        return True

    def _evict(self, now: float) -> None:
        expired = [k for k, (_, started) in self._windows.items() if now - started > self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        self._windows.clear()


def client_key(request: Request) -> str:
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"
    return f"{ip}:{request.url.path}"


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    """Throttle POSTs to the login endpoint per client IP."""

    def __init__(self, app, limiter: FixedWindowRateLimiter, path: str = "/api/auth/login"):
        super().__init__(app)
        self.limiter = limiter
        self.path = path

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "POST" and request.url.path == self.path:
            key = client_key(request)
            if not self.limiter.hit(key):
                log.warning("auth.login_rate_limited", key=key)
                return JSONResponse(status_code=429, content={"error": MSG_RATE_LIMITED})
        return await call_next(request)
