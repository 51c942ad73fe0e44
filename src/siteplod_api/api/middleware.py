"""CORS, rate limiting, and security headers middleware."""

import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from siteplod_api.core.config import Settings

_DEFAULT_TRUSTED_HEADERS = ["CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP"]


def get_client_ip(request: Request, trusted_headers: list[str] | None = None) -> str:
    """Extract the real client IP from proxy headers or direct connection.

    Checks headers in priority order. For X-Forwarded-For, uses the
    leftmost (client-supplied) IP. Falls back to request.client.host.
    """
    headers = trusted_headers if trusted_headers is not None else _DEFAULT_TRUSTED_HEADERS

    for header in headers:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip()
        return value

    if request.client:
        return request.client.host
    return "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware on the FastAPI app."""
    kwargs: dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if settings.cors_origin_list:
        kwargs["allow_origins"] = settings.cors_origin_list
    if settings.cors_origin_regex.strip():
        kwargs["allow_origin_regex"] = settings.cors_origin_regex.strip()
    app.add_middleware(CORSMiddleware, **kwargs)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to API responses.

    Published sites are served under ``site_prefix`` and may legitimately be
    framed, so they only get ``nosniff``.
    """

    def __init__(self, app: ASGIApp, site_prefix: str = "/s") -> None:
        super().__init__(app)
        self.site_prefix = site_prefix.rstrip("/") + "/"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        if not (request.url.path + "/").startswith(self.site_prefix):
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


@dataclass(frozen=True)
class RateLimitRule:
    """A stricter limit for one endpoint: ``limit`` requests per ``window`` seconds."""

    method: str
    path: str
    limit: int
    window: float


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Simple in-memory rate limiting middleware.

    Every IP gets a sliding one-minute budget; endpoints with a rule
    additionally get their own budget (e.g. uploads per hour).
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        trusted_proxy_headers: list[str] | None = None,
        rules: list[RateLimitRule] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.trusted_proxy_headers = trusted_proxy_headers
        self.rules = rules or []
        self._request_counts: dict[tuple[str, str], list[float]] = defaultdict(list)

    def _hit(self, key: tuple[str, str], limit: int, window: float, now: float) -> bool:
        """Record a request; return False when the budget is already spent."""
        recent = [t for t in self._request_counts[key] if t > now - window]
        if len(recent) >= limit:
            self._request_counts[key] = recent
            return False
        recent.append(now)
        self._request_counts[key] = recent
        return True

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        now = time.time()

        if not self._hit((client_ip, "*"), self.requests_per_minute, 60.0, now):
            return _too_many_requests(60)

        for rule in self.rules:
            if request.method == rule.method and request.url.path == rule.path:
                if not self._hit((client_ip, f"{rule.method} {rule.path}"), rule.limit, rule.window, now):
                    return _too_many_requests(int(rule.window))

        return await call_next(request)


def _too_many_requests(retry_after: int) -> Response:
    return Response(
        content='{"error":"Too many requests","message":"Rate limit exceeded","statusCode":429}',
        status_code=429,
        media_type="application/json",
        headers={"Retry-After": str(retry_after)},
    )
