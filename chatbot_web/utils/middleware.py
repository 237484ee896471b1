"""HTTP middleware for the gateway.

Registered by :func:`chatbot_web.main.create_app`.  These run outside
FastAPI's exception handlers, so the global limiter renders its own
``{error}`` response instead of raising.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from loguru import logger

from ..services.chat_service import client_identity
from ..services.rate_limiter import FixedWindowRateLimiter
from .error_handler import RateLimitError, render_chat_error
from .messages import get_message

CallNext = Callable[[Request], Awaitable[Response]]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}


def register_middleware(
    app: FastAPI,
    global_limiter: FixedWindowRateLimiter,
    *,
    enable_request_logging: bool = True,
    trust_proxy_headers: bool = False,
    locale: str | None = None,
) -> None:
    """Attach request logging, security headers and the global limiter.

    Starlette runs the most recently added middleware first.  The order
    below yields logging -> security headers -> global limiter, so the
    limiter's own 429 responses carry the security headers too.
    """

    @app.middleware("http")
    async def global_rate_limit(request: Request, call_next: CallNext) -> Response:
        client_id = client_identity(request, trust_proxy_headers)
        decision = global_limiter.hit(client_id)
        if not decision.allowed:
            error = RateLimitError(
                get_message("global_rate_limited", locale),
                headers=decision.headers(),
            )
            return render_chat_error(error)
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    if enable_request_logging:

        @app.middleware("http")
        async def log_requests(request: Request, call_next: CallNext) -> Response:
            client_id = client_identity(request, trust_proxy_headers)
            logger.info("{} {} from {}", request.method, request.url.path, client_id)
            return await call_next(request)
