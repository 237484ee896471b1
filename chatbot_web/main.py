"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging and
registers API routes.  Serve it with
``uvicorn chatbot_web.main:create_app --factory``, or run
``python -m chatbot_web`` to use the configured host and port.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.app_config import AppConfig, get_app_config
from .config.llm_config import LlmConfig, get_llm_config
from .controllers.chat_controller import router as chat_router
from .models.chat_response import HealthResponse
from .services.chat_service import ChatService
from .services.llm_service import LLMService
from .services.rate_limiter import FixedWindowRateLimiter
from .utils.error_handler import (
    ChatError,
    chat_error_handler,
    http_exception_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from .utils.helpers import utc_timestamp
from .utils.logger import register_secret, setup_logging
from .utils.middleware import register_middleware

DEFAULT_STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app_config: AppConfig = app.state.app_config
    if app_config.startup_connection_check:
        # UpstreamMisconfigured propagates and aborts startup.
        await app.state.llm_service.check_connection()
    logger.info("Server ready on {}:{}", app_config.app_host, app_config.app_port)
    logger.info("API Base URL: {}", app_config.api_base_url or "(same-origin)")
    yield
    logger.info("Server shutting down")


def create_app(
    app_config: Optional[AppConfig] = None,
    llm_config: Optional[LlmConfig] = None,
    llm_service: Optional[LLMService] = None,
    *,
    global_limiter: Optional[FixedWindowRateLimiter] = None,
    chat_limiter: Optional[FixedWindowRateLimiter] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Loading :class:`LlmConfig` validates the provider credential, so a
    missing or placeholder key stops the process here.  Tests inject a
    pre-built ``llm_service`` and limiters with a fake clock.
    """
    app_config = app_config or get_app_config()
    setup_logging(app_config)

    if llm_service is None:
        llm_service = LLMService(llm_config or get_llm_config(), locale=app_config.app_locale)
    register_secret(llm_service.llm_config.api_key)
    logger.info("Upstream API key validation passed")

    if global_limiter is None:
        global_limiter = FixedWindowRateLimiter(
            app_config.global_rate_limit_max,
            app_config.global_rate_limit_window_seconds,
            name="global",
        )
    if chat_limiter is None:
        chat_limiter = FixedWindowRateLimiter(
            app_config.chat_rate_limit_max,
            app_config.chat_rate_limit_window_seconds,
            name="chat",
        )

    app = FastAPI(title="ChatBot Web", version="0.1.0", lifespan=lifespan)
    app.state.app_config = app_config
    app.state.llm_service = llm_service
    app.state.global_limiter = global_limiter
    app.state.chat_limiter = chat_limiter
    app.state.chat_service = ChatService(llm_service, chat_limiter, locale=app_config.app_locale)
    app.state.started_at = time.monotonic()

    register_middleware(
        app,
        global_limiter,
        enable_request_logging=app_config.enable_request_logging,
        trust_proxy_headers=app_config.trust_proxy_headers,
        locale=app_config.app_locale,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(chat_router)

    @app.get("/health", tags=["Health"], response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Liveness probe with process uptime."""
        logger.debug("Health check invoked")
        return HealthResponse(
            status="OK",
            timestamp=utc_timestamp(),
            uptime=round(time.monotonic() - request.app.state.started_at, 3),
        )

    static_dir = Path(app_config.static_dir) if app_config.static_dir else DEFAULT_STATIC_DIR
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

        @app.get("/", include_in_schema=False)
        async def index() -> FileResponse:
            return FileResponse(static_dir / "index.html")
    else:
        logger.warning("Static directory {} not found; client bundle not served", static_dir)

    return app


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    app_config = get_app_config()
    uvicorn.run(
        "chatbot_web.main:create_app",
        factory=True,
        host=app_config.app_host,
        port=app_config.app_port,
        log_config=None,
    )
