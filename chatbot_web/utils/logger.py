"""Loguru setup for the gateway and the terminal client.

The gateway logs to stdout (plus an optional rotating file) and pulls
uvicorn's and httpx's standard ``logging`` records into Loguru.  The
client logs to a file only, because stdout carries the conversation.
Both scrub registered secrets from every message before it is written.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from ..config.app_config import AppConfig, get_app_config

SERVER_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
CLIENT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"

STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "openai")

_secrets: set[str] = set()


class LoguruHandler(logging.Handler):
    """Forward standard logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except (KeyError, ValueError):
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def register_secret(value: Optional[str]) -> None:
    """Mask ``value`` in every log message written from now on."""
    if value and len(value) >= 4:
        _secrets.add(value)


def _scrub(record: dict) -> None:
    message = record["message"]
    for secret in _secrets:
        if secret in message:
            message = message.replace(secret, secret[:4] + "***")
    record["message"] = message


def _route_stdlib_logging(names: Iterable[str] = STDLIB_LOGGERS) -> None:
    logging.basicConfig(handlers=[LoguruHandler()], level=logging.WARNING, force=True)
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = []
        std_logger.propagate = True


def setup_logging(app_config: Optional[AppConfig] = None) -> "loguru.Logger":
    """Configure Loguru for the gateway process.

    Removes Loguru's default handler, adds a colourised stdout sink and,
    when ``LOG_FILE`` is set, a file sink rotated at 10 MB and kept for
    30 days.  Standard ``logging`` records from uvicorn, httpx and the
    OpenAI SDK are redirected to Loguru.

    Returns
    -------
    loguru.Logger
        The configured Loguru logger instance.
    """
    app_config = app_config or get_app_config()

    logger.remove()
    logger.configure(patcher=_scrub)

    logger.add(
        sys.stdout,
        level=app_config.log_level,
        format=SERVER_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=app_config.app_debug,
    )

    if app_config.log_file:
        Path(app_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            app_config.log_file,
            level=app_config.log_level,
            format=SERVER_FORMAT,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            backtrace=True,
            diagnose=app_config.app_debug,
        )

    _route_stdlib_logging()

    logger.debug("App environment: {}", app_config.app_env)
    logger.debug("Log level: {}", app_config.log_level)
    return logger


def setup_client_logging(
    log_dir: Optional[str] = None,
    file_name: str = "client.log",
    level: str = "INFO",
) -> str:
    """Send client logs to ``<log_dir>/<file_name>`` and return that path.

    ``log_dir`` defaults to ``logs`` under the working directory.
    """
    directory = log_dir or os.path.join(os.getcwd(), "logs")
    os.makedirs(directory, exist_ok=True)
    log_file = os.path.join(directory, file_name)

    logger.remove()
    logger.configure(patcher=_scrub)
    logger.add(
        log_file,
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        level=level,
        format=CLIENT_FORMAT,
    )
    return log_file
