from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest
from langchain_core.messages import AIMessage

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ["GROQ_API_KEY"] = "gsk_test_key_1234567890"
os.environ["STARTUP_CONNECTION_CHECK"] = "false"
os.environ["ENABLE_REQUEST_LOGGING"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from chatbot_web.config.app_config import AppConfig  # noqa: E402
from chatbot_web.config.llm_config import LlmConfig  # noqa: E402
from chatbot_web.main import create_app  # noqa: E402
from chatbot_web.services.llm_service import LLMService  # noqa: E402
from chatbot_web.services.rate_limiter import FixedWindowRateLimiter  # noqa: E402

TEST_API_KEY = "gsk_test_key_1234567890"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLLM:
    """Stands in for ChatOpenAI; answers with ``reply`` or raises ``error``."""

    def __init__(self, reply: Any = "Halo! Ada yang bisa saya bantu?") -> None:
        self.reply = reply
        self.error: Optional[Exception] = None
        self.calls: list[tuple[list, dict]] = []

    async def ainvoke(self, messages: list, **kwargs: Any) -> AIMessage:
        self.calls.append((messages, kwargs))
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def llm_config() -> LlmConfig:
    return LlmConfig(GROQ_API_KEY=TEST_API_KEY, _env_file=None)


@pytest.fixture
def llm_service(llm_config: LlmConfig, fake_llm: FakeLLM) -> LLMService:
    return LLMService(llm_config, llm=fake_llm)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        startup_connection_check=False,
        enable_request_logging=False,
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def make_app(
    app_config: AppConfig, llm_service: LLMService, clock: FakeClock
) -> Callable[..., Any]:
    """Build the gateway with a fake model and limiters on the fake clock."""

    def factory(
        *,
        global_max: int = 100,
        chat_max: int = 10,
        config: Optional[AppConfig] = None,
    ):
        return create_app(
            config or app_config,
            llm_service=llm_service,
            global_limiter=FixedWindowRateLimiter(global_max, 900, name="global", clock=clock),
            chat_limiter=FixedWindowRateLimiter(chat_max, 60, name="chat", clock=clock),
        )

    return factory
