from __future__ import annotations

from datetime import datetime

import httpx
import openai
import pytest
from httpx import ASGITransport, AsyncClient

from chatbot_web.main import lifespan
from chatbot_web.models.enums import RequestState
from chatbot_web.utils.error_handler import UpstreamMisconfigured
from chatbot_web.utils.messages import get_message


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _status_error(cls, status_code: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return cls("upstream says no", response=httpx.Response(status_code, request=request), body=None)


@pytest.mark.anyio
async def test_chat_returns_reply_and_timestamp(make_app, fake_llm) -> None:
    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json={"prompt": "  Apa kabar?  "})

    assert res.status_code == 200
    body = res.json()
    assert body["response"] == "Halo! Ada yang bisa saya bantu?"
    assert body["timestamp"].endswith("Z")
    datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))
    assert res.headers["RateLimit-Limit"] == "10"
    assert res.headers["RateLimit-Remaining"] == "9"
    assert fake_llm.calls[0][0][1].content == "Apa kabar?"


@pytest.mark.anyio
async def test_legacy_chat_path_behaves_the_same(make_app) -> None:
    async with _client(make_app()) as client:
        res = await client.post("/chat", json={"prompt": "Hello there"})

    assert res.status_code == 200
    assert res.json()["response"]


@pytest.mark.anyio
async def test_prompt_is_sanitised_before_forwarding(make_app, fake_llm) -> None:
    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json={"prompt": "tell me about <b>javascript:bold</b>"})

    assert res.status_code == 200
    assert fake_llm.calls[0][0][1].content == "tell me about bbold/b"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload, message",
    [
        ({"prompt": ""}, get_message("prompt_empty")),
        ({"prompt": "a"}, get_message("prompt_too_short", min_length=2)),
        ({"prompt": "x" * 4001}, get_message("prompt_too_long", max_length=4000)),
        ({"prompt": 123}, get_message("prompt_invalid_type")),
        ({}, get_message("prompt_invalid_type")),
        ({"prompt": "'; DROP TABLE users; --"}, get_message("prompt_disallowed")),
    ],
)
async def test_invalid_prompts_are_rejected(make_app, fake_llm, payload, message) -> None:
    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json=payload)

    assert res.status_code == 400
    assert res.json() == {"error": message}
    assert fake_llm.calls == []


@pytest.mark.anyio
async def test_markup_only_prompt_never_reaches_the_model(make_app, fake_llm) -> None:
    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json={"prompt": "<>"})

    assert res.status_code == 400
    assert res.json() == {"error": get_message("prompt_too_short", min_length=2)}
    assert fake_llm.calls == []


def test_terminal_request_states() -> None:
    terminal = {state for state in RequestState if state.is_terminal}

    assert terminal == {RequestState.RESPONDED, RequestState.REJECTED, RequestState.FAILED}

@pytest.mark.anyio
async def test_malformed_json_is_a_bad_request(make_app) -> None:
    async with _client(make_app()) as client:
        res = await client.post(
            "/api/chat", content=b"{not json", headers={"Content-Type": "application/json"}
        )

    assert res.status_code == 400
    assert set(res.json()) == {"error"}


@pytest.mark.anyio
async def test_eleventh_chat_request_is_limited(make_app, fake_llm) -> None:
    async with _client(make_app()) as client:
        for _ in range(10):
            assert (await client.post("/api/chat", json={"prompt": "hello"})).status_code == 200
        res = await client.post("/api/chat", json={"prompt": "hello"})

    assert res.status_code == 429
    assert res.json() == {"error": get_message("chat_rate_limited")}
    assert res.headers["RateLimit-Remaining"] == "0"
    assert len(fake_llm.calls) == 10


@pytest.mark.anyio
async def test_chat_limit_resets_after_window(make_app, clock) -> None:
    async with _client(make_app(chat_max=1)) as client:
        assert (await client.post("/api/chat", json={"prompt": "hello"})).status_code == 200
        assert (await client.post("/api/chat", json={"prompt": "hello"})).status_code == 429
        clock.advance(60)
        assert (await client.post("/api/chat", json={"prompt": "hello"})).status_code == 200


@pytest.mark.anyio
async def test_invalid_prompts_do_not_count_against_chat_limit(make_app) -> None:
    async with _client(make_app(chat_max=1)) as client:
        for _ in range(5):
            assert (await client.post("/api/chat", json={"prompt": ""})).status_code == 400
        res = await client.post("/api/chat", json={"prompt": "hello"})

    assert res.status_code == 200


@pytest.mark.anyio
async def test_global_limit_applies_to_every_path(make_app) -> None:
    async with _client(make_app(global_max=2)) as client:
        assert (await client.get("/health")).status_code == 200
        assert (await client.get("/api/config")).status_code == 200
        res = await client.get("/health")

    assert res.status_code == 429
    assert res.json() == {"error": get_message("global_rate_limited")}
    assert res.headers["RateLimit-Limit"] == "2"
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "SAMEORIGIN"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "error, status_code, message_key",
    [
        (_status_error(openai.RateLimitError, 429), 429, "upstream_rate_limited"),
        (_status_error(openai.AuthenticationError, 401), 500, "upstream_misconfigured"),
        (_status_error(openai.InternalServerError, 500), 500, "processing_failed"),
        (openai.APIConnectionError(request=httpx.Request("POST", "https://x")), 503, "upstream_unavailable"),
        (ValueError("unexpected"), 500, "processing_failed"),
    ],
)
async def test_upstream_failures_are_mapped(
    make_app, fake_llm, error, status_code, message_key
) -> None:
    fake_llm.error = error

    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json={"prompt": "hello"})

    assert res.status_code == status_code
    assert res.json() == {"error": get_message(message_key)}
    assert "upstream says no" not in res.text


@pytest.mark.anyio
async def test_empty_completion_is_a_server_error(make_app, fake_llm) -> None:
    fake_llm.reply = ""

    async with _client(make_app()) as client:
        res = await client.post("/api/chat", json={"prompt": "hello"})

    assert res.status_code == 500
    assert res.json() == {"error": get_message("processing_failed")}


@pytest.mark.anyio
async def test_unknown_path_and_wrong_method(make_app) -> None:
    async with _client(make_app()) as client:
        missing = await client.get("/api/nope")
        wrong_method = await client.get("/api/chat")

    assert missing.status_code == 404
    assert missing.json() == {"error": "Endpoint tidak ditemukan"}
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"error": get_message("method_not_allowed")}


@pytest.mark.anyio
async def test_health_and_security_headers(make_app) -> None:
    async with _client(make_app()) as client:
        res = await client.get("/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "OK"
    assert body["uptime"] >= 0
    assert body["timestamp"].endswith("Z")
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "SAMEORIGIN"


@pytest.mark.anyio
async def test_config_reports_api_base_url(make_app, app_config) -> None:
    config = app_config.model_copy(update={"api_base_url": "https://api.example.com"})

    async with _client(make_app(config=config)) as client:
        res = await client.get("/api/config")

    assert res.status_code == 200
    assert res.json()["apiBaseUrl"] == "https://api.example.com"


@pytest.mark.anyio
async def test_index_page_is_served(make_app) -> None:
    async with _client(make_app()) as client:
        res = await client.get("/")

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")


@pytest.mark.anyio
async def test_startup_aborts_when_key_is_rejected(make_app, app_config, fake_llm) -> None:
    config = app_config.model_copy(update={"startup_connection_check": True})
    app = make_app(config=config)
    fake_llm.error = _status_error(openai.AuthenticationError, 401)

    with pytest.raises(UpstreamMisconfigured):
        async with lifespan(app):
            pass


@pytest.mark.anyio
async def test_startup_continues_when_upstream_is_down(make_app, app_config, fake_llm) -> None:
    config = app_config.model_copy(update={"startup_connection_check": True})
    app = make_app(config=config)
    fake_llm.error = openai.APIConnectionError(request=httpx.Request("POST", "https://x"))

    async with lifespan(app):
        pass

    assert len(fake_llm.calls) == 1
