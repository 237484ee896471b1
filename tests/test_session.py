from __future__ import annotations

import pytest

from chatbot_web.client.connectivity import ConnectivityMonitor
from chatbot_web.client.history import HistoryStore
from chatbot_web.client.network import ChatRequestError, ConnectionFailure
from chatbot_web.client.session import NOTICE_TTL_SECONDS, ChatSession
from chatbot_web.client.storage import LocalStore, StorageError
from chatbot_web.models.chat_message import ChatMessage
from chatbot_web.models.chat_response import ChatResponse
from chatbot_web.models.enums import MessageRole
from chatbot_web.utils.messages import get_message


class FakeNetwork:
    """Replies from a queue of results; exceptions in the queue are raised."""

    def __init__(self, *results: object) -> None:
        self.results = list(results)
        self.prompts: list[str] = []
        self.base_url = "http://test"

    async def send_chat(self, prompt: str) -> ChatResponse:
        self.prompts.append(prompt)
        result = self.results.pop(0) if self.results else "ok"
        if isinstance(result, Exception):
            raise result
        return ChatResponse(response=str(result), timestamp="2024-01-01T00:00:00.000Z")


async def _no_sleep(delay: float) -> None:
    return None


def _session(network: FakeNetwork, clock, *, online: bool = True, **kwargs) -> ChatSession:
    return ChatSession(
        network,
        HistoryStore(LocalStore()),
        ConnectivityMonitor(online=online),
        sleep=_no_sleep,
        clock=clock,
        **kwargs,
    )


@pytest.mark.anyio
async def test_successful_send_records_both_messages(clock) -> None:
    network = FakeNetwork("Halo juga!")
    session = _session(network, clock)

    reply = await session.send_prompt("  Halo  ")

    assert reply is not None
    assert reply.role is MessageRole.ASSISTANT
    assert network.prompts == ["Halo"]
    assert [(m.role, m.content) for m in session.history.messages] == [
        (MessageRole.USER, "Halo"),
        (MessageRole.ASSISTANT, "Halo juga!"),
    ]
    assert session.active_notices() == []


@pytest.mark.anyio
async def test_offline_send_performs_no_request(clock) -> None:
    network = FakeNetwork()
    session = _session(network, clock, online=False)

    assert await session.send_prompt("Halo") is None

    assert network.prompts == []
    assert len(session.history) == 0
    assert [n.message for n in session.active_notices()] == [get_message("client_offline")]


@pytest.mark.anyio
async def test_blank_prompt_is_refused_locally(clock) -> None:
    network = FakeNetwork()
    session = _session(network, clock)

    assert await session.send_prompt("   ") is None

    assert network.prompts == []
    assert session.active_notices()[0].message == get_message("client_empty_prompt")


@pytest.mark.anyio
async def test_retries_then_succeeds(clock) -> None:
    network = FakeNetwork(ConnectionFailure("down"), ChatRequestError(500), "finally")
    session = _session(network, clock)

    reply = await session.send_prompt("Halo")

    assert reply is not None and reply.content == "finally"
    assert len(network.prompts) == 3
    assert len(session.history) == 2


@pytest.mark.anyio
async def test_controls_are_restored_after_failure(clock) -> None:
    changes: list[bool] = []
    focused: list[bool] = []
    network = FakeNetwork(*(ConnectionFailure("down") for _ in range(3)))
    session = _session(
        network,
        clock,
        on_controls_changed=changes.append,
        on_focus=lambda: focused.append(True),
    )

    assert await session.send_prompt("Halo") is None

    assert changes == [False, True]
    assert focused == [True]
    assert session.controls_enabled
    assert len(network.prompts) == 3
    # The user's message stays in the history even though no reply came back.
    assert [m.role for m in session.history.messages] == [MessageRole.USER]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "error, message",
    [
        (ConnectionFailure("down"), get_message("client_connection_failed")),
        (ChatRequestError(429, "server says wait"), get_message("client_too_many_requests")),
        (ChatRequestError(500, "server broke"), get_message("client_server_error")),
        (ChatRequestError(503, "AI unavailable"), "AI unavailable"),
        (ChatRequestError(400, "Prompt terlalu pendek."), "Prompt terlalu pendek."),
        (ChatRequestError(502), get_message("client_generic_error")),
        (RuntimeError("weird"), get_message("client_generic_error")),
    ],
)
async def test_failures_are_explained(clock, error: Exception, message: str) -> None:
    network = FakeNetwork(*(error for _ in range(3)))
    session = _session(network, clock)

    await session.send_prompt("Halo")

    assert [n.message for n in session.active_notices()] == [message]


@pytest.mark.anyio
async def test_notices_disappear_after_five_seconds(clock) -> None:
    session = _session(FakeNetwork(), clock, online=False)
    await session.send_prompt("Halo")

    clock.advance(NOTICE_TTL_SECONDS - 1)
    assert len(session.active_notices()) == 1

    clock.advance(1)
    assert session.active_notices() == []


@pytest.mark.anyio
async def test_second_send_while_busy_is_refused(clock) -> None:
    session = _session(FakeNetwork(), clock)
    session._set_controls(False)

    assert await session.send_prompt("Halo") is None
    assert session.active_notices()[0].message == get_message("client_busy")


@pytest.mark.anyio
async def test_history_is_capped_across_sends(clock) -> None:
    session = _session(FakeNetwork(*[f"reply {n}" for n in range(30)]), clock)

    for n in range(30):
        await session.send_prompt(f"prompt {n}")

    assert len(session.history) == 50
    assert session.history.messages[-1].content == "reply 29"
    assert session.history.messages[0].content == "prompt 5"


def test_clear_history(clock) -> None:
    session = _session(FakeNetwork(), clock)
    session.history.append(ChatMessage.create("hi", MessageRole.USER))

    session.clear_history()

    assert len(session.history) == 0


class UnwritableStore(LocalStore):
    """A store whose file cannot be written, as on a full or read-only disk."""

    def set(self, key: str, value: object) -> None:
        raise StorageError(f"cannot persist {key}")


@pytest.mark.anyio
async def test_controls_are_restored_when_history_cannot_be_saved(clock) -> None:
    network = FakeNetwork("never shown")
    session = ChatSession(
        network,
        HistoryStore(UnwritableStore()),
        ConnectivityMonitor(),
        sleep=_no_sleep,
        clock=clock,
    )

    assert await session.send_prompt("Halo") is None
    assert session.controls_enabled

    await session.send_prompt("Halo lagi")
    messages = [n.message for n in session.active_notices()]
    assert get_message("client_busy") not in messages
    assert messages == [get_message("client_generic_error")] * 2


@pytest.mark.anyio
async def test_connection_failure_marks_client_offline(clock) -> None:
    network = FakeNetwork(*(ConnectionFailure("down") for _ in range(6)))
    session = _session(network, clock)

    await session.send_prompt("Halo")
    assert not session.connectivity.is_online
    assert len(network.prompts) == 3

    assert await session.send_prompt("Halo lagi") is None
    assert len(network.prompts) == 3
    assert session.active_notices()[-1].message == get_message("client_offline")


@pytest.mark.anyio
async def test_server_errors_leave_client_online(clock) -> None:
    session = _session(FakeNetwork(*(ChatRequestError(500) for _ in range(3))), clock)

    await session.send_prompt("Halo")

    assert session.connectivity.is_online
