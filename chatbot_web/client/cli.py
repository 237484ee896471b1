"""Terminal front end for the chat gateway.

Run with ``python -m chatbot_web.client`` (or the ``chatbot-client``
script).  Lines starting with ``/`` are commands; anything else is sent as
a prompt.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from ..config.client_config import ClientConfig, get_client_config
from ..models.enums import MessageRole, Theme
from ..utils.logger import setup_client_logging
from ..utils.messages import get_message
from .connectivity import ConnectivityMonitor
from .history import HistoryStore
from .network import NetworkClient
from .preferences import Preferences
from .retry import retry_server_errors_only
from .session import ChatSession
from .storage import LocalStore

DEFAULT_STORAGE_PATH = Path.home() / ".chatbot_web" / "client.json"

HELP_TEXT = """Commands:
  /clear            delete the chat history
  /export [file]    write the history to a JSON file
  /theme <name>     switch theme (futuristic, neon, minimal, dark)
  /dark             toggle dark mode
  /status           show connectivity and preferences
  /quit             exit"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatbot-client", description=__doc__.splitlines()[0])
    parser.add_argument("--server", help="Gateway origin, e.g. http://localhost:3000")
    parser.add_argument("--storage", help="Path of the JSON file holding history and preferences")
    parser.add_argument("--attempts", type=int, help="Attempts per prompt before giving up")
    parser.add_argument(
        "--retry-server-errors-only",
        action="store_true",
        help="Do not retry 4xx responses other than 429",
    )
    parser.add_argument("--locale", choices=["id", "en"], help="Language for client messages")
    return parser


def _print_message(role: MessageRole, content: str, timestamp: str) -> None:
    label = "you" if role is MessageRole.USER else "bot"
    print(f"[{timestamp}] {label}: {content}")


def _print_notices(session: ChatSession) -> None:
    for notice in session.active_notices():
        print(f"! {notice.message}")


def _print_connectivity(online: bool) -> None:
    print("* connection restored" if online else "* connection lost")


def _handle_command(line: str, session: ChatSession) -> bool:
    """Run a slash command; return ``False`` when the user asked to quit."""
    command, _, argument = line[1:].partition(" ")
    argument = argument.strip()

    if command in ("quit", "exit"):
        return False
    if command == "help":
        print(HELP_TEXT)
    elif command == "clear":
        session.clear_history()
        print(get_message("client_history_cleared", session.locale))
    elif command == "export":
        target = Path(argument or f"chat-export-{date.today().isoformat()}.json")
        try:
            target.write_text(
                json.dumps(session.history.export(), indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            logger.error("Export to {} failed: {}", target, exc)
            print(f"Could not write {target}: {exc.strerror or exc}")
        else:
            print(f"Exported {len(session.history)} messages to {target}")
    elif command == "theme" and session.preferences is not None:
        try:
            theme = session.preferences.set_theme(argument)
        except ValueError:
            print(f"Unknown theme; choose one of {', '.join(t.value for t in Theme)}")
        else:
            print(f"Theme set to {theme.value}")
    elif command == "dark" and session.preferences is not None:
        enabled = session.preferences.toggle_dark_mode()
        print(f"Dark mode {'on' if enabled else 'off'}")
    elif command == "status":
        state = "online" if session.connectivity.is_online else "offline"
        print(f"{state} | {session.network.base_url} | {len(session.history)} messages")
        if session.preferences is not None:
            print(f"theme={session.preferences.theme.value} dark={session.preferences.dark_mode}")
    else:
        print(HELP_TEXT)
    return True


async def run_client(config: ClientConfig, *, server_errors_only: bool = False) -> None:
    store = LocalStore(config.storage_path or DEFAULT_STORAGE_PATH)
    history = HistoryStore(store)
    connectivity = ConnectivityMonitor()
    connectivity.subscribe(_print_connectivity)

    async with NetworkClient(config.server_url, timeout=config.timeout) as network:
        await network.configure()
        await connectivity.probe(network)

        session = ChatSession(
            network,
            history,
            connectivity,
            Preferences(store),
            max_attempts=config.max_attempts,
            base_delay=config.retry_base_delay,
            should_retry=retry_server_errors_only if server_errors_only else None,
            locale=config.locale,
        )

        for message in history.messages:
            _print_message(message.role, message.content, message.timestamp)
        print(f"Connected to {network.base_url}. Type /help for commands.")

        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except (EOFError, KeyboardInterrupt):
                break

            if line.startswith("/"):
                if not _handle_command(line.strip(), session):
                    break
                continue

            if not connectivity.is_online:
                await connectivity.probe(network)

            reply = await session.send_prompt(line)
            if reply is not None:
                _print_message(reply.role, reply.content, reply.timestamp)
            _print_notices(session)

    logger.info("Client exited")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    overrides = {
        key: value
        for key, value in {
            "server_url": args.server.rstrip("/") if args.server else None,
            "storage_path": args.storage,
            "max_attempts": args.attempts,
            "locale": args.locale,
        }.items()
        if value is not None
    }
    base = get_client_config()
    config = base.model_copy(update=overrides) if overrides else base

    setup_client_logging(config.log_dir)
    asyncio.run(run_client(config, server_errors_only=args.retry_server_errors_only))
