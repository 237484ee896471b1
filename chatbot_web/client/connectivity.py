"""Online/offline tracking for the chat client."""

from __future__ import annotations

from typing import Callable

from loguru import logger

from .network import ChatRequestError, ConnectionFailure, NetworkClient

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    """Holds the current connectivity flag and notifies listeners on change.

    The flag is flipped by whoever observes the network (the terminal
    front end calls :meth:`probe`); checking it never performs I/O.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        if online:
            logger.info("Connection restored")
        else:
            logger.warning("Connection lost")
        for listener in list(self._listeners):
            listener(online)

    async def probe(self, network: NetworkClient) -> bool:
        """Hit ``/health`` once and update the flag from the outcome."""
        try:
            await network.health()
        except ConnectionFailure:
            self.set_online(False)
        except ChatRequestError:
            # The server answered, so the network is up.
            self.set_online(True)
        else:
            self.set_online(True)
        return self._online
