"""Python client for the chat gateway.

The pieces are usable on their own: :func:`with_retry` for any awaitable
operation, :class:`HistoryStore` for bounded history, and
:class:`ChatSession` to tie them together.
"""

from .connectivity import ConnectivityMonitor  # noqa: F401
from .history import HistoryStore  # noqa: F401
from .network import ChatRequestError, ConnectionFailure, NetworkClient  # noqa: F401
from .preferences import Preferences  # noqa: F401
from .retry import backoff_delay, retry_server_errors_only, with_retry  # noqa: F401
from .session import ChatSession, Notice  # noqa: F401
from .storage import LocalStore  # noqa: F401
