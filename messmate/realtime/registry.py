"""
In-memory registry of live socket connections.

The registry is opened on application startup and closed on shutdown;
closing drops every entry. A user may hold several connections at once.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from messmate.core.logging import get_logger
from messmate.models.base import utcnow

logger = get_logger(__name__)


class RegistryClosedError(RuntimeError):
    """The registry is not accepting connections."""


@dataclass
class Connection:
    sid: str
    user_id: str
    name: str
    role: str
    student_id: Optional[str] = None
    connected_at: datetime = field(default_factory=utcnow)
    window_start: float = 0.0
    event_count: int = 0


class ConnectionRegistry:
    def __init__(
        self,
        rate_limit: int = 120,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate_limit = rate_limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()
        self._open = False

    # ==================== Lifecycle ====================

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        with self._lock:
            self._open = True
        logger.info("Connection registry opened")

    def close(self) -> None:
        with self._lock:
            dropped = len(self._connections)
            self._connections.clear()
            self._open = False
        logger.info("Connection registry closed", extra={"dropped_connections": dropped})

    # ==================== Entries ====================

    def add(
        self,
        sid: str,
        user_id: str,
        name: str,
        role: str,
        student_id: Optional[str] = None,
    ) -> Connection:
        with self._lock:
            if not self._open:
                raise RegistryClosedError("Connection registry is closed")
            connection = Connection(
                sid=sid,
                user_id=user_id,
                name=name,
                role=role,
                student_id=student_id,
                window_start=self._clock(),
            )
            self._connections[sid] = connection
        return connection

    def remove(self, sid: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.pop(sid, None)

    def get(self, sid: str) -> Optional[Connection]:
        return self._connections.get(sid)

    def sids_for_user(self, user_id: str) -> List[str]:
        with self._lock:
            return [c.sid for c in self._connections.values() if c.user_id == user_id]

    def online_user_ids(self) -> List[str]:
        with self._lock:
            return sorted({c.user_id for c in self._connections.values()})

    def __len__(self) -> int:
        return len(self._connections)

    # ==================== Rate limiting ====================

    def allow_event(self, sid: str) -> bool:
        """
        Count one client event against the connection's window.

        Returns False once more than ``rate_limit`` events arrive within
        ``window_seconds``. Unknown sids are refused.
        """
        with self._lock:
            connection = self._connections.get(sid)
            if connection is None:
                return False
            now = self._clock()
            if now - connection.window_start > self.window_seconds:
                connection.window_start = now
                connection.event_count = 0
            connection.event_count += 1
            return connection.event_count <= self.rate_limit
