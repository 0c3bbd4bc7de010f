"""
Server-side emission helpers used by REST handlers after a commit.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

from messmate.core.logging import get_logger
from messmate.realtime import events

logger = get_logger(__name__)


class RealtimeNotifier:
    def __init__(self, sio):
        self.sio = sio

    async def _emit(self, event: str, data: Any, to: Optional[str] = None) -> None:
        await self.sio.emit(event, jsonable_encoder(data), to=to)
        logger.debug("Realtime event emitted", extra={"event": event, "room": to})

    async def to_user(self, user_id: str, event: str, data: Any) -> None:
        await self._emit(event, data, to=events.user_room(user_id))

    async def to_role(self, role: str, event: str, data: Any) -> None:
        await self._emit(event, data, to=events.role_room(role))

    async def to_all(self, event: str, data: Any) -> None:
        await self._emit(event, data)
