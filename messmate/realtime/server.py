"""
Process-wide Socket.IO server, connection registry and notifier.
"""

import socketio

from messmate.config import settings
from messmate.realtime.gateway import RealtimeGateway
from messmate.realtime.notifier import RealtimeNotifier
from messmate.realtime.registry import ConnectionRegistry

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*" if settings.cors_origins == ["*"] else settings.cors_origins,
    logger=False,
    engineio_logger=False,
)

registry = ConnectionRegistry(
    rate_limit=settings.SOCKET_RATE_LIMIT,
    window_seconds=settings.SOCKET_RATE_WINDOW_SECONDS,
)
gateway = RealtimeGateway(sio, registry)
notifier = RealtimeNotifier(sio)
