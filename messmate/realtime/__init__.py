from messmate.realtime.notifier import RealtimeNotifier
from messmate.realtime.registry import ConnectionRegistry

__all__ = ["ConnectionRegistry", "RealtimeNotifier"]
