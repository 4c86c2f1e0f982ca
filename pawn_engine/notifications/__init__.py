"""Customer notification delivery."""

from pawn_engine.notifications.base import NotificationSender, NotificationSink
from pawn_engine.notifications.console import ConsoleNotificationSink
from pawn_engine.notifications.jsonl import JsonLinesNotificationSink
from pawn_engine.notifications.service import NotificationService

__all__ = [
    "ConsoleNotificationSink",
    "JsonLinesNotificationSink",
    "NotificationSender",
    "NotificationService",
    "NotificationSink",
]
