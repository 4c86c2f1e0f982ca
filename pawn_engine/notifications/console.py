"""Console sink for debugging and development."""

import json

from pawn_engine.models import Notification
from pawn_engine.notifications.base import NotificationSink
from pawn_engine.notifications.serialization import to_dict


class ConsoleNotificationSink(NotificationSink):
    """Print notifications to stdout instead of delivering them."""

    def __init__(self, pretty: bool = False) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        """
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def publish(self, notification: Notification) -> None:
        data = to_dict(notification)
        if self.pretty:
            print(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        else:
            print(json.dumps(data, ensure_ascii=False, default=str))

        key = notification.notification_type.value
        self._counts[key] = self._counts.get(key, 0) + 1

    def close(self) -> None:
        """Print summary and close."""
        print(f"\n{'='*60}")
        print("Notification Sink Summary")
        print("=" * 60)
        for notification_type, count in self._counts.items():
            print(f"  {notification_type}: {count} notifications")
