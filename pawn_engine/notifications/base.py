"""Notification sender and sink contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pawn_engine.models import Notification, SendNotificationRequest


class NotificationSender(ABC):
    """Anything able to notify a customer on behalf of the jobs."""

    @abstractmethod
    def send_to_customer(self, request: SendNotificationRequest) -> Notification | None:
        """Dispatch one notification.

        Returns the notification record, or None when the customer opted out.
        Raises on failure.
        """


class NotificationSink(ABC):
    """Delivery backend for notification records."""

    @abstractmethod
    def publish(self, notification: Notification) -> None:
        """Hand a notification to the delivery channel."""

    def close(self) -> None:
        """Flush and release resources."""
