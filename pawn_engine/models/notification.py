"""Customer notification models."""

from dataclasses import dataclass, field
from datetime import datetime

from pawn_engine.models.enums import (
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)


@dataclass
class SendNotificationRequest:
    """Request to notify a single customer."""

    customer_id: int
    type: NotificationType
    title: str
    message: str
    channel: NotificationChannel = NotificationChannel.SMS
    reference_type: str | None = None
    reference_id: int | None = None


@dataclass
class Notification:
    """Notification record handed to a delivery sink."""

    notification_id: str
    customer_id: int
    notification_type: NotificationType
    channel: NotificationChannel
    subject: str
    body: str
    branch_id: int | None = None
    reference_type: str | None = None
    reference_id: int | None = None
    recipient: str | None = None  # Phone or email resolved from the customer
    status: NotificationStatus = NotificationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)
