"""Pawnshop domain models."""

from pawn_engine.models.customer import Customer
from pawn_engine.models.enums import (
    ItemStatus,
    LoanStatus,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from pawn_engine.models.item import Item
from pawn_engine.models.loan import Loan
from pawn_engine.models.notification import Notification, SendNotificationRequest

__all__ = [
    "Customer",
    "Item",
    "ItemStatus",
    "Loan",
    "LoanStatus",
    "Notification",
    "NotificationChannel",
    "NotificationStatus",
    "NotificationType",
    "SendNotificationRequest",
]
