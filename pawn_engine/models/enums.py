"""Enumeration types for pawnshop entities."""

from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    PAID = "paid"
    RENEWED = "renewed"
    CONFISCATED = "confiscated"
    DEFAULTED = "defaulted"


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    PAWNED = "pawned"
    COLLATERAL = "collateral"
    FOR_SALE = "for_sale"
    SOLD = "sold"
    CONFISCATED = "confiscated"
    TRANSFERRED = "transferred"
    IN_TRANSFER = "in_transfer"
    DAMAGED = "damaged"
    LOST = "lost"


class NotificationType(str, Enum):
    LOAN_DUE_REMINDER = "loan_due_reminder"
    LOAN_OVERDUE = "loan_overdue"
    LOAN_CONFISCATED = "loan_confiscated"
    ITEM_FOR_SALE = "item_for_sale"
    GENERAL = "general"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    PUSH = "push"
    INTERNAL = "internal"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"
