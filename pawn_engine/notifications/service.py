"""Customer notification service."""

from __future__ import annotations

import logging
import uuid

from pawn_engine.exceptions import EntityNotFoundError, NotificationError
from pawn_engine.models import Notification, NotificationChannel, SendNotificationRequest
from pawn_engine.notifications.base import NotificationSender, NotificationSink
from pawn_engine.store.base import CustomerStore

logger = logging.getLogger(__name__)


class NotificationService(NotificationSender):
    """Build pending notification records and publish them to a sink.

    Parameters
    ----------
    customer_store : CustomerStore
        Used to check the customer exists and to resolve the recipient.
    sink : NotificationSink
        Where notification records are published.
    """

    def __init__(self, customer_store: CustomerStore, sink: NotificationSink) -> None:
        self.customer_store = customer_store
        self.sink = sink
        self.sent = 0
        self.suppressed = 0

    def send_to_customer(self, request: SendNotificationRequest) -> Notification | None:
        customer = self.customer_store.get_by_id(request.customer_id)
        if customer is None:
            raise EntityNotFoundError(f"Customer {request.customer_id} not found")

        if not customer.notifications_enabled:
            self.suppressed += 1
            logger.debug(
                "Customer opted out of notifications: customer_id=%s type=%s",
                request.customer_id,
                request.type.value,
            )
            return None

        if request.channel == NotificationChannel.EMAIL:
            recipient = customer.email or None
        else:
            recipient = customer.phone or None

        notification = Notification(
            notification_id=uuid.uuid4().hex,
            customer_id=request.customer_id,
            branch_id=customer.branch_id,
            notification_type=request.type,
            channel=request.channel,
            subject=request.title,
            body=request.message,
            reference_type=request.reference_type,
            reference_id=request.reference_id,
            recipient=recipient,
        )

        try:
            self.sink.publish(notification)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(
                f"Failed to publish notification for customer {request.customer_id}: {e}"
            ) from e

        self.sent += 1
        return notification

    def close(self) -> None:
        self.sink.close()
