"""In-app notification delivery backed by the notifications table."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..workflow.errors import NotificationDeliveryFailure
from ..workflow.notifications import Notification, NotificationSender
from ..workflow.primitives import generate_ulid, utc_now
from .models import NotificationModel


class DatabaseNotificationSender(NotificationSender):
    """Writes each notification as a row for the recipient's inbox."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, notification: Notification) -> None:
        try:
            self.db.add(
                NotificationModel(
                    id=generate_ulid(),
                    user_id=notification.recipient,
                    title=notification.title,
                    message=notification.message,
                    type=notification.category.value,
                    meta=dict(notification.meta),
                    read=False,
                    created_at=utc_now(),
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NotificationDeliveryFailure(
                f"Could not store notification: {e}",
                recipient=notification.recipient,
                blocker_id=notification.meta.get("blocker_id"),
            ) from e
