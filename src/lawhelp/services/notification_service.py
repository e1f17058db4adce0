"""
Notification Service for LawHelp.
"""

import logging
from typing import List

from lawhelp.core.exceptions import NotFoundError
from lawhelp.models import User
from lawhelp.schemas import NotificationResponse
from lawhelp.services.connections import ConnectionManager, manager
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores notifications and pushes them to connected users."""

    def __init__(self, storage: Storage, connections: ConnectionManager = manager):
        self.storage = storage
        self.connections = connections

    async def notify(self, user_id: int, title: str, message: str, type: str = "info") -> NotificationResponse:
        notification = NotificationResponse.model_validate(
            self.storage.create_notification(user_id=user_id, title=title, message=message, type=type)
        )
        delivered = await self.connections.send_to_user(
            user_id, {"type": "notification", "notification": notification.model_dump(mode="json")}
        )
        logger.debug(f"Notification {notification.id} for user {user_id} (pushed={delivered})")
        return notification

    def list_for_user(self, user: User) -> List[NotificationResponse]:
        return [NotificationResponse.model_validate(n) for n in self.storage.get_user_notifications(user.id)]

    def mark_read(self, notification_id: int, user: User) -> None:
        """Mark one of the user's notifications as read."""
        notification = self.storage.get_notification(notification_id)
        if notification is None or notification.user_id != user.id:
            raise NotFoundError("Notification not found")
        self.storage.mark_notification_read(notification_id)
