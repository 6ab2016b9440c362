# FILE: backend/tastelocal/services/notification_index.py
# TASTELOCAL - UNREAD NOTIFICATIONS VIEW
# Derived from the store's current snapshot on every call; nothing is cached.
# The unread filter itself lives on the store (get_unread_notifications).

from typing import List

from ..models.business import BusinessAggregate, Notification
from .business_store import BusinessStore


class NotificationIndex:
    def __init__(self, store: BusinessStore):
        self.store = store

    def all(self) -> List[Notification]:
        business = self.store.business
        return list(business.notifications) if business is not None else []

    def unread(self) -> List[Notification]:
        return self.store.get_unread_notifications()

    def unread_count(self) -> int:
        return len(self.unread())

    async def mark_as_read(self, notification_id: str) -> BusinessAggregate:
        return await self.store.mark_notification_as_read(notification_id)
