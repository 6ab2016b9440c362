# FILE: backend/tastelocal/services/business_store.py
# TASTELOCAL - BUSINESS STORE (SYNCHRONIZER)
# 1. Owns the single in-memory aggregate for one session; injected, never ambient.
# 2. Mutators: transform -> optimistic swap -> clean + remote update -> rollback on WriteError.
# 3. Every local swap bumps 'revision'. Remote snapshots that arrive while an optimistic
#    revision is still unconfirmed are superseded by it and held back instead of applied.
# 4. Observers read snapshots through snapshots(); the aggregate is replaced by reference,
#    never edited in place.

import asyncio
from enum import Enum
from typing import Any, AsyncIterator, List, Optional, Set, Tuple

import structlog
from pydantic import ValidationError

from ..core.config import settings
from ..core.exceptions import NotFoundError, WriteError
from ..models.business import BlogPost, BusinessAggregate, BusinessHours, MediaItem, MenuItem, Notification, Order
from ..models.commands import (
    AddBlogPost,
    AddMediaItem,
    AddMenuItem,
    AddNotification,
    AddOrder,
    BlogPostChanges,
    BusinessProfileChanges,
    DeleteBlogPost,
    DeleteMediaItem,
    DeleteMenuItem,
    MarkNotificationAsRead,
    MenuItemChanges,
    UpdateBlogPost,
    UpdateBusinessHours,
    UpdateBusinessProfile,
    UpdateMenuItem,
    UpdateOrderStatus,
    UpdateRating,
)
from ..models.common import OrderStatus, utcnow
from .aggregate_transforms import apply_command, changed_fields
from .sanitizer import clean

logger = structlog.get_logger(__name__)

_NO_SNAPSHOT = object()
_CLOSED = object()


def _offer(channel: "asyncio.Queue[Any]", item: Any) -> None:
    # Only the latest snapshot matters to a slow consumer
    if channel.full():
        channel.get_nowait()
    channel.put_nowait(item)


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    SYNCED = "synced"


class BusinessStore:
    def __init__(self, documents: Any, collection: Optional[str] = None, backlog: Optional[int] = None):
        self._documents = documents
        self._collection = collection or settings.BUSINESSES_COLLECTION
        self._backlog = backlog or settings.SNAPSHOT_BACKLOG
        self._business_id: Optional[str] = None
        self._business: Optional[BusinessAggregate] = None
        self._state = SyncState.UNINITIALIZED
        self._subscription: Any = None
        self._revision = 0
        self._unconfirmed: Set[int] = set()
        self._deferred: Any = _NO_SNAPSHOT
        self._channels: List["asyncio.Queue[Any]"] = []

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def business(self) -> Optional[BusinessAggregate]:
        return self._business

    @property
    def business_id(self) -> Optional[str]:
        return self._business_id

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def idle(self) -> bool:
        """No stream is watching and no write is in flight."""
        return not self._channels and not self._unconfirmed

    # --- LIFECYCLE ---

    async def bind(self, business_id: str) -> Optional[BusinessAggregate]:
        """Subscribes to the business document; returns once the first snapshot is in."""
        if self._state is not SyncState.UNINITIALIZED:
            await self.close()

        self._business_id = business_id
        self._state = SyncState.LOADING
        logger.info("business_store.loading", business_id=business_id)
        try:
            self._subscription = await self._documents.subscribe(
                self._collection, business_id, self._on_remote_snapshot
            )
        except BaseException:
            self._business_id = None
            self._state = SyncState.UNINITIALIZED
            raise
        return self._business

    async def bind_owner(self, owner_id: str) -> Optional[BusinessAggregate]:
        matches = await self._documents.query_by_field(self._collection, "ownerId", owner_id)
        if not matches:
            raise NotFoundError(f"No business found for owner '{owner_id}'")
        return await self.bind(matches[0]["id"])

    async def close(self) -> None:
        if self._subscription is not None:
            await self._subscription.unsubscribe()
        self._subscription = None
        for channel in self._channels:
            _offer(channel, _CLOSED)
        logger.info("business_store.closed", business_id=self._business_id)
        self._business_id = None
        self._business = None
        self._state = SyncState.UNINITIALIZED
        self._unconfirmed.clear()
        self._deferred = _NO_SNAPSHOT

    async def snapshots(self) -> AsyncIterator[Optional[BusinessAggregate]]:
        """Yields the current snapshot (once loaded) and then every replacement until close()."""
        channel: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=self._backlog)
        if self._state is SyncState.SYNCED:
            _offer(channel, self._business)
        self._channels.append(channel)
        try:
            while True:
                snapshot = await channel.get()
                if snapshot is _CLOSED:
                    return
                yield snapshot
        finally:
            self._channels.remove(channel)

    # --- STATE SWAPS ---

    def _swap(self, business: Optional[BusinessAggregate]) -> int:
        self._business = business
        self._revision += 1
        for channel in self._channels:
            _offer(channel, business)
        return self._revision

    def _parse(self, doc: Optional[dict]) -> Any:
        if doc is None:
            return None
        try:
            return BusinessAggregate.model_validate(doc)
        except ValidationError as e:
            logger.error("business_store.invalid_snapshot", business_id=self._business_id, error=str(e))
            return _NO_SNAPSHOT

    def _on_remote_snapshot(self, doc: Optional[dict]) -> None:
        if self._state is SyncState.UNINITIALIZED:
            return
        business = self._parse(doc)
        if business is _NO_SNAPSHOT:
            return

        if self._unconfirmed:
            # A newer local revision supersedes whatever this snapshot says
            self._deferred = business
            logger.debug(
                "business_store.remote_deferred",
                business_id=self._business_id,
                revision=self._revision,
                unconfirmed=sorted(self._unconfirmed),
            )
            return

        self._state = SyncState.SYNCED
        if business != self._business:
            self._swap(business)
            logger.debug("business_store.remote_applied", business_id=self._business_id, revision=self._revision)

    def _require_business(self) -> BusinessAggregate:
        if self._state is not SyncState.SYNCED or self._business is None:
            raise NotFoundError("No business found")
        return self._business

    def _settle(self, persisted: Optional[dict]) -> None:
        self._deferred = _NO_SNAPSHOT
        business = self._parse(persisted)
        if business is not _NO_SNAPSHOT and business is not None and business != self._business:
            self._swap(business)

    def _rollback(self, before: BusinessAggregate) -> None:
        target: Any = before
        if not self._unconfirmed:
            if self._deferred is not _NO_SNAPSHOT:
                target = self._deferred
            self._deferred = _NO_SNAPSHOT
        if target != self._business:
            self._swap(target)

    # --- MUTATOR PROTOCOL ---

    async def execute(self, command: Any) -> BusinessAggregate:
        current = self._require_business()
        updated = apply_command(current, command)
        if updated == current:
            logger.info("business_store.command_noop", business_id=current.id, command=command.kind)
            return current

        revision = self._swap(updated)
        self._unconfirmed.add(revision)
        try:
            persisted = await self._documents.update(
                self._collection, current.id, clean(changed_fields(current, updated))
            )
        except WriteError as e:
            self._unconfirmed.discard(revision)
            self._rollback(current)
            logger.warning(
                "business_store.command_rolled_back",
                business_id=current.id,
                command=command.kind,
                revision=revision,
                error=str(e),
            )
            raise

        self._unconfirmed.discard(revision)
        if not self._unconfirmed:
            self._settle(persisted)
        logger.info("business_store.command_applied", business_id=current.id, command=command.kind, revision=revision)
        return updated

    # --- MENU ---

    async def add_menu_item(self, item: MenuItem) -> BusinessAggregate:
        return await self.execute(AddMenuItem(item=item))

    async def update_menu_item(self, item_id: str, changes: MenuItemChanges) -> BusinessAggregate:
        return await self.execute(UpdateMenuItem(item_id=item_id, changes=changes))

    async def delete_menu_item(self, item_id: str) -> BusinessAggregate:
        return await self.execute(DeleteMenuItem(item_id=item_id))

    # --- ORDERS ---

    async def add_order(self, order: Order) -> BusinessAggregate:
        return await self.execute(AddOrder(order=order))

    async def update_order_status(self, order_id: str, status: OrderStatus) -> BusinessAggregate:
        return await self.execute(UpdateOrderStatus(order_id=order_id, status=status))

    # --- HOURS ---

    async def update_business_hours(self, hours: Tuple[BusinessHours, ...]) -> BusinessAggregate:
        return await self.execute(UpdateBusinessHours(hours=tuple(hours)))

    # --- NOTIFICATIONS ---

    async def add_notification(self, notification: Notification) -> BusinessAggregate:
        return await self.execute(AddNotification(notification=notification))

    async def mark_notification_as_read(self, notification_id: str) -> BusinessAggregate:
        return await self.execute(MarkNotificationAsRead(notification_id=notification_id))

    def get_unread_notifications(self) -> List[Notification]:
        if self._business is None:
            return []
        return [notification for notification in self._business.notifications if not notification.read]

    # --- MEDIA ---

    async def add_media_item(self, item: MediaItem) -> BusinessAggregate:
        return await self.execute(AddMediaItem(item=item))

    async def delete_media_item(self, item_id: str) -> BusinessAggregate:
        return await self.execute(DeleteMediaItem(item_id=item_id))

    # --- BLOG ---

    async def add_blog_post(self, post: BlogPost) -> BusinessAggregate:
        return await self.execute(AddBlogPost(post=post))

    async def update_blog_post(self, post_id: str, changes: BlogPostChanges, updated_at=None) -> BusinessAggregate:
        return await self.execute(UpdateBlogPost(post_id=post_id, changes=changes, updated_at=updated_at or utcnow()))

    async def delete_blog_post(self, post_id: str) -> BusinessAggregate:
        return await self.execute(DeleteBlogPost(post_id=post_id))

    # --- PROFILE ---

    async def update_business_profile(self, changes: BusinessProfileChanges) -> BusinessAggregate:
        return await self.execute(UpdateBusinessProfile(changes=changes))

    async def update_rating(self, rating: float) -> BusinessAggregate:
        return await self.execute(UpdateRating(rating=rating))
