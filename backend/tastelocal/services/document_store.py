# FILE: backend/tastelocal/services/document_store.py
# TASTELOCAL - DOCUMENT STORE ADAPTER
# 1. Thin pass-through over Motor collections keyed by string '_id'.
# 2. Every successful write publishes the fresh document on the Redis channel for that
#    document; subscribers listen on the same channel (push, not polling the database).
# 3. A missing document is a None result on reads, never an error.

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..core.config import settings
from ..core.exceptions import WriteError
from .sanitizer import clean

logger = structlog.get_logger(__name__)

Document = Dict[str, Any]
ChangeCallback = Callable[[Optional[Document]], Union[None, Awaitable[None]]]


def _from_mongo(doc: Optional[Document]) -> Optional[Document]:
    if doc is None:
        return None
    doc = dict(doc)
    doc_id = doc.pop("_id", None)
    doc.setdefault("id", str(doc_id))
    return doc


def channel_for(collection: str, doc_id: str) -> str:
    return settings.UPDATES_CHANNEL_TEMPLATE.format(collection=collection, id=doc_id)


async def _deliver(on_change: ChangeCallback, doc: Optional[Document]) -> None:
    result = on_change(doc)
    if asyncio.iscoroutine(result):
        await result


class Subscription:
    """Handle returned by DocumentStore.subscribe(); cancel it with unsubscribe()."""

    def __init__(self, task: "asyncio.Task[None]"):
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    async def unsubscribe(self) -> None:
        if self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class DocumentStore:
    def __init__(self, db: Any, redis: Redis):
        self.db = db
        self.redis = redis

    # --- READS ---

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = await self.db[collection].find_one({"_id": doc_id})
        return _from_mongo(doc)

    async def query_all(self, collection: str) -> List[Document]:
        cursor = self.db[collection].find({})
        return [_from_mongo(doc) async for doc in cursor]

    async def query_by_field(self, collection: str, field: str, value: Any) -> List[Document]:
        cursor = self.db[collection].find({field: value})
        return [_from_mongo(doc) async for doc in cursor]

    # --- WRITES ---

    async def create(self, collection: str, doc_id: str, document: Document) -> Document:
        payload = clean({**document, "_id": doc_id})
        payload.pop("id", None)
        try:
            await self.db[collection].insert_one(payload)
        except DuplicateKeyError as e:
            raise WriteError(f"Document '{doc_id}' already exists in '{collection}'", cause=e)
        except PyMongoError as e:
            logger.error("document_store.create_failed", collection=collection, doc_id=doc_id, error=str(e))
            raise WriteError(f"Could not create '{doc_id}' in '{collection}'", cause=e)

        created = _from_mongo(payload)
        await self._publish(collection, doc_id, created)
        return created

    async def update(self, collection: str, doc_id: str, partial: Document) -> Document:
        """Merges the top-level fields of 'partial' into the document and returns the result."""
        changes = clean(partial)
        changes.pop("id", None)
        changes.pop("_id", None)
        if not changes:
            current = await self.get(collection, doc_id)
            if current is None:
                raise WriteError(f"Document '{doc_id}' not found in '{collection}'")
            return current

        try:
            updated = await self.db[collection].find_one_and_update(
                {"_id": doc_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("document_store.update_failed", collection=collection, doc_id=doc_id, error=str(e))
            raise WriteError(f"Could not update '{doc_id}' in '{collection}'", cause=e)

        if updated is None:
            raise WriteError(f"Document '{doc_id}' not found in '{collection}'")

        fresh = _from_mongo(updated)
        await self._publish(collection, doc_id, fresh)
        return fresh

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Removes the document; subscribers receive None. Returns False when nothing matched."""
        try:
            result = await self.db[collection].delete_one({"_id": doc_id})
        except PyMongoError as e:
            logger.error("document_store.delete_failed", collection=collection, doc_id=doc_id, error=str(e))
            raise WriteError(f"Could not delete '{doc_id}' from '{collection}'", cause=e)

        if result.deleted_count == 0:
            return False
        await self._publish(collection, doc_id, None)
        return True

    async def _publish(self, collection: str, doc_id: str, doc: Optional[Document]) -> None:
        # The write already happened; a lost notification must not turn it into a failure
        try:
            await self.redis.publish(channel_for(collection, doc_id), json.dumps(doc, default=str))
        except RedisError as e:
            logger.warning("document_store.publish_failed", collection=collection, doc_id=doc_id, error=str(e))

    # --- PUSH SUBSCRIPTION ---

    async def subscribe(self, collection: str, doc_id: str, on_change: ChangeCallback) -> Subscription:
        """
        Delivers the current document (or None) once before returning, then every
        published version until the returned Subscription is cancelled.
        """
        pubsub = self.redis.pubsub()
        channel = channel_for(collection, doc_id)
        # Listen first so a write racing with the initial read is not missed
        await pubsub.subscribe(channel)
        try:
            await _deliver(on_change, await self.get(collection, doc_id))
        except BaseException:
            await pubsub.unsubscribe()
            await pubsub.aclose()
            raise

        task = asyncio.create_task(self._listen(pubsub, channel, on_change))
        logger.info("document_store.subscribed", channel=channel)
        return Subscription(task)

    async def _listen(self, pubsub: Any, channel: str, on_change: ChangeCallback) -> None:
        try:
            while True:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=settings.SUBSCRIPTION_POLL_SECONDS,
                )
                if message is None:
                    continue
                try:
                    doc = json.loads(message["data"])
                except (TypeError, ValueError) as e:
                    logger.error("document_store.bad_message", channel=channel, error=str(e))
                    continue
                await _deliver(on_change, doc)
        except asyncio.CancelledError:
            logger.info("document_store.unsubscribed", channel=channel)
            raise
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()
