# FILE: backend/tastelocal/core/store_registry.py

import asyncio
import logging
from typing import Any, Dict

from ..services.business_store import BusinessStore

logger = logging.getLogger(__name__)

class StoreRegistry:
    """
    Holds one bound BusinessStore per business_id, shared by the dashboard and stream routers.
    Creation is serialized so two concurrent requests never bind the same business twice.
    Only stores that found their document are kept; stream consumers release them on exit.
    """
    def __init__(self, documents: Any):
        self.documents = documents
        self.stores: Dict[str, BusinessStore] = {}
        self._lock = asyncio.Lock()

    async def _keep(self, store: BusinessStore) -> BusinessStore:
        # Caller holds the lock
        if store.business is None:
            business_id = store.business_id
            await store.close()
            logger.info(f"No document for business {business_id}; store not kept")
            return store
        self.stores[store.business_id] = store
        logger.info(f"Bound store for business {store.business_id} ({len(self.stores)} active)")
        return store

    async def get_store(self, business_id: str) -> BusinessStore:
        async with self._lock:
            store = self.stores.get(business_id)
            if store is not None:
                return store
            store = BusinessStore(self.documents)
            await store.bind(business_id)
            return await self._keep(store)

    async def get_store_for_owner(self, owner_id: str) -> BusinessStore:
        """Resolves the owner's business through the store itself; raises NotFoundError if there is none."""
        async with self._lock:
            for store in self.stores.values():
                if store.business is not None and store.business.owner_id == owner_id:
                    return store
            store = BusinessStore(self.documents)
            await store.bind_owner(owner_id)
            return await self._keep(store)

    async def release_if_idle(self, business_id: str):
        async with self._lock:
            store = self.stores.get(business_id)
            if store is None or not store.idle:
                return
            del self.stores[business_id]
        await store.close()
        logger.info(f"Released idle store for business {business_id}")

    async def release(self, business_id: str):
        async with self._lock:
            store = self.stores.pop(business_id, None)
        if store is not None:
            await store.close()
            logger.info(f"Released store for business {business_id}")

    async def close_all(self):
        async with self._lock:
            stores = list(self.stores.values())
            self.stores.clear()
        # Close concurrently; one failing subscription must not keep the others open
        results = await asyncio.gather(*(store.close() for store in stores), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Failed to close business store: {result}")
