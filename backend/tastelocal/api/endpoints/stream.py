# FILE: backend/tastelocal/api/endpoints/stream.py
# TASTELOCAL - SSE IMPLEMENTATION
# The last consumer to disconnect releases the shared store and its push subscription.
import asyncio
import json
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from ...core.store_registry import StoreRegistry
from ...services.business_store import BusinessStore
from .dependencies import get_store_registry

logger = logging.getLogger(__name__)
router = APIRouter()

async def event_generator(
    store: BusinessStore, business_id: str, registry: Optional[StoreRegistry] = None
) -> AsyncGenerator[str, None]:
    logger.info(f"SSE: client connected to business {business_id}")
    snapshots = store.snapshots()
    try:
        yield "event: connected\ndata: {\"status\": \"connected\"}\n\n"
        async for snapshot in snapshots:
            if snapshot is None:
                yield "event: missing\ndata: {}\n\n"
                continue
            payload = json.dumps({"revision": store.revision, "business": snapshot.to_document()})
            yield f"event: snapshot\ndata: {payload}\n\n"
    except asyncio.CancelledError:
        logger.info(f"SSE: client disconnected from business {business_id}.")
        raise
    finally:
        await snapshots.aclose()
        if registry is not None:
            await registry.release_if_idle(business_id)

@router.get("/{business_id}", response_class=StreamingResponse)
async def stream_business(business_id: str, registry: StoreRegistry = Depends(get_store_registry)):
    store = await registry.get_store(business_id)
    if store.business is None:
        raise HTTPException(status_code=404, detail="No business found")
    return StreamingResponse(
        event_generator(store, business_id, registry),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
