# FILE: backend/tastelocal/api/endpoints/dashboard.py
# TASTELOCAL - VENDOR DASHBOARD ROUTER
# 1. Commands go through the business's shared BusinessStore (optimistic + rollback).
# 2. Error mapping: NotFound -> 404, validation -> 422, write failure -> 502.

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from ...core.exceptions import MutationValidationError, NotFoundError, WriteError
from ...core.store_registry import StoreRegistry
from ...models.business import BusinessAggregate, Notification
from ...models.commands import parse_command
from ...services.business_store import BusinessStore
from ...services.notification_index import NotificationIndex
from .dependencies import get_store_registry

router = APIRouter(tags=["Dashboard"])
logger = logging.getLogger(__name__)


async def _loaded_store(business_id: str, registry: StoreRegistry) -> BusinessStore:
    store = await registry.get_store(business_id)
    if store.business is None:
        raise HTTPException(status_code=404, detail="No business found")
    return store


@router.get("/{business_id}", response_model=BusinessAggregate, response_model_by_alias=True)
async def get_dashboard(business_id: str, registry: StoreRegistry = Depends(get_store_registry)):
    store = await _loaded_store(business_id, registry)
    return store.business


@router.get("/owner/{owner_id}", response_model=BusinessAggregate, response_model_by_alias=True)
async def get_dashboard_for_owner(owner_id: str, registry: StoreRegistry = Depends(get_store_registry)):
    """Dashboard entry after login: the identity only knows its owner id."""
    try:
        store = await registry.get_store_for_owner(owner_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if store.business is None:
        raise HTTPException(status_code=404, detail="No business found")
    return store.business


@router.post("/{business_id}/commands", response_model=BusinessAggregate, response_model_by_alias=True)
async def execute_command(
    business_id: str,
    payload: Dict[str, Any] = Body(...),
    registry: StoreRegistry = Depends(get_store_registry),
):
    try:
        command = parse_command(payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors(include_url=False, include_context=False))

    store = await _loaded_store(business_id, registry)
    try:
        return await store.execute(command)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MutationValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except WriteError as e:
        logger.error(f"Command '{command.kind}' failed for business {business_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not save changes. Please try again.")


@router.get("/{business_id}/notifications/unread", response_model=List[Notification], response_model_by_alias=True)
async def get_unread_notifications(business_id: str, registry: StoreRegistry = Depends(get_store_registry)):
    store = await _loaded_store(business_id, registry)
    return NotificationIndex(store).unread()
