# FILE: backend/tastelocal/api/endpoints/dependencies.py
# Handles are created once by the lifespan and read from app.state; nothing is global.

from fastapi import Depends, HTTPException, Request

from ...core.store_registry import StoreRegistry
from ...services.discovery_service import DiscoveryService
from ...services.user_profile_service import UserProfileService


def get_document_store(request: Request):
    documents = getattr(request.app.state, "document_store", None)
    if documents is None:
        raise HTTPException(status_code=503, detail="Document store is not connected.")
    return documents


def get_store_registry(request: Request) -> StoreRegistry:
    registry = getattr(request.app.state, "store_registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Store registry is not initialized.")
    return registry


def get_discovery_service(documents=Depends(get_document_store)) -> DiscoveryService:
    return DiscoveryService(documents)


def get_user_profile_service(documents=Depends(get_document_store)) -> UserProfileService:
    return UserProfileService(documents)
