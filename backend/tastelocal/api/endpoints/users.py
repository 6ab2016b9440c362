# FILE: backend/tastelocal/api/endpoints/users.py
# TASTELOCAL - USER PROFILE ROUTER
# Registration and profile edits; authentication itself happens at the identity provider.

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.exceptions import MutationValidationError, NotFoundError, WriteError
from ...models.user import UserProfile, UserProfileChanges, UserRegistration
from ...services.user_profile_service import UserProfileService
from .dependencies import get_user_profile_service

router = APIRouter(tags=["Users"])
logger = logging.getLogger(__name__)


@router.post("", response_model=UserProfile, response_model_by_alias=True, status_code=status.HTTP_201_CREATED)
async def register_user(body: UserRegistration, users: UserProfileService = Depends(get_user_profile_service)):
    try:
        return await users.register(body)
    except WriteError as e:
        logger.error(f"Registration failed for {body.user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User could not be registered.")


@router.get("/{user_id}", response_model=UserProfile, response_model_by_alias=True)
async def get_user(user_id: str, users: UserProfileService = Depends(get_user_profile_service)):
    try:
        return await users.get_profile(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{user_id}", response_model=UserProfile, response_model_by_alias=True)
async def update_user(
    user_id: str,
    changes: UserProfileChanges,
    users: UserProfileService = Depends(get_user_profile_service),
):
    try:
        return await users.update_profile(user_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MutationValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except WriteError as e:
        logger.error(f"Profile update failed for {user_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not save changes. Please try again.")
