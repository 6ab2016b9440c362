# FILE: backend/tastelocal/services/user_profile_service.py
# TASTELOCAL - USER PROFILE SERVICE
# 1. Registration creates the profile and, for business owners, the business aggregate
#    with empty collections and the default weekly hours.
# 2. The profile is inserted first: a duplicate registration fails before any business
#    exists, and a failed business insert removes the profile again.
# 3. Profile edits send only the fields the caller set; immutable fields cannot be sent.

from typing import Optional

import structlog
from pydantic import ValidationError

from ..core.config import settings
from ..core.exceptions import MutationValidationError, NotFoundError, WriteError
from ..models.business import DEFAULT_HOURS, BusinessAggregate
from ..models.common import UserRole, new_id, utcnow
from ..models.user import UserProfile, UserProfileChanges, UserRegistration
from .sanitizer import clean

logger = structlog.get_logger(__name__)


class UserProfileService:
    def __init__(self, documents, users_collection: Optional[str] = None, businesses_collection: Optional[str] = None):
        self.documents = documents
        self.users_collection = users_collection or settings.USERS_COLLECTION
        self.businesses_collection = businesses_collection or settings.BUSINESSES_COLLECTION

    async def register(self, registration: UserRegistration) -> UserProfile:
        joined = utcnow()
        is_owner = registration.role == UserRole.BUSINESS_OWNER
        business_id = new_id("business") if is_owner else None

        profile = UserProfile(
            id=registration.user_id,
            name=registration.name,
            email=registration.email,
            phone=registration.phone,
            joined_date=joined,
            role=registration.role,
            business_id=business_id,
        )
        await self.documents.create(self.users_collection, profile.id, profile.to_write())

        if is_owner:
            business = BusinessAggregate(
                id=business_id,
                owner_id=registration.user_id,
                name=registration.name,
                phone=registration.phone or "",
                hours=DEFAULT_HOURS,
                created_at=joined,
            )
            try:
                await self.documents.create(self.businesses_collection, business_id, business.to_write())
            except WriteError as e:
                logger.error("user.business_create_failed", user_id=profile.id, business_id=business_id, error=str(e))
                await self.documents.delete(self.users_collection, profile.id)
                raise
            logger.info("user.business_created", user_id=profile.id, business_id=business_id)

        logger.info("user.registered", user_id=profile.id, role=profile.role.value)
        return profile

    async def get_profile(self, user_id: str) -> UserProfile:
        doc = await self.documents.get(self.users_collection, user_id)
        if doc is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return UserProfile.model_validate(doc)

    async def update_profile(self, user_id: str, changes: UserProfileChanges) -> UserProfile:
        current = await self.get_profile(user_id)
        patch = changes.model_dump(exclude_unset=True)
        if not patch:
            return current

        # The stored document must still be a valid profile after the write
        try:
            UserProfile.model_validate({**current.model_dump(), **patch})
        except ValidationError as e:
            raise MutationValidationError(f"Invalid profile changes: {e}") from e

        updates = clean(changes.model_dump(by_alias=True, exclude_unset=True))
        doc = await self.documents.update(self.users_collection, user_id, updates)
        logger.info("user.profile_updated", user_id=user_id, fields=sorted(updates))
        return UserProfile.model_validate(doc)

    async def update_avatar(self, user_id: str, avatar_url: str) -> UserProfile:
        return await self.update_profile(user_id, UserProfileChanges(avatar=avatar_url))

    async def update_phone(self, user_id: str, phone: str) -> UserProfile:
        return await self.update_profile(user_id, UserProfileChanges(phone=phone))

    async def update_location(self, user_id: str, location: str) -> UserProfile:
        return await self.update_profile(user_id, UserProfileChanges(location=location))

    async def mark_email_verified(self, user_id: str, verified: bool = True) -> UserProfile:
        """Applies the identity provider's verification event."""
        await self.get_profile(user_id)
        doc = await self.documents.update(self.users_collection, user_id, {"emailVerified": verified})
        return UserProfile.model_validate(doc)
