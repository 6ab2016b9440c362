# FILE: backend/tastelocal/models/user.py
# TASTELOCAL - USER PROFILE
# 1. 'email', 'joined_date' and 'role' are fixed at registration.
# 2. 'business_id' is present exactly when the role is business_owner.
# 3. 'email_verified' only changes through the identity provider's verification event.

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from .common import DocumentModel, UserRole, utcnow


class UserProfile(DocumentModel):
    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    joined_date: datetime = Field(default_factory=utcnow)
    role: UserRole = UserRole.CUSTOMER
    business_id: Optional[str] = None
    email_verified: bool = False

    @model_validator(mode="after")
    def check_business_binding(self) -> "UserProfile":
        if (self.role == UserRole.BUSINESS_OWNER) != (self.business_id is not None):
            raise ValueError("business_id must be set if and only if role is business_owner")
        return self


# Model for updating user details. Unset fields are left alone remotely.
class UserProfileChanges(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None


# Model for registration requests
class UserRegistration(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: str
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: UserRole = UserRole.CUSTOMER
    phone: Optional[str] = None
