# FILE: backend/tastelocal/models/common.py
# TASTELOCAL - SHARED MODEL FOUNDATION
# 1. Documents use camelCase keys ('totalOrders', 'createdAt'); Python code uses snake_case.
# 2. Aggregate models are frozen: every change produces a new instance, so a
#    snapshot handed to an observer can never change underneath it.

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticUndefined

# Marks a value that was never set; the sanitizer drops it before any write
ABSENT = PydanticUndefined


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Collection-unique id; uuid based so a deleted id is never handed out again."""
    return f"{prefix}_{uuid4().hex}"


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_document(self) -> Dict[str, Any]:
        """JSON-safe, camelCase dict as stored in the document store."""
        return self.model_dump(mode="json", by_alias=True)

    def to_write(self) -> Dict[str, Any]:
        """
        Like to_document(), but optional fields that were never set come back as ABSENT
        (at every depth) so the write omits them. An explicit None is kept as null.
        """
        doc = self.to_document()
        for name, field in type(self).model_fields.items():
            key = field.alias or name
            value = getattr(self, name)
            if name not in self.model_fields_set and field.default is None:
                doc[key] = ABSENT
            elif isinstance(value, DocumentModel):
                doc[key] = value.to_write()
            elif isinstance(value, tuple) and any(isinstance(item, DocumentModel) for item in value):
                doc[key] = [item.to_write() if isinstance(item, DocumentModel) else item for item in value]
        return doc


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    ORDER = "order"
    REVIEW = "review"
    MESSAGE = "message"


class MediaType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    BUSINESS_OWNER = "business_owner"
