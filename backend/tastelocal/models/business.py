# FILE: backend/tastelocal/models/business.py
# TASTELOCAL - BUSINESS AGGREGATE
# 1. One document per business owner; every collection lives inside it.
# 2. Collections are tuples in insertion order (orders, notifications, media and blog newest first).
# 3. 'cuisine', 'image' and 'price_range' feed the consumer discovery cards.

from datetime import datetime
from typing import Optional, Tuple

from pydantic import Field

from .common import DocumentModel, MediaType, NotificationType, OrderStatus

WEEKDAYS: Tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


class MenuItem(DocumentModel):
    id: str
    name: str
    description: str = ""
    price: str  # decimal kept as string, e.g. "55" or "42.50"
    category: str = ""
    available: bool = True
    image: Optional[str] = None


class Order(DocumentModel):
    id: str
    customer_name: str
    customer_phone: str
    items: Tuple[str, ...] = ()
    total_price: str
    status: OrderStatus = OrderStatus.PENDING
    timestamp: datetime
    notes: Optional[str] = None


class BusinessHours(DocumentModel):
    day: str
    open: str  # "HH:MM"
    close: str
    closed: bool = False


class Notification(DocumentModel):
    id: str
    type: NotificationType
    title: str
    message: str
    timestamp: datetime
    read: bool = False


class MediaItem(DocumentModel):
    id: str
    type: MediaType
    title: str
    description: str = ""
    url: str
    thumbnail: Optional[str] = None
    uploaded_at: datetime


class BlogPost(DocumentModel):
    id: str
    title: str
    content: str
    excerpt: str = ""
    image: Optional[str] = None
    author: str
    created_at: datetime
    updated_at: datetime
    published: bool = False


DEFAULT_HOURS: Tuple[BusinessHours, ...] = (
    BusinessHours(day="Monday", open="10:00", close="22:00"),
    BusinessHours(day="Tuesday", open="10:00", close="22:00"),
    BusinessHours(day="Wednesday", open="10:00", close="22:00"),
    BusinessHours(day="Thursday", open="10:00", close="22:00"),
    BusinessHours(day="Friday", open="10:00", close="23:00"),
    BusinessHours(day="Saturday", open="10:00", close="23:00"),
    BusinessHours(day="Sunday", open="12:00", close="20:00"),
)


class BusinessAggregate(DocumentModel):
    id: str
    owner_id: Optional[str] = None
    name: str = ""
    phone: str = ""
    location: str = ""
    description: str = ""
    cuisine: Optional[str] = None
    image: Optional[str] = None
    price_range: Optional[str] = None
    rating: float = Field(default=0.0, ge=0, le=5)
    total_orders: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None

    menu: Tuple[MenuItem, ...] = ()
    orders: Tuple[Order, ...] = ()
    hours: Tuple[BusinessHours, ...] = ()
    notifications: Tuple[Notification, ...] = ()
    media: Tuple[MediaItem, ...] = ()
    blog: Tuple[BlogPost, ...] = ()


class BusinessSummary(DocumentModel):
    """Read-only projection used by the consumer discovery listing."""
    id: str
    name: str
    phone: str = ""
    location: str = ""
    description: str = ""
    cuisine: Optional[str] = None
    image: Optional[str] = None
    price_range: Optional[str] = None
    rating: float = 0.0
