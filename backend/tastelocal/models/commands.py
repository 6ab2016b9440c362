# FILE: backend/tastelocal/models/commands.py
# TASTELOCAL - BUSINESS UPDATE COMMANDS
# 1. One tagged variant per mutator; 'kind' is the discriminator on the wire.
# 2. '*Changes' models carry only the fields a command may touch. Unset fields
#    stay untouched; an explicit null clears an optional field.

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .business import BlogPost, BusinessHours, MediaItem, MenuItem, Notification, Order
from .common import OrderStatus, utcnow


class CommandModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ChangesModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="forbid")


class MenuItemChanges(ChangesModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    available: Optional[bool] = None
    image: Optional[str] = None


class BlogPostChanges(ChangesModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image: Optional[str] = None
    author: Optional[str] = None
    published: Optional[bool] = None


class BusinessProfileChanges(ChangesModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    cuisine: Optional[str] = None
    image: Optional[str] = None
    price_range: Optional[str] = None


# --- MENU ---
class AddMenuItem(CommandModel):
    kind: Literal["add_menu_item"] = "add_menu_item"
    item: MenuItem


class UpdateMenuItem(CommandModel):
    kind: Literal["update_menu_item"] = "update_menu_item"
    item_id: str
    changes: MenuItemChanges


class DeleteMenuItem(CommandModel):
    kind: Literal["delete_menu_item"] = "delete_menu_item"
    item_id: str


# --- ORDERS ---
class AddOrder(CommandModel):
    kind: Literal["add_order"] = "add_order"
    order: Order


class UpdateOrderStatus(CommandModel):
    kind: Literal["update_order_status"] = "update_order_status"
    order_id: str
    status: OrderStatus


# --- HOURS ---
class UpdateBusinessHours(CommandModel):
    kind: Literal["update_business_hours"] = "update_business_hours"
    hours: Tuple[BusinessHours, ...]


# --- NOTIFICATIONS ---
class AddNotification(CommandModel):
    kind: Literal["add_notification"] = "add_notification"
    notification: Notification


class MarkNotificationAsRead(CommandModel):
    kind: Literal["mark_notification_as_read"] = "mark_notification_as_read"
    notification_id: str


# --- MEDIA ---
class AddMediaItem(CommandModel):
    kind: Literal["add_media_item"] = "add_media_item"
    item: MediaItem


class DeleteMediaItem(CommandModel):
    kind: Literal["delete_media_item"] = "delete_media_item"
    item_id: str


# --- BLOG ---
class AddBlogPost(CommandModel):
    kind: Literal["add_blog_post"] = "add_blog_post"
    post: BlogPost


class UpdateBlogPost(CommandModel):
    kind: Literal["update_blog_post"] = "update_blog_post"
    post_id: str
    changes: BlogPostChanges
    updated_at: datetime = Field(default_factory=utcnow)


class DeleteBlogPost(CommandModel):
    kind: Literal["delete_blog_post"] = "delete_blog_post"
    post_id: str


# --- PROFILE ---
class UpdateBusinessProfile(CommandModel):
    kind: Literal["update_business_profile"] = "update_business_profile"
    changes: BusinessProfileChanges


class UpdateRating(CommandModel):
    kind: Literal["update_rating"] = "update_rating"
    rating: float = Field(ge=0, le=5)


BusinessCommand = Annotated[
    Union[
        AddMenuItem,
        UpdateMenuItem,
        DeleteMenuItem,
        AddOrder,
        UpdateOrderStatus,
        UpdateBusinessHours,
        AddNotification,
        MarkNotificationAsRead,
        AddMediaItem,
        DeleteMediaItem,
        AddBlogPost,
        UpdateBlogPost,
        DeleteBlogPost,
        UpdateBusinessProfile,
        UpdateRating,
    ],
    Field(discriminator="kind"),
]

_command_adapter: TypeAdapter = TypeAdapter(BusinessCommand)


def parse_command(payload: Any) -> BaseModel:
    """Validates a wire payload ({"kind": ..., ...}) into its command variant."""
    return _command_adapter.validate_python(payload)
