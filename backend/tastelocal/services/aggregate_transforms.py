# FILE: backend/tastelocal/services/aggregate_transforms.py
# TASTELOCAL - PURE AGGREGATE TRANSFORMS
# 1. Every command maps the current aggregate to a brand new one; nothing is mutated in place.
# 2. Rejections raise MutationValidationError before the store touches local state.
# 3. Updates and deletes that match no id return the aggregate unchanged.

from typing import Any, Callable, Dict, Iterable, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.exceptions import MutationValidationError
from ..models.business import WEEKDAYS, BusinessAggregate, BusinessHours
from ..models.commands import (
    AddBlogPost,
    AddMediaItem,
    AddMenuItem,
    AddNotification,
    AddOrder,
    DeleteBlogPost,
    DeleteMediaItem,
    DeleteMenuItem,
    MarkNotificationAsRead,
    UpdateBlogPost,
    UpdateBusinessHours,
    UpdateBusinessProfile,
    UpdateMenuItem,
    UpdateOrderStatus,
    UpdateRating,
)

M = TypeVar("M", bound=BaseModel)


# --- HELPER FUNCTIONS ---

def _merge(model: M, changes: BaseModel) -> M:
    """Applies the explicitly set fields of 'changes' and re-validates the result."""
    patch = changes.model_dump(exclude_unset=True)
    if not patch:
        return model
    try:
        return type(model).model_validate({**model.model_dump(exclude_unset=True), **patch})
    except ValidationError as e:
        raise MutationValidationError(f"Invalid changes for {type(model).__name__}: {e}") from e


def _ensure_new_id(collection: Iterable[Any], item_id: str, label: str) -> None:
    if any(existing.id == item_id for existing in collection):
        raise MutationValidationError(f"{label} '{item_id}' already exists")


def _replace(collection: Tuple[M, ...], item_id: str, fn: Callable[[M], M]) -> Tuple[M, ...]:
    return tuple(fn(item) if item.id == item_id else item for item in collection)


def _without(collection: Tuple[M, ...], item_id: str) -> Tuple[M, ...]:
    return tuple(item for item in collection if item.id != item_id)


def validate_hours(hours: Tuple[BusinessHours, ...]) -> None:
    """A weekly table holds exactly seven entries, one per day Monday–Sunday."""
    if len(hours) != len(WEEKDAYS):
        raise MutationValidationError(f"Business hours need exactly {len(WEEKDAYS)} entries, got {len(hours)}")
    days = [entry.day for entry in hours]
    duplicated = sorted({day for day in days if days.count(day) > 1})
    if duplicated:
        raise MutationValidationError(f"Duplicated days in business hours: {', '.join(duplicated)}")
    missing = [day for day in WEEKDAYS if day not in days]
    if missing:
        raise MutationValidationError(f"Missing days in business hours: {', '.join(missing)}")


# --- HANDLERS ---

def _add_menu_item(business: BusinessAggregate, command: AddMenuItem) -> BusinessAggregate:
    _ensure_new_id(business.menu, command.item.id, "Menu item")
    return business.model_copy(update={"menu": business.menu + (command.item,)})


def _update_menu_item(business: BusinessAggregate, command: UpdateMenuItem) -> BusinessAggregate:
    menu = _replace(business.menu, command.item_id, lambda item: _merge(item, command.changes))
    return business.model_copy(update={"menu": menu})


def _delete_menu_item(business: BusinessAggregate, command: DeleteMenuItem) -> BusinessAggregate:
    return business.model_copy(update={"menu": _without(business.menu, command.item_id)})


def _add_order(business: BusinessAggregate, command: AddOrder) -> BusinessAggregate:
    _ensure_new_id(business.orders, command.order.id, "Order")
    # Prepend and count in one transform so the two can never drift apart
    return business.model_copy(update={
        "orders": (command.order,) + business.orders,
        "total_orders": business.total_orders + 1,
    })


def _update_order_status(business: BusinessAggregate, command: UpdateOrderStatus) -> BusinessAggregate:
    # Any status may follow any other; presenting valid transitions is the dashboard's job
    orders = _replace(business.orders, command.order_id, lambda order: order.model_copy(update={"status": command.status}))
    return business.model_copy(update={"orders": orders})


def _update_business_hours(business: BusinessAggregate, command: UpdateBusinessHours) -> BusinessAggregate:
    validate_hours(command.hours)
    return business.model_copy(update={"hours": tuple(command.hours)})


def _add_notification(business: BusinessAggregate, command: AddNotification) -> BusinessAggregate:
    _ensure_new_id(business.notifications, command.notification.id, "Notification")
    return business.model_copy(update={"notifications": (command.notification,) + business.notifications})


def _mark_notification_as_read(business: BusinessAggregate, command: MarkNotificationAsRead) -> BusinessAggregate:
    notifications = _replace(
        business.notifications,
        command.notification_id,
        lambda notification: notification.model_copy(update={"read": True}),
    )
    return business.model_copy(update={"notifications": notifications})


def _add_media_item(business: BusinessAggregate, command: AddMediaItem) -> BusinessAggregate:
    _ensure_new_id(business.media, command.item.id, "Media item")
    return business.model_copy(update={"media": (command.item,) + business.media})


def _delete_media_item(business: BusinessAggregate, command: DeleteMediaItem) -> BusinessAggregate:
    return business.model_copy(update={"media": _without(business.media, command.item_id)})


def _add_blog_post(business: BusinessAggregate, command: AddBlogPost) -> BusinessAggregate:
    _ensure_new_id(business.blog, command.post.id, "Blog post")
    post = command.post.model_copy(update={"updated_at": command.post.created_at})
    return business.model_copy(update={"blog": (post,) + business.blog})


def _update_blog_post(business: BusinessAggregate, command: UpdateBlogPost) -> BusinessAggregate:
    def edit(post):
        if command.updated_at < post.created_at:
            raise MutationValidationError(f"Blog post '{post.id}' cannot be updated before it was created")
        return _merge(post, command.changes).model_copy(update={"updated_at": command.updated_at})

    return business.model_copy(update={"blog": _replace(business.blog, command.post_id, edit)})


def _delete_blog_post(business: BusinessAggregate, command: DeleteBlogPost) -> BusinessAggregate:
    return business.model_copy(update={"blog": _without(business.blog, command.post_id)})


def _update_business_profile(business: BusinessAggregate, command: UpdateBusinessProfile) -> BusinessAggregate:
    return _merge(business, command.changes)


def _update_rating(business: BusinessAggregate, command: UpdateRating) -> BusinessAggregate:
    return business.model_copy(update={"rating": command.rating})


COMMAND_HANDLERS: Dict[Type[BaseModel], Callable[[BusinessAggregate, Any], BusinessAggregate]] = {
    AddMenuItem: _add_menu_item,
    UpdateMenuItem: _update_menu_item,
    DeleteMenuItem: _delete_menu_item,
    AddOrder: _add_order,
    UpdateOrderStatus: _update_order_status,
    UpdateBusinessHours: _update_business_hours,
    AddNotification: _add_notification,
    MarkNotificationAsRead: _mark_notification_as_read,
    AddMediaItem: _add_media_item,
    DeleteMediaItem: _delete_media_item,
    AddBlogPost: _add_blog_post,
    UpdateBlogPost: _update_blog_post,
    DeleteBlogPost: _delete_blog_post,
    UpdateBusinessProfile: _update_business_profile,
    UpdateRating: _update_rating,
}


def apply_command(business: BusinessAggregate, command: BaseModel) -> BusinessAggregate:
    handler = COMMAND_HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"No transform registered for {type(command).__name__}")
    return handler(business, command)


def changed_fields(before: BusinessAggregate, after: BusinessAggregate) -> Dict[str, Any]:
    """
    Top-level document fields that differ between two snapshots, in stored (camelCase) form.
    Optional fields never set on an item stay ABSENT so the sanitizer leaves them out.
    """
    old_doc = before.to_document()
    new_doc = after.to_document()
    write = after.to_write()
    return {key: write[key] for key, value in new_doc.items() if old_doc.get(key) != value}
