import asyncio

import pytest

from tastelocal.core.exceptions import MutationValidationError, NotFoundError, WriteError
from tastelocal.models.business import DEFAULT_HOURS, BusinessAggregate
from tastelocal.models.commands import BlogPostChanges, MenuItemChanges
from tastelocal.models.common import OrderStatus
from tastelocal.services.business_store import BusinessStore, SyncState

from tests.fixtures.factories import (
    BASE_TIME,
    later,
    make_blog_post,
    make_business,
    make_menu_item,
    make_order,
)


def _persisted(documents, business_id="business_1") -> BusinessAggregate:
    return BusinessAggregate.model_validate(documents.collections["businesses"][business_id])


class TestLifecycle:
    async def test_unbound_store_rejects_mutations(self, documents):
        store = BusinessStore(documents, collection="businesses")
        assert store.state is SyncState.UNINITIALIZED
        with pytest.raises(NotFoundError):
            await store.add_menu_item(make_menu_item())

    async def test_bind_loads_the_first_snapshot(self, store, business):
        assert store.state is SyncState.SYNCED
        assert store.business == business
        assert store.business_id == "business_1"

    async def test_missing_document_is_synced_but_empty(self, documents):
        store = BusinessStore(documents, collection="businesses")
        await store.bind("does_not_exist")

        assert store.state is SyncState.SYNCED
        assert store.business is None
        with pytest.raises(NotFoundError, match="No business found"):
            await store.add_order(make_order())

    async def test_bind_owner_resolves_through_owner_id(self, documents, business):
        documents.seed("businesses", business.to_document())
        store = BusinessStore(documents, collection="businesses")

        loaded = await store.bind_owner("user_1")
        assert loaded.id == "business_1"

        with pytest.raises(NotFoundError):
            await store.bind_owner("nobody")
        await store.close()

    async def test_close_drops_subscription_and_state(self, store, documents):
        await store.close()

        assert store.state is SyncState.UNINITIALIZED
        assert store.business is None
        assert documents.subscribers[("businesses", "business_1")] == []


class TestMutators:
    async def test_only_changed_fields_are_written(self, store, documents):
        await store.add_menu_item(make_menu_item("item_2", name="Bunny Chow"))

        collection, doc_id, changes = documents.writes[-1]
        assert (collection, doc_id) == ("businesses", "business_1")
        assert set(changes) == {"menu"}

    async def test_noop_command_skips_the_write(self, store, documents):
        revision = store.revision
        await store.delete_menu_item("nope")

        assert documents.writes == []
        assert store.revision == revision

    async def test_rejected_hours_never_touch_state(self, store, documents, business):
        with pytest.raises(MutationValidationError):
            await store.update_business_hours(DEFAULT_HOURS[:6])

        assert store.business == business
        assert documents.writes == []

    async def test_orders_are_counted_once_each(self, store, documents):
        for n in range(10):
            await store.add_order(make_order(f"order_{n}"))

        assert store.business.total_orders == 10
        assert [order.id for order in store.business.orders][:2] == ["order_9", "order_8"]
        assert _persisted(documents).total_orders == 10

    async def test_held_concurrent_orders_all_land(self, store, documents):
        documents.hold_updates = asyncio.Event()
        tasks = [asyncio.create_task(store.add_order(make_order(f"order_{n}"))) for n in range(5)]
        await asyncio.sleep(0)

        assert store.business.total_orders == 5
        documents.hold_updates.set()
        await asyncio.gather(*tasks)

        assert store.business.total_orders == 5
        assert _persisted(documents).total_orders == 5
        assert store.business == _persisted(documents)

    async def test_order_status_update(self, store):
        await store.add_order(make_order("order_1"))
        await store.update_order_status("order_1", OrderStatus.PREPARING)
        assert store.business.orders[0].status is OrderStatus.PREPARING


class TestRollback:
    async def test_failed_write_restores_previous_snapshot(self, documents):
        documents.seed("businesses", make_business(total_orders=5, orders=(make_order("order_0"),)).to_document())
        store = BusinessStore(documents, collection="businesses")
        await store.bind("business_1")
        documents.fail_updates = True

        with pytest.raises(WriteError) as excinfo:
            await store.add_order(make_order("order_1"))

        assert isinstance(excinfo.value.cause, ConnectionError)
        assert store.business.total_orders == 5
        assert [order.id for order in store.business.orders] == ["order_0"]
        assert _persisted(documents).total_orders == 5
        await store.close()

    async def test_failed_write_falls_back_to_deferred_remote_snapshot(self, store, documents):
        documents.hold_updates = asyncio.Event()
        documents.fail_updates = True
        task = asyncio.create_task(store.add_order(make_order("order_1")))
        await asyncio.sleep(0)

        documents.push_remote("businesses", "business_1", {"name": "Kota Queen"})
        assert store.business.name == "Kota King"

        documents.hold_updates.set()
        with pytest.raises(WriteError):
            await task

        assert store.business.name == "Kota Queen"
        assert store.business.orders == ()
        assert store.business.total_orders == 0


class TestRemoteSnapshots:
    async def test_remote_change_applies_when_idle(self, store, documents):
        revision = store.revision
        documents.push_remote("businesses", "business_1", {"name": "Kota Queen"})

        assert store.business.name == "Kota Queen"
        assert store.revision == revision + 1

    async def test_remote_change_waits_for_in_flight_write(self, store, documents):
        documents.hold_updates = asyncio.Event()
        task = asyncio.create_task(store.add_menu_item(make_menu_item("item_2")))
        await asyncio.sleep(0)

        documents.push_remote("businesses", "business_1", {"name": "Kota Queen"})
        assert store.business.name == "Kota King"
        assert [item.id for item in store.business.menu] == ["item_2"]

        documents.hold_updates.set()
        await task

        assert store.business.name == "Kota Queen"
        assert [item.id for item in store.business.menu] == ["item_2"]

    async def test_invalid_remote_document_is_ignored(self, store, documents, business):
        documents.push_remote("businesses", "business_1", {"rating": 9})
        assert store.business == business

    async def test_snapshot_stream_follows_swaps_until_close(self, store):
        received = []

        async def consume():
            async for snapshot in store.snapshots():
                received.append(snapshot)

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        await store.add_menu_item(make_menu_item("item_2"))
        await store.close()
        await asyncio.wait_for(consumer, timeout=1)

        assert len(received) == 2
        assert received[0].menu == ()
        assert [item.id for item in received[1].menu] == ["item_2"]


class TestEndToEnd:
    async def test_menu_round_trip(self, store, documents):
        documents.hold_updates = asyncio.Event()
        task = asyncio.create_task(store.add_menu_item(make_menu_item("item_1")))
        await asyncio.sleep(0)

        assert [item.id for item in store.business.menu] == ["item_1"]
        assert documents.collections["businesses"]["business_1"]["menu"] == []

        documents.hold_updates.set()
        await task
        assert _persisted(documents).menu == store.business.menu

        documents.hold_updates = None
        await store.update_menu_item("item_1", MenuItemChanges(price="60", available=False))
        persisted_item = _persisted(documents).menu[0]
        assert persisted_item.price == "60"
        assert persisted_item.available is False

        await store.delete_menu_item("item_1")
        assert store.business.menu == ()
        assert _persisted(documents).menu == ()

    async def test_blog_round_trip(self, store, documents):
        await store.add_blog_post(make_blog_post("blog_1", created_at=BASE_TIME))
        await store.add_blog_post(make_blog_post("blog_2", created_at=later(1)))

        blog = _persisted(documents).blog
        assert [post.id for post in blog] == ["blog_2", "blog_1"]
        assert all(post.updated_at == post.created_at for post in blog)

        await store.update_blog_post("blog_2", BlogPostChanges(title="Second story"), updated_at=later(10))
        post = _persisted(documents).blog[0]
        assert post.title == "Second story"
        assert post.created_at == later(1)
        assert post.updated_at > post.created_at

    async def test_unread_notifications_follow_the_snapshot(self, store):
        assert store.get_unread_notifications() == []


class TestWritePayloads:
    async def test_optional_fields_never_set_are_left_out(self, store, documents):
        await store.add_menu_item(make_menu_item("item_9"))

        written = documents.writes[-1][2]["menu"][0]
        assert "image" not in written
        assert written["price"] == "55"
        assert "image" not in documents.collections["businesses"]["business_1"]["menu"][0]

    async def test_explicit_null_is_written(self, store, documents):
        await store.add_menu_item(make_menu_item("item_9", image=None))
        assert documents.writes[-1][2]["menu"][0]["image"] is None

    async def test_item_edit_keeps_unset_fields_out(self, store, documents):
        await store.add_menu_item(make_menu_item("item_9"))
        await store.update_menu_item("item_9", MenuItemChanges(price="60"))

        written = documents.writes[-1][2]["menu"][0]
        assert written["price"] == "60"
        assert "image" not in written

    async def test_order_without_notes_is_written_without_notes(self, store, documents):
        await store.add_order(make_order("order_1"))

        changes = documents.writes[-1][2]
        assert "notes" not in changes["orders"][0]
        assert changes["totalOrders"] == 1


class TestSnapshotBacklog:
    async def test_slow_consumer_keeps_only_the_newest_snapshots(self, documents, business):
        documents.seed("businesses", business.to_document())
        store = BusinessStore(documents, collection="businesses", backlog=2)
        await store.bind("business_1")

        stream = store.snapshots()
        assert (await stream.__anext__()).total_orders == 0
        for n in range(4):
            await store.add_order(make_order(f"order_{n}"))
        await store.close()

        remaining = [snapshot async for snapshot in stream]
        assert [snapshot.total_orders for snapshot in remaining] == [4]

    async def test_idle_tracks_consumers_and_in_flight_writes(self, store, documents):
        assert store.idle

        stream = store.snapshots()
        await stream.__anext__()
        assert not store.idle
        await stream.aclose()
        assert store.idle

        documents.hold_updates = asyncio.Event()
        task = asyncio.create_task(store.add_menu_item(make_menu_item("item_2")))
        await asyncio.sleep(0)
        assert not store.idle
        documents.hold_updates.set()
        await task
        assert store.idle
