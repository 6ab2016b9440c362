from unittest.mock import AsyncMock, MagicMock

import pytest

from tastelocal.core.exceptions import NotFoundError
from tastelocal.core.lifespan import create_mongo_indexes
from tastelocal.core.store_registry import StoreRegistry
from tastelocal.services.business_store import SyncState

from tests.fixtures.factories import make_business


async def test_one_store_per_business(documents):
    documents.seed("businesses", make_business().to_document())
    registry = StoreRegistry(documents)

    first = await registry.get_store("business_1")
    second = await registry.get_store("business_1")

    assert first is second
    assert first.state is SyncState.SYNCED
    assert first.business.name == "Kota King"
    await registry.close_all()


async def test_release_closes_the_store(documents):
    documents.seed("businesses", make_business().to_document())
    registry = StoreRegistry(documents)
    store = await registry.get_store("business_1")

    await registry.release("business_1")

    assert store.state is SyncState.UNINITIALIZED
    assert "business_1" not in registry.stores
    assert (await registry.get_store("business_1")) is not store
    await registry.release("unknown")
    await registry.close_all()


async def test_close_all_empties_the_registry(documents):
    documents.seed("businesses", make_business().to_document())
    documents.seed("businesses", make_business(id="business_2").to_document())
    registry = StoreRegistry(documents)
    stores = [await registry.get_store("business_1"), await registry.get_store("business_2")]

    await registry.close_all()

    assert registry.stores == {}
    assert all(store.business is None for store in stores)


async def test_indexes_cover_owner_lookup_and_unique_email():
    businesses, users = MagicMock(), MagicMock()
    businesses.create_index = AsyncMock()
    users.create_index = AsyncMock()
    db = {"businesses": businesses, "users": users}

    await create_mongo_indexes(db)

    businesses.create_index.assert_awaited_once_with([("ownerId", 1)])
    users.create_index.assert_awaited_once_with([("email", 1)], unique=True)


async def test_missing_businesses_are_not_kept(documents):
    registry = StoreRegistry(documents)

    for n in range(50):
        store = await registry.get_store(f"nope_{n}")
        assert store.business is None

    assert registry.stores == {}
    assert documents.live_subscriptions() == 0


async def test_owner_lookup_shares_the_business_store(documents):
    documents.seed("businesses", make_business().to_document())
    registry = StoreRegistry(documents)

    by_owner = await registry.get_store_for_owner("user_1")
    assert by_owner.business_id == "business_1"
    assert await registry.get_store("business_1") is by_owner
    assert await registry.get_store_for_owner("user_1") is by_owner
    await registry.close_all()


async def test_owner_without_business_is_not_found(documents):
    registry = StoreRegistry(documents)
    with pytest.raises(NotFoundError):
        await registry.get_store_for_owner("nobody")
    assert registry.stores == {}


async def test_release_if_idle_keeps_watched_stores(documents):
    documents.seed("businesses", make_business().to_document())
    registry = StoreRegistry(documents)
    store = await registry.get_store("business_1")

    stream = store.snapshots()
    await stream.__anext__()
    await registry.release_if_idle("business_1")
    assert registry.stores == {"business_1": store}

    await stream.aclose()
    await registry.release_if_idle("business_1")
    assert registry.stores == {}
    assert documents.live_subscriptions() == 0
