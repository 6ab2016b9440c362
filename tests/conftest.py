import pytest
import pytest_asyncio

from tastelocal.models.business import BusinessAggregate
from tastelocal.services.business_store import BusinessStore

from tests.fixtures.document_store import InMemoryDocumentStore
from tests.fixtures.factories import make_business


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def business() -> BusinessAggregate:
    return make_business()


@pytest_asyncio.fixture
async def store(documents, business):
    documents.seed("businesses", business.to_document())
    business_store = BusinessStore(documents, collection="businesses")
    await business_store.bind(business.id)
    yield business_store
    await business_store.close()
