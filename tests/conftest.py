# tests/conftest.py
import pytest
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from voltmatch.core.errors import StoreError
from voltmatch.core.identity import Identity
from voltmatch.deps import get_store
from voltmatch.main import app
from voltmatch.repos.inmemory import InMemoryRecordStore
from voltmatch.services.matching import MatchingEngine
from voltmatch.services.pools import PoolViews


class FlakyStore(InMemoryRecordStore):
    """
    In-memory store with injectable outages.

    patch() fails for the collections in fail_patch_on. put() on a collection
    listed in put_budget succeeds that many more times, then fails.
    """

    def __init__(self):
        super().__init__()
        self.fail_patch_on = set()
        self.put_budget = {}

    async def put(self, collection, record_id, record):
        if collection in self.put_budget:
            if self.put_budget[collection] <= 0:
                raise StoreError(f"simulated outage on {collection}")
            self.put_budget[collection] -= 1
        await super().put(collection, record_id, record)

    async def patch(self, collection, record_id, fields):
        if collection in self.fail_patch_on:
            raise StoreError(f"simulated outage on {collection}")
        await super().patch(collection, record_id, fields)


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"

@pytest.fixture
def store():
    return FlakyStore()

@pytest.fixture
def make_engine(store):
    def _make(user_id: str, name: str = "", radius_km=None) -> MatchingEngine:
        return MatchingEngine(store, PoolViews(store), identity=Identity(user_id, name), radius_km=radius_km)
    return _make

@pytest.fixture
def donor(make_engine):
    return make_engine("u-donor", "Dana")

@pytest.fixture
def requester(make_engine):
    return make_engine("u-req", "Riley")

@pytest.fixture
async def test_client(store):
    app.dependency_overrides[get_store] = lambda: store
    async with LifespanManager(app):
        transport = ASGITransport(app=app, raise_app_exceptions=True)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()
