"""
Shared fixtures: an in-memory SQLite database behind the real app, a fresh
notifier per test, and an httpx client talking to the app in-process.
"""
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.notifier import ChangeNotifier, ConnectionClosed
from db.database import Base, get_async_session, ItemType, StockUnit, Supplier
from main import app


class RecordingConnection:
    """Push connection stand-in that keeps every chunk written to it."""

    def __init__(self):
        self.chunks = []
        self.closed = False

    def write(self, chunk):
        if self.closed:
            raise ConnectionClosed("closed")
        self.chunks.append(chunk)

    def close(self):
        self.closed = True


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def notifier():
    n = ChangeNotifier(keepalive_interval=60)
    yield n
    await n.aclose()


@pytest.fixture
async def client(session_maker, notifier):
    async def _session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    app.state.notifier = notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def catalogs(session_maker):
    async with session_maker() as session:
        cable = ItemType(name="Cable")
        sensor = ItemType(name="Sensor")
        pcs = StockUnit(name="pcs")
        acme = Supplier(name="Acme Components")
        globex = Supplier(name="Globex Industrial")
        session.add_all([cable, sensor, pcs, acme, globex])
        await session.commit()
        return {
            "cable": cable.id,
            "sensor": sensor.id,
            "pcs": pcs.id,
            "acme": acme.id,
            "globex": globex.id,
        }


@pytest.fixture
def new_item(client, catalogs):
    """Create an item through the API and return its JSON body."""

    async def _create(**overrides):
        body = {
            "item_type_id": catalogs["cable"],
            "item_variant": "USB-C 1m",
            "stock": 50,
            "stock_unit_id": catalogs["pcs"],
            "supplier_id": catalogs["acme"],
            "reorder_point": 10,
        }
        body.update(overrides)
        res = await client.post("/api/inventory", json=body)
        assert res.status_code == 201, res.text
        return res.json()

    return _create
