from collections.abc import AsyncGenerator
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _connect_args() -> dict:
    if settings.database_ssl and settings.database_url.startswith("postgresql+asyncpg"):
        return {"ssl": "require"}
    return {}


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    connect_args=_connect_args(),
)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


# Models register themselves on Base.metadata; re-exported for routers/scripts.
from .item_type import ItemType  # noqa: E402
from .stock_unit import StockUnit  # noqa: E402
from .supplier import Supplier  # noqa: E402
from .inventory.item import InventoryItem  # noqa: E402
