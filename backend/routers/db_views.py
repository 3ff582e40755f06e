"""Raw table dumps, for checking what is actually stored."""
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import database_error
from db.database import (
    get_async_session,
    InventoryItem as InventoryItemModel,
    ItemType as ItemTypeModel,
    StockUnit as StockUnitModel,
    Supplier as SupplierModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _row_dict(m) -> Dict:
    return {c.key: getattr(m, c.key) for c in m.__table__.columns}


async def _dump(db: AsyncSession, model) -> List[Dict]:
    res = await db.execute(select(model).order_by(model.id))
    return [_row_dict(m) for m in res.scalars().all()]


async def _dump_or_500(db: AsyncSession, model) -> List[Dict]:
    try:
        return await _dump(db, model)
    except SQLAlchemyError as e:
        logger.exception("dumping %s failed", model.__tablename__)
        raise database_error(e)


@router.get("/inventory-items", response_model=List[Dict])
async def dump_inventory_items(db: AsyncSession = Depends(get_async_session)):
    return await _dump_or_500(db, InventoryItemModel)


@router.get("/item-types", response_model=List[Dict])
async def dump_item_types(db: AsyncSession = Depends(get_async_session)):
    return await _dump_or_500(db, ItemTypeModel)


@router.get("/stock-units", response_model=List[Dict])
async def dump_stock_units(db: AsyncSession = Depends(get_async_session)):
    return await _dump_or_500(db, StockUnitModel)


@router.get("/suppliers", response_model=List[Dict])
async def dump_suppliers(db: AsyncSession = Depends(get_async_session)):
    return await _dump_or_500(db, SupplierModel)


@router.get("/all", response_model=Dict)
async def dump_all(db: AsyncSession = Depends(get_async_session)):
    try:
        return {
            "inventory_items": await _dump(db, InventoryItemModel),
            "item_types": await _dump(db, ItemTypeModel),
            "stock_units": await _dump(db, StockUnitModel),
            "suppliers": await _dump(db, SupplierModel),
        }
    except SQLAlchemyError as e:
        logger.exception("dump_all failed")
        raise database_error(e)
