import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import database_error
from db.database import (
    get_async_session,
    ItemType as ItemTypeModel,
    StockUnit as StockUnitModel,
    Supplier as SupplierModel,
)
from schemas.catalogs import CatalogEntryRead

logger = logging.getLogger(__name__)

router = APIRouter()


async def _list_catalog(db: AsyncSession, model) -> List[CatalogEntryRead]:
    try:
        res = await db.execute(select(model).order_by(func.lower(model.name).asc()))
    except SQLAlchemyError as e:
        logger.exception("listing %s failed", model.__tablename__)
        raise database_error(e)
    return [CatalogEntryRead(id=m.id, name=m.name) for m in res.scalars().all()]


@router.get("/item-types", response_model=List[CatalogEntryRead])
async def list_item_types(db: AsyncSession = Depends(get_async_session)):
    return await _list_catalog(db, ItemTypeModel)


@router.get("/stock-units", response_model=List[CatalogEntryRead])
async def list_stock_units(db: AsyncSession = Depends(get_async_session)):
    return await _list_catalog(db, StockUnitModel)


@router.get("/suppliers", response_model=List[CatalogEntryRead])
async def list_suppliers(db: AsyncSession = Depends(get_async_session)):
    return await _list_catalog(db, SupplierModel)
