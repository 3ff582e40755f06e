import logging

from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import database_error
from core.status import PHASED_OUT
from db.database import get_async_session, InventoryItem as InventoryItemModel
from schemas.inventory import DashboardOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=DashboardOut)
async def get_dashboard(db: AsyncSession = Depends(get_async_session)):
    """
    Aggregate counts for the dashboard cards.

    Phased-out items only count towards `phasedOut`. An item is low on stock
    when it is at or below its reorder point, or below the global threshold
    when it has none.
    """
    item = InventoryItemModel
    active = item.status != PHASED_OUT
    low = or_(
        and_(item.reorder_point.is_not(None), item.stock <= item.reorder_point),
        and_(item.reorder_point.is_(None), item.stock < settings.low_stock_threshold),
    )

    stmt = select(
        func.count(item.id).filter(active).label("total_items"),
        func.count(item.id).filter(and_(active, low)).label("low_stock"),
        func.coalesce(func.sum(item.stock).filter(active), 0).label("total_stock"),
        func.count(item.id).filter(item.status == PHASED_OUT).label("phased_out"),
    )
    try:
        row = (await db.execute(stmt)).one()
    except SQLAlchemyError as e:
        logger.exception("get_dashboard failed")
        raise database_error(e)

    return DashboardOut(
        totalItems=int(row.total_items or 0),
        lowStock=int(row.low_stock or 0),
        totalStock=float(row.total_stock or 0),
        phasedOut=int(row.phased_out or 0),
    )
