import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import database_error
from core.notifier import ChangeNotifier, get_notifier
from core.status import PHASED_OUT, resolve_status
from db.database import (
    get_async_session,
    InventoryItem as InventoryItemModel,
    ItemType as ItemTypeModel,
    StockUnit as StockUnitModel,
    Supplier as SupplierModel,
)
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryStatus,
    ReduceStockRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Columns that may be omitted from an update but never set to null.
_NOT_NULL_FIELDS = ("item_type_id", "item_variant", "stock", "stock_unit_id", "supplier_id")


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _item_query():
    """Items joined with their catalog names, in the shape the UI consumes."""
    return (
        select(
            InventoryItemModel.id,
            ItemTypeModel.name.label("item_type"),
            InventoryItemModel.item_type_id,
            InventoryItemModel.item_variant,
            InventoryItemModel.stock,
            StockUnitModel.name.label("stock_unit"),
            InventoryItemModel.stock_unit_id,
            SupplierModel.name.label("supplier"),
            InventoryItemModel.supplier_id,
            InventoryItemModel.reorder_point,
            InventoryItemModel.status,
            InventoryItemModel.updated_at,
        )
        .select_from(InventoryItemModel)
        .outerjoin(InventoryItemModel.item_type)
        .outerjoin(InventoryItemModel.stock_unit)
        .outerjoin(InventoryItemModel.supplier)
    )


def _serialize(row) -> InventoryItemOut:
    data = dict(row)
    data["stock"] = float(data["stock"] or 0)
    return InventoryItemOut(**data)


async def _fetch_item(db: AsyncSession, item_id: int) -> Optional[InventoryItemOut]:
    res = await db.execute(_item_query().where(InventoryItemModel.id == item_id))
    row = res.mappings().first()
    return _serialize(row) if row else None


async def _lock_item(db: AsyncSession, item_id: int) -> InventoryItemModel:
    # Row lock so status/stock arithmetic sees the committed row (no-op on SQLite).
    res = await db.execute(
        select(InventoryItemModel).where(InventoryItemModel.id == item_id).with_for_update()
    )
    model = res.scalar_one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return model


@router.get("", response_model=List[InventoryItemOut])
async def list_inventory_items(
    status_filter: Optional[InventoryStatus] = Query(None, alias="status"),
    supplier_id: Optional[int] = None,
    item_type_id: Optional[int] = None,
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    """
    List all items, joined with type/unit/supplier names, ordered by id.

    Filters are optional; `q` matches the variant or the item type name.
    """
    stmt = _item_query()
    if status_filter:
        stmt = stmt.where(InventoryItemModel.status == status_filter)
    if supplier_id is not None:
        stmt = stmt.where(InventoryItemModel.supplier_id == supplier_id)
    if item_type_id is not None:
        stmt = stmt.where(InventoryItemModel.item_type_id == item_type_id)
    if q and q.strip():
        qq = f"%{q.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(InventoryItemModel.item_variant).like(qq),
                func.lower(ItemTypeModel.name).like(qq),
            )
        )

    try:
        res = await db.execute(stmt.order_by(InventoryItemModel.id))
        return [_serialize(row) for row in res.mappings().all()]
    except SQLAlchemyError as e:
        logger.exception("list_inventory_items failed")
        raise database_error(e)


@router.get("/{item_id}", response_model=InventoryItemOut)
async def get_inventory_item(item_id: int, db: AsyncSession = Depends(get_async_session)):
    try:
        item = await _fetch_item(db, item_id)
    except SQLAlchemyError as e:
        logger.exception("get_inventory_item failed")
        raise database_error(e)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


@router.post("", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    db: AsyncSession = Depends(get_async_session),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        model = InventoryItemModel(
            item_type_id=payload.item_type_id,
            item_variant=payload.item_variant,
            stock=payload.stock,
            stock_unit_id=payload.stock_unit_id,
            supplier_id=payload.supplier_id,
            reorder_point=payload.reorder_point,
            status=resolve_status(
                current_status=None,
                stock=payload.stock,
                reorder_point=payload.reorder_point,
                quantities_changed=True,
                status_override=payload.status_override,
            ),
            updated_at=_now(),
        )
        db.add(model)
        await db.commit()
        notifier.broadcast()
        return await _fetch_item(db, model.id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("create_inventory_item failed")
        raise database_error(e)


@router.put("/{item_id}/reduce-stock", response_model=InventoryItemOut)
async def reduce_stock(
    item_id: int,
    payload: ReduceStockRequest,
    db: AsyncSession = Depends(get_async_session),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    """Take `reduceAmount` out of stock; stock never goes below 0."""
    try:
        model = await _lock_item(db, item_id)
        model.stock = max(0.0, float(model.stock or 0) - payload.reduce_amount)
        model.status = resolve_status(
            current_status=model.status,
            stock=model.stock,
            reorder_point=model.reorder_point,
            quantities_changed=True,
        )
        model.updated_at = _now()
        await db.commit()
        notifier.broadcast()
        return await _fetch_item(db, item_id)
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("reduce_stock failed")
        raise database_error(e)


@router.put("/{item_id}/phase-out", response_model=InventoryItemOut)
async def phase_out_item(
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        model = await _lock_item(db, item_id)
        model.status = PHASED_OUT
        model.updated_at = _now()
        await db.commit()
        notifier.broadcast()
        return await _fetch_item(db, item_id)
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("phase_out_item failed")
        raise database_error(e)


@router.put("/{item_id}", response_model=InventoryItemOut)
async def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    db: AsyncSession = Depends(get_async_session),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    """
    Partial update. Status handling:

    - `status_override` (Phased Out / Restocking) is stored as given;
    - otherwise a stock or reorder_point change recomputes the status;
    - otherwise a plain `status` is stored as a manual transition.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    for field in _NOT_NULL_FIELDS:
        if field in data and data[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")

    status_override = data.pop("status_override", None)
    requested_status = data.pop("status", None)

    try:
        model = await _lock_item(db, item_id)
        # Edit forms resend unchanged values; only a real difference recomputes.
        quantities_changed = ("stock" in data and data["stock"] != model.stock) or (
            "reorder_point" in data and data["reorder_point"] != model.reorder_point
        )
        for field, value in data.items():
            setattr(model, field, value)

        new_status = resolve_status(
            current_status=model.status,
            stock=model.stock,
            reorder_point=model.reorder_point,
            quantities_changed=quantities_changed,
            status_override=status_override,
            requested_status=requested_status,
        )
        if new_status is not None:
            model.status = new_status
        model.updated_at = _now()

        await db.commit()
        notifier.broadcast()
        return await _fetch_item(db, item_id)
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("update_inventory_item failed")
        raise database_error(e)


@router.delete("/{item_id}", response_model=Dict)
async def delete_inventory_item(
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        model = await _lock_item(db, item_id)
        await db.delete(model)
        await db.commit()
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("delete_inventory_item failed")
        raise database_error(e)
    notifier.broadcast()
    return {"ok": True}
