"""
Seed the lookup catalogs (item types, stock units, suppliers), optionally with demo items.

Run locally:
  inside backend/: `uv run python scripts/seed_catalogs.py [--with-items]`
  from repo root: `uv run python backend/scripts/seed_catalogs.py [--with-items]`

It uses the same DATABASE_* env vars as the backend (dotenv supported by core.config).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from core.status import derive_status  # noqa: E402
from db.database import (  # noqa: E402
    async_session_maker,
    create_db_and_tables,
    InventoryItem,
    ItemType,
    StockUnit,
    Supplier,
)


SEED_ITEM_TYPES = ["Cable", "Connector", "Fastener", "Packaging", "Sensor"]
SEED_STOCK_UNITS = ["pcs", "box", "m", "kg", "roll"]
SEED_SUPPLIERS = ["Acme Components", "Northwind Supply", "Globex Industrial"]


@dataclass(frozen=True)
class SeedItem:
    item_type: str
    item_variant: str
    stock: float
    stock_unit: str
    supplier: str
    reorder_point: Optional[int] = None


SEED_ITEMS: list[SeedItem] = [
    SeedItem("Cable", "USB-C 1m", 120, "pcs", "Acme Components", reorder_point=40),
    SeedItem("Cable", "Cat6 patch 2m", 15, "pcs", "Northwind Supply", reorder_point=20),
    SeedItem("Connector", "RJ45 shielded", 0, "box", "Northwind Supply", reorder_point=5),
    SeedItem("Fastener", "M3x8 hex screw", 8, "box", "Globex Industrial"),
    SeedItem("Packaging", "Bubble wrap 50cm", 3, "roll", "Globex Industrial", reorder_point=3),
]


async def _ensure_names(db: AsyncSession, model, names: list[str]) -> int:
    created = 0
    for name in names:
        res = await db.execute(select(model).where(func.lower(model.name) == name.lower()))
        if res.scalar_one_or_none():
            continue
        db.add(model(name=name))
        created += 1
    await db.flush()
    return created


async def _ids_by_name(db: AsyncSession, model) -> dict[str, int]:
    res = await db.execute(select(model))
    return {m.name: m.id for m in res.scalars().all()}


async def seed(db: AsyncSession, *, with_items: bool = False) -> dict[str, int]:
    """Idempotent: existing catalog names and item variants are left alone."""
    counts = {
        "item_types": await _ensure_names(db, ItemType, SEED_ITEM_TYPES),
        "stock_units": await _ensure_names(db, StockUnit, SEED_STOCK_UNITS),
        "suppliers": await _ensure_names(db, Supplier, SEED_SUPPLIERS),
        "items": 0,
    }

    if with_items:
        types = await _ids_by_name(db, ItemType)
        units = await _ids_by_name(db, StockUnit)
        suppliers = await _ids_by_name(db, Supplier)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        for s in SEED_ITEMS:
            res = await db.execute(
                select(InventoryItem.id).where(
                    InventoryItem.item_type_id == types[s.item_type],
                    InventoryItem.item_variant == s.item_variant,
                )
            )
            if res.first():
                continue
            db.add(
                InventoryItem(
                    item_type_id=types[s.item_type],
                    item_variant=s.item_variant,
                    stock=s.stock,
                    stock_unit_id=units[s.stock_unit],
                    supplier_id=suppliers[s.supplier],
                    reorder_point=s.reorder_point,
                    status=derive_status(s.stock, s.reorder_point, None),
                    updated_at=now,
                )
            )
            counts["items"] += 1

    await db.commit()
    return counts


async def main(with_items: bool) -> None:
    await create_db_and_tables()
    async with async_session_maker() as db:
        counts = await seed(db, with_items=with_items)

    print(
        f"[seed_catalogs] item_types={counts['item_types']} stock_units={counts['stock_units']} "
        f"suppliers={counts['suppliers']} items={counts['items']}"
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--with-items", action="store_true", help="Also create a few demo inventory items")
    args = parser.parse_args()

    asyncio.run(main(with_items=bool(args.with_items)))
