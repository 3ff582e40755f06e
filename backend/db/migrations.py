"""Database migration utilities"""
import logging

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Columns older deployments of inventory_items were created without.
# column -> (type, backfill value or None)
INVENTORY_ITEM_COLUMNS = {
    "reorder_point": ("INTEGER", None),
    "created_at": ("TIMESTAMP", "CURRENT_TIMESTAMP"),
    "updated_at": ("TIMESTAMP", "CURRENT_TIMESTAMP"),
}


def _existing_columns(sync_conn, table: str) -> set:
    insp = inspect(sync_conn)
    if not insp.has_table(table):
        return set()
    return {c["name"] for c in insp.get_columns(table)}


async def add_missing_inventory_columns(engine: AsyncEngine) -> list:
    """Add columns that create_all cannot add to an already existing inventory_items table.

    Returns the names of the columns that were added.
    """
    added = []
    async with engine.begin() as conn:
        existing = await conn.run_sync(_existing_columns, "inventory_items")
        if not existing:
            return added

        for column_name, (column_type, backfill) in INVENTORY_ITEM_COLUMNS.items():
            if column_name in existing:
                continue
            logger.info("Adding %s column to inventory_items table...", column_name)
            # First add as nullable
            await conn.execute(text(f"ALTER TABLE inventory_items ADD COLUMN {column_name} {column_type}"))
            if backfill is not None:
                await conn.execute(
                    text(f"UPDATE inventory_items SET {column_name} = {backfill} WHERE {column_name} IS NULL")
                )
                # SQLite cannot alter a column after the fact; Postgres gets default + NOT NULL.
                if conn.dialect.name != "sqlite":
                    await conn.execute(
                        text(f"ALTER TABLE inventory_items ALTER COLUMN {column_name} SET DEFAULT {backfill}")
                    )
                    await conn.execute(
                        text(f"ALTER TABLE inventory_items ALTER COLUMN {column_name} SET NOT NULL")
                    )
            added.append(column_name)
            logger.info("Successfully added %s column to inventory_items table", column_name)

    return added
