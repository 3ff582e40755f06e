from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.status import AVAILABLE

from ..database import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_inventory_items_stock_non_negative"),
        CheckConstraint("reorder_point IS NULL OR reorder_point >= 0", name="ck_inventory_items_reorder_point_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    item_type_id = Column(Integer, ForeignKey("item_types.id"), nullable=False, index=True)
    item_variant = Column(Text, nullable=False)

    stock = Column(Float, nullable=False, default=0)
    stock_unit_id = Column(Integer, ForeignKey("stock_units.id"), nullable=False, index=True)

    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    reorder_point = Column(Integer, nullable=True)

    # 'Available' | 'Low Stock' | 'Out of Stock' | 'Restocking' | 'Phased Out'
    status = Column(Text, nullable=False, default=AVAILABLE, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    item_type = relationship("ItemType", back_populates="items")
    stock_unit = relationship("StockUnit", back_populates="items")
    supplier = relationship("Supplier", back_populates="items")
