from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class StockUnit(Base):
    __tablename__ = "stock_units"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True, index=True)  # e.g. "pcs", "kg", "box"

    items = relationship("InventoryItem", back_populates="stock_unit")
