from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class ItemType(Base):
    __tablename__ = "item_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True, index=True)

    items = relationship("InventoryItem", back_populates="item_type")
