from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.status import MANUAL_STATUSES


InventoryStatus = Literal["Available", "Low Stock", "Out of Stock", "Restocking", "Phased Out"]
ManualStatus = Literal["Phased Out", "Restocking"]


def _non_negative(v, name: str):
    if v is None:
        return None
    if v < 0:
        raise ValueError(f"{name} must be >= 0")
    return v


class InventoryItemCreate(BaseModel):
    item_type_id: int
    item_variant: str
    stock: float
    stock_unit_id: int
    supplier_id: int
    reorder_point: Optional[int] = None
    # Stored as-is instead of the derived status.
    status_override: Optional[ManualStatus] = None
    # Add forms send a plain status; a manual one is taken as the override,
    # a derived one is recomputed from stock.
    status: Optional[InventoryStatus] = None

    @model_validator(mode="after")
    def _promote_manual_status(self):
        if self.status_override is None and self.status in MANUAL_STATUSES:
            self.status_override = self.status
        return self

    @field_validator("item_variant")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("stock")
    @classmethod
    def _stock(cls, v: float) -> float:
        return _non_negative(v, "stock")

    @field_validator("reorder_point")
    @classmethod
    def _reorder_point(cls, v: Optional[int]) -> Optional[int]:
        return _non_negative(v, "reorder_point")


class InventoryItemUpdate(BaseModel):
    item_type_id: Optional[int] = None
    item_variant: Optional[str] = None
    stock: Optional[float] = None
    stock_unit_id: Optional[int] = None
    supplier_id: Optional[int] = None
    reorder_point: Optional[int] = None
    # Plain status: applied only when stock/reorder_point are not changing.
    status: Optional[InventoryStatus] = None
    status_override: Optional[ManualStatus] = None

    @field_validator("item_variant")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v

    @field_validator("stock")
    @classmethod
    def _stock(cls, v: Optional[float]) -> Optional[float]:
        return _non_negative(v, "stock")

    @field_validator("reorder_point")
    @classmethod
    def _reorder_point(cls, v: Optional[int]) -> Optional[int]:
        return _non_negative(v, "reorder_point")


class ReduceStockRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reduce_amount: float = Field(alias="reduceAmount")

    @field_validator("reduce_amount")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Invalid reduce amount")
        return v


class InventoryItemOut(BaseModel):
    id: int
    item_type: Optional[str] = None
    item_type_id: int
    item_variant: str
    stock: float
    stock_unit: Optional[str] = None
    stock_unit_id: int
    supplier: Optional[str] = None
    supplier_id: int
    reorder_point: Optional[int] = None
    status: InventoryStatus
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DashboardOut(BaseModel):
    totalItems: int
    lowStock: int
    totalStock: float
    phasedOut: int
