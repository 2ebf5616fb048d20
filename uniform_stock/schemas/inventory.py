# uniform_stock/schemas/inventory.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from uniform_stock.models.enums import StockStatus


# ========= 通用基类 =========
class _Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


def _trim(v):
    if isinstance(v, str):
        v = " ".join(v.split())
        return v or None
    return v


# ========= 写侧请求 =========
class StockMovementIn(_Base):
    """release / return 请求体。"""

    quantity: Annotated[int, Field(gt=0, strict=True)]
    size: Annotated[Optional[str], Field(default=None, max_length=64)] = None
    note: Annotated[Optional[str], Field(default=None, max_length=255)] = None

    @field_validator("size", "note", mode="before")
    @classmethod
    def _trim_text(cls, v):
        return _trim(v)


class AddStockIn(StockMovementIn):
    unit_price: Annotated[Optional[Decimal], Field(default=None, ge=0, alias="unitPrice")] = None

    model_config = _Base.model_config | {
        "json_schema_extra": {"example": {"quantity": 50, "size": "M", "unitPrice": "350.00"}}
    }


class PeriodCloseIn(_Base):
    size: Annotated[Optional[str], Field(default=None, max_length=64)] = None

    @field_validator("size", mode="before")
    @classmethod
    def _trim_text(cls, v):
        return _trim(v)


class ReorderPointIn(_Base):
    reorder_point: Annotated[int, Field(ge=0, strict=True, alias="reorderPoint")]
    size: Annotated[Optional[str], Field(default=None, max_length=64)] = None

    @field_validator("size", mode="before")
    @classmethod
    def _trim_text(cls, v):
        return _trim(v)


# ========= 读侧输出 =========
class ReportRowOut(_Base):
    item_id: int
    variant_id: int
    name: str
    education_level: str
    size: str
    beginning_inventory: int
    purchases: int
    released: int
    returns: int
    ending_inventory: int
    stock: int
    reorder_point: int
    status: StockStatus
    unit_price: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class ReportGroupOut(_Base):
    name: str
    education_level: str
    status: StockStatus
    sizes: List[str]
    rows: List[ReportRowOut]


class InventoryHealthOut(_Base):
    total_groups: int
    out_of_stock: int
    critical: int
    at_reorder_point: int


class InventoryReportOut(InventoryHealthOut):
    groups: List[ReportGroupOut]


class PeriodCloseOut(_Base):
    closed: bool
    closed_period_no: Optional[int] = None
    period_no: int
    row: ReportRowOut


class StockMovementOut(_Base):
    id: int
    item_id: int
    variant_id: int
    period_no: int
    reason: str
    delta: int
    ending_before: int
    ending_after: int
    note: Optional[str] = None
    occurred_at: datetime
