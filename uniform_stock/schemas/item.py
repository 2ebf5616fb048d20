# uniform_stock/schemas/item.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from uniform_stock.models.enums import parse_education_level
from uniform_stock.schemas.inventory import ReportRowOut


class _Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


class VariantIn(_Base):
    size: Annotated[str, Field(min_length=1, max_length=64)]
    beginning_inventory: Annotated[int, Field(default=0, ge=0, alias="beginningInventory")] = 0
    reorder_point: Annotated[Optional[int], Field(default=None, ge=0, alias="reorderPoint")] = None
    unit_price: Annotated[Optional[Decimal], Field(default=None, ge=0, alias="unitPrice")] = None

    @field_validator("size", mode="before")
    @classmethod
    def _trim_text(cls, v):
        return " ".join(v.split()) if isinstance(v, str) else v


class ItemCreate(_Base):
    name: Annotated[str, Field(min_length=1, max_length=128)]
    education_level: Annotated[str, Field(min_length=1, max_length=32, alias="educationLevel")]
    unit_price: Annotated[Optional[Decimal], Field(default=None, ge=0, alias="unitPrice")] = None
    reorder_point: Annotated[int, Field(default=0, ge=0, alias="reorderPoint")] = 0
    is_active: Annotated[bool, Field(default=True, alias="isActive")] = True

    # 二选一：只给尺码列表，或给完整 variant（带期初 / 补货点）
    sizes: Optional[List[str]] = None
    variants: Optional[List[VariantIn]] = None

    model_config = _Base.model_config | {
        "json_schema_extra": {
            "example": {
                "name": "PE Shirt",
                "educationLevel": "Junior High School",
                "unitPrice": "280.00",
                "reorderPoint": 10,
                "sizes": ["S", "M", "L"],
            }
        }
    }

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, v):
        return " ".join(v.split()) if isinstance(v, str) else v

    @field_validator("education_level")
    @classmethod
    def _level(cls, v: str) -> str:
        level = parse_education_level(v)
        if level is None:
            raise ValueError("education_level is required")
        return level.value

    @model_validator(mode="after")
    def _sizes_xor_variants(self):
        if self.sizes and self.variants:
            raise ValueError("give either sizes or variants, not both")
        return self

    def variant_specs(self) -> Optional[List[Dict[str, Any]]]:
        if not self.variants:
            return None
        out: List[Dict[str, Any]] = []
        for v in self.variants:
            entry: Dict[str, Any] = {"size": v.size, "beginning_inventory": v.beginning_inventory}
            if v.reorder_point is not None:
                entry["reorder_point"] = v.reorder_point
            if v.unit_price is not None:
                entry["unit_price"] = v.unit_price
            out.append(entry)
        return out


class LegacyItemIn(_Base):
    """历史商品记录（未规范化）；字段名保持历史数据原样。"""

    name: Annotated[str, Field(min_length=1, max_length=128)]
    education_level: Annotated[str, Field(min_length=1, max_length=32)]
    size: Optional[str] = None
    note: Optional[str] = None
    beginning_inventory: Optional[int] = None
    purchases: Optional[int] = None
    released: Optional[int] = None
    returns: Optional[int] = None
    reorder_point: Optional[int] = None
    price: Optional[Decimal] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ItemOut(_Base):
    id: int
    name: str
    education_level: str
    unit_price: Optional[Decimal] = None
    reorder_point: int
    is_active: bool
    created_at: datetime
    variants: List[ReportRowOut] = []


class LegacyImportOut(_Base):
    item: ItemOut
    strategy: str
    warnings: List[str] = []
