# uniform_stock/models/item.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from uniform_stock.db.base import Base

if TYPE_CHECKING:
    from .size_variant import SizeVariant


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Item(Base):
    """
    Item 主数据模型（校服目录条目）：

        id                INTEGER PRIMARY KEY
        name              VARCHAR(128) NOT NULL
        education_level   VARCHAR(32)  NOT NULL   （EducationLevel 显示值）
        unit_price        NUMERIC(12,2) NULL
        reorder_point     INTEGER NOT NULL DEFAULT 0   （新建 variant 的默认补货点）
        is_active         BOOLEAN NOT NULL DEFAULT true
        created_at        TIMESTAMPTZ NOT NULL
        updated_at        TIMESTAMPTZ NOT NULL

    尺码维度的库存计数全部在 size_variants，本表不再保存任何库存数字。
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    education_level: Mapped[str] = mapped_column(String(32), nullable=False)

    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    reorder_point: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    variants: Mapped[List["SizeVariant"]] = relationship(
        "SizeVariant",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="SizeVariant.id",
        lazy="selectin",
    )

    __table_args__ = (Index("ix_items_name_level", "name", "education_level"),)

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} level={self.education_level!r}>"
