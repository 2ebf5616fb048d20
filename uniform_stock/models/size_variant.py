# uniform_stock/models/size_variant.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from uniform_stock.db.base import Base
from uniform_stock.domain.ledger import ending_inventory

if TYPE_CHECKING:
    from .item import Item


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SizeVariant(Base):
    """
    库存槽位维度 (item_id, size)

    - 期间计数：beginning_inventory / purchases / released / returns
    - ending_inventory 只读推导，不落库（唯一真实来源 = 四个计数）
    - period_no：当前未结期间序号；结转后 +1
    """

    __tablename__ = "size_variants"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    item_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    beginning_inventory: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    purchases: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    released: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    returns: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    reorder_point: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(12, 2), nullable=True)

    period_no: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1)
    period_started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    item: Mapped["Item"] = relationship("Item", back_populates="variants", lazy="selectin")

    __table_args__ = (UniqueConstraint("item_id", "size", name="uq_size_variants_item_size"),)

    @property
    def ending_inventory(self) -> int:
        return ending_inventory(self.beginning_inventory, self.purchases, self.released, self.returns)

    def __repr__(self) -> str:
        return (
            f"<SizeVariant item={self.item_id} size={self.size!r} "
            f"b={self.beginning_inventory} p={self.purchases} "
            f"r={self.released} t={self.returns}>"
        )
