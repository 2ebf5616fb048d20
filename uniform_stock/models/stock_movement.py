# uniform_stock/models/stock_movement.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from uniform_stock.db.base import Base


class StockMovement(Base):
    """
    库存流水（只增不改）

    - 每次 AddStock / release / return / 期间结转各写一条
    - ending_before / ending_after 为同一事务内计数更新前后的推导库存
    - period_no 记录该流水所属期间（结转流水记在被关闭的期间上）
    """

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    item_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    variant_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("size_variants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_no: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    reason: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    delta: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    ending_before: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    ending_after: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    note: Mapped[Optional[str]] = mapped_column(sa.String(255), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    __table_args__ = (sa.Index("ix_stock_movements_variant_period", "variant_id", "period_no"),)
