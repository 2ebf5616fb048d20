# uniform_stock/services/ledger_writer.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.models.enums import MovementType
from uniform_stock.models.stock_movement import StockMovement


async def write_movement(
    session: AsyncSession,
    *,
    item_id: int,
    variant_id: int,
    period_no: int,
    reason: Union[str, MovementType],
    delta: int,
    ending_before: int,
    ending_after: int,
    occurred_at: datetime,
    note: Optional[str] = None,
) -> int:
    """
    流水写入（只增不改），与计数更新处于同一事务：
    调用方回滚时流水一并回滚，不会出现“有流水无计数”或反之。
    """
    row = StockMovement(
        item_id=int(item_id),
        variant_id=int(variant_id),
        period_no=int(period_no),
        reason=reason.value if isinstance(reason, MovementType) else str(reason),
        delta=int(delta),
        ending_before=int(ending_before),
        ending_after=int(ending_after),
        note=note,
        occurred_at=occurred_at,
    )
    session.add(row)
    await session.flush()
    return int(row.id)
