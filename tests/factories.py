# tests/factories.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.models.item import Item
from uniform_stock.models.size_variant import SizeVariant


async def make_item(
    session: AsyncSession,
    name: str = "PE Shirt",
    education_level: str = "Junior High School",
    *,
    sizes: Iterable[str] = ("N/A",),
    beginning_inventory: int = 0,
    reorder_point: int = 0,
    is_active: bool = True,
    created_at: Optional[datetime] = None,
) -> Item:
    """直接落库（绕过 ItemService 校验），用于准备任意期间计数。"""
    item = Item(
        name=name,
        education_level=education_level,
        reorder_point=reorder_point,
        is_active=is_active,
        variants=[
            SizeVariant(
                size=s,
                beginning_inventory=beginning_inventory,
                purchases=0,
                released=0,
                returns=0,
                reorder_point=reorder_point,
                period_no=1,
            )
            for s in sizes
        ],
    )
    if created_at is not None:
        item.created_at = created_at
    session.add(item)
    await session.flush()
    await session.commit()
    return item


async def get_variant(session: AsyncSession, item_id: int, size: str) -> SizeVariant:
    """重新读库（populate_existing），避免拿到 identity map 里的旧值。"""
    stmt = (
        select(SizeVariant)
        .where(SizeVariant.item_id == item_id, SizeVariant.size == size)
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one()
