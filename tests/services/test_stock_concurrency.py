# tests/services/test_stock_concurrency.py
from __future__ import annotations

import asyncio

import pytest

from tests.factories import get_variant, make_item
from uniform_stock.db.uow import UnitOfWork
from uniform_stock.services.stock_service import StockService


@pytest.mark.asyncio
async def test_concurrent_add_stock_loses_no_update(async_session_maker):
    """
    8 个独立 session 并发 AddStock：purchases 必须等于总和，流水条数一致。
    """
    svc = StockService()
    async with async_session_maker() as s:
        item = await make_item(s, "PE Uniform", "Elementary", sizes=["M"], beginning_inventory=20)
    quantities = [1, 2, 3, 4, 5, 6, 7, 8]

    async def _add(qty: int) -> None:
        async with UnitOfWork(async_session_maker) as uow:
            await svc.add_stock(uow.session, item.id, qty, size="M")

    await asyncio.gather(*(_add(q) for q in quantities))

    async with async_session_maker() as s:
        v = await get_variant(s, item.id, "M")
        assert v.purchases == sum(quantities)
        assert v.ending_inventory == 20 + sum(quantities)
        movements = await svc.list_movements(s, item.id)
        assert len(movements) == len(quantities)
        assert sorted(m.ending_after for m in movements)[-1] == 20 + sum(quantities)


@pytest.mark.asyncio
async def test_period_close_interleaved_with_add_stock(async_session_maker):
    """结转与入库并发：不论先后，期初 + 本期入库始终等于总量。"""
    svc = StockService()
    async with async_session_maker() as s:
        item = await make_item(s, "Polo", "College", sizes=["L"], beginning_inventory=10)
    async with UnitOfWork(async_session_maker) as uow:
        await svc.add_stock(uow.session, item.id, 5)

    async def _close() -> None:
        async with UnitOfWork(async_session_maker) as uow:
            await svc.reset_beginning_inventory(uow.session, item.id)

    async def _add() -> None:
        async with UnitOfWork(async_session_maker) as uow:
            await svc.add_stock(uow.session, item.id, 3)

    await asyncio.gather(_close(), _add())

    async with async_session_maker() as s:
        v = await get_variant(s, item.id, "L")
        assert v.beginning_inventory + v.purchases == 18
        assert v.released == 0 and v.returns == 0
        assert v.ending_inventory == 18
