# tests/services/test_stock_service_ledger.py
from __future__ import annotations

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import get_variant, make_item
from uniform_stock.db.uow import UnitOfWork
from uniform_stock.models.enums import MovementType, StockStatus
from uniform_stock.models.size_variant import SizeVariant
from uniform_stock.models.stock_movement import StockMovement
from uniform_stock.services.errors import (
    AmbiguousVariant,
    InactiveItem,
    InventoryValidationError,
    ItemNotFound,
)
from uniform_stock.services.stock_service import StockService


async def _pe_uniform(session: AsyncSession):
    """PE Uniform / Elementary / M：期初 20，已发放 5，补货点 10 → 期末 15。"""
    item = await make_item(session, "PE Uniform", "Elementary", sizes=["M"], beginning_inventory=20, reorder_point=10)
    await session.execute(
        update(SizeVariant).where(SizeVariant.item_id == item.id).values(released=5)
    )
    await session.commit()
    return item


async def _movement_count(session: AsyncSession) -> int:
    return int((await session.execute(select(func.count()).select_from(StockMovement))).scalar_one())


@pytest.mark.asyncio
async def test_scenarios_add_stock_then_period_close(session: AsyncSession):
    """
    A) 期末 15、补货点 10 → At Reorder Point
    B) AddStock 50 → purchases=50，期末 65 → In Stock
    C) 结转 → 期初 65，计数清零；立即再结转一次仍是 65
    """
    svc = StockService()
    item = await _pe_uniform(session)

    v = await get_variant(session, item.id, "M")
    assert v.ending_inventory == 15

    async with UnitOfWork(session):
        row = await svc.add_stock(session, item.id, 50)
    assert row.purchases == 50
    assert row.released == 5
    assert row.ending_inventory == 65
    assert row.stock == 65
    assert row.status is StockStatus.IN_STOCK

    async with UnitOfWork(session):
        results = await svc.reset_beginning_inventory(session, item.id)
    (res,) = results
    assert res.closed is True
    assert res.closed_period_no == 1
    assert res.period_no == 2

    v = await get_variant(session, item.id, "M")
    assert (v.beginning_inventory, v.purchases, v.released, v.returns) == (65, 0, 0, 0)
    assert v.period_no == 2

    async with UnitOfWork(session):
        again = await svc.reset_beginning_inventory(session, item.id)
    assert again[0].closed is False
    v = await get_variant(session, item.id, "M")
    assert (v.beginning_inventory, v.purchases, v.released, v.returns) == (65, 0, 0, 0)
    assert v.period_no == 2


@pytest.mark.asyncio
async def test_scenario_a_status_from_report_row(session: AsyncSession):
    svc = StockService()
    item = await _pe_uniform(session)
    async with UnitOfWork(session):
        rows = await svc.set_reorder_point(session, item.id, 10)
    assert rows[0].ending_inventory == 15
    assert rows[0].status is StockStatus.AT_REORDER_POINT


@pytest.mark.parametrize("rp", [0, 1, 10, 500])
@pytest.mark.asyncio
async def test_scenario_d_zero_stock_is_out_of_stock(session: AsyncSession, rp: int):
    svc = StockService()
    item = await make_item(session, "Necktie", "College", sizes=["N/A"], beginning_inventory=0)
    async with UnitOfWork(session):
        rows = await svc.set_reorder_point(session, item.id, rp)
    assert rows[0].stock == 0
    assert rows[0].status is StockStatus.OUT_OF_STOCK


@pytest.mark.asyncio
async def test_add_stock_writes_movement(session: AsyncSession):
    svc = StockService()
    item = await _pe_uniform(session)
    async with UnitOfWork(session):
        await svc.add_stock(session, item.id, 7, note="PO-17")

    movements = await svc.list_movements(session, item.id)
    assert len(movements) == 1
    m = movements[0]
    assert m.reason == MovementType.PURCHASE.value
    assert (m.delta, m.ending_before, m.ending_after) == (7, 15, 22)
    assert m.period_no == 1
    assert m.note == "PO-17"


@pytest.mark.parametrize("bad", [0, -3, 2.5, "5", True, None])
@pytest.mark.asyncio
async def test_add_stock_rejects_bad_quantity_without_writing(session: AsyncSession, bad):
    svc = StockService()
    item = await _pe_uniform(session)

    with pytest.raises(InventoryValidationError):
        async with UnitOfWork(session):
            await svc.add_stock(session, item.id, bad)

    v = await get_variant(session, item.id, "M")
    assert (v.beginning_inventory, v.purchases, v.released, v.returns) == (20, 0, 5, 0)
    assert await _movement_count(session) == 0


@pytest.mark.asyncio
async def test_add_stock_unknown_and_inactive_item(session: AsyncSession):
    svc = StockService()
    with pytest.raises(ItemNotFound):
        await svc.add_stock(session, 99999, 1)

    item = await make_item(session, "Old Blazer", "College", is_active=False)
    with pytest.raises(InactiveItem):
        async with UnitOfWork(session):
            await svc.add_stock(session, item.id, 1)
    v = await get_variant(session, item.id, "N/A")
    assert v.purchases == 0


@pytest.mark.asyncio
async def test_selector_ambiguity_carries_candidates(session: AsyncSession):
    svc = StockService()
    item = await make_item(session, "Polo", "Senior High School", sizes=["S", "M", "L"], beginning_inventory=10)

    with pytest.raises(AmbiguousVariant) as ei:
        async with UnitOfWork(session):
            await svc.add_stock(session, item.id, 5)
    assert ei.value.candidates == ["S", "M", "L"]
    assert ei.value.selector is None

    with pytest.raises(AmbiguousVariant) as ei:
        async with UnitOfWork(session):
            await svc.add_stock(session, item.id, 5, size="XXL")
    assert ei.value.candidates == ["S", "M", "L"]

    for size in ("S", "M", "L"):
        v = await get_variant(session, item.id, size)
        assert v.purchases == 0


@pytest.mark.asyncio
async def test_selector_is_trimmed_and_case_insensitive(session: AsyncSession):
    svc = StockService()
    item = await make_item(session, "Polo", "Senior High School", sizes=["S", "M", "L"], beginning_inventory=10)
    async with UnitOfWork(session):
        row = await svc.add_stock(session, item.id, 4, size="  m ")
    assert row.size == "M"
    assert row.purchases == 4
    assert (await get_variant(session, item.id, "S")).purchases == 0


@pytest.mark.asyncio
async def test_add_stock_unit_price_override(session: AsyncSession):
    svc = StockService()
    item = await _pe_uniform(session)
    async with UnitOfWork(session):
        row = await svc.add_stock(session, item.id, 1, unit_price="275.50")
    assert str(row.unit_price) == "275.50"

    with pytest.raises(InventoryValidationError):
        async with UnitOfWork(session):
            await svc.add_stock(session, item.id, 1, unit_price=-1)


@pytest.mark.asyncio
async def test_release_and_return_counters(session: AsyncSession):
    svc = StockService()
    item = await _pe_uniform(session)
    async with UnitOfWork(session):
        await svc.record_release(session, item.id, 3)
        row = await svc.record_return(session, item.id, 1)
    assert (row.released, row.returns) == (8, 1)
    assert row.ending_inventory == 20 - 8 + 1

    reasons = [m.reason for m in await svc.list_movements(session, item.id)]
    assert sorted(reasons) == [MovementType.RELEASE.value, MovementType.RETURN.value]


@pytest.mark.asyncio
async def test_release_can_drive_stock_negative(session: AsyncSession):
    svc = StockService()
    item = await make_item(session, "Skirt", "Junior High School", sizes=["M"], beginning_inventory=2)
    async with UnitOfWork(session):
        row = await svc.record_release(session, item.id, 5)
    assert row.ending_inventory == -3
    assert row.status is StockStatus.OUT_OF_STOCK


@pytest.mark.asyncio
async def test_period_close_writes_movement_on_closed_period(session: AsyncSession):
    svc = StockService()
    item = await _pe_uniform(session)
    async with UnitOfWork(session):
        await svc.reset_beginning_inventory(session, item.id)
    async with UnitOfWork(session):
        await svc.add_stock(session, item.id, 2)

    movements = await svc.list_movements(session, item.id)
    by_reason = {m.reason: m for m in movements}
    close = by_reason[MovementType.PERIOD_CLOSE.value]
    assert close.period_no == 1
    assert (close.ending_before, close.ending_after) == (15, 15)
    assert by_reason[MovementType.PURCHASE.value].period_no == 2


@pytest.mark.asyncio
async def test_period_close_by_size_only_touches_that_variant(session: AsyncSession):
    svc = StockService()
    item = await make_item(session, "Polo", "Elementary", sizes=["S", "M"], beginning_inventory=10)
    async with UnitOfWork(session):
        await svc.add_stock(session, item.id, 5, size="S")
        await svc.add_stock(session, item.id, 5, size="M")
    async with UnitOfWork(session):
        results = await svc.reset_beginning_inventory(session, item.id, size="s")
    assert [r.row.size for r in results] == ["S"]

    s = await get_variant(session, item.id, "S")
    m = await get_variant(session, item.id, "M")
    assert (s.beginning_inventory, s.purchases) == (15, 0)
    assert (m.beginning_inventory, m.purchases) == (10, 5)


@pytest.mark.asyncio
async def test_set_reorder_point_validation_and_all_variants(session: AsyncSession):
    svc = StockService()
    item = await make_item(session, "Polo", "Elementary", sizes=["S", "M"], beginning_inventory=10)

    with pytest.raises(InventoryValidationError):
        await svc.set_reorder_point(session, item.id, -1)

    async with UnitOfWork(session):
        rows = await svc.set_reorder_point(session, item.id, 8)
    assert [r.reorder_point for r in rows] == [8, 8]
    assert all(r.status is StockStatus.AT_REORDER_POINT for r in rows)

    async with UnitOfWork(session):
        rows = await svc.set_reorder_point(session, item.id, 30, size="M")
    assert [(r.size, r.reorder_point, r.status) for r in rows] == [("M", 30, StockStatus.CRITICAL)]
