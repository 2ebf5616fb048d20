# tests/services/test_item_import.py
from __future__ import annotations

import json
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import get_variant
from uniform_stock.db.uow import UnitOfWork
from uniform_stock.domain.variants import DELIMITED, STRUCTURED
from uniform_stock.services.errors import InventoryValidationError, ItemNotFound
from uniform_stock.services.item_service import ItemService


@pytest.mark.asyncio
async def test_create_item_with_sizes(session: AsyncSession):
    svc = ItemService()
    async with UnitOfWork(session):
        item = await svc.create_item(
            session,
            name="  PE   Shirt ",
            education_level="Junior Highschool",
            sizes=["S", "M", "L"],
            reorder_point=10,
            unit_price="280",
        )
    assert item.name == "PE Shirt"
    assert item.education_level == "Junior High School"
    assert [v.size for v in item.variants] == ["S", "M", "L"]
    assert all(v.reorder_point == 10 for v in item.variants)

    fetched = await svc.get_item(session, item.id)
    assert fetched.id == item.id


@pytest.mark.asyncio
async def test_create_item_without_sizes_gets_implicit_variant(session: AsyncSession):
    svc = ItemService(default_size_label="One Size")
    async with UnitOfWork(session):
        item = await svc.create_item(session, name="Necktie", education_level="College")
    assert [v.size for v in item.variants] == ["One Size"]


@pytest.mark.asyncio
async def test_create_item_with_variant_specs(session: AsyncSession):
    svc = ItemService()
    async with UnitOfWork(session):
        item = await svc.create_item(
            session,
            name="Blouse",
            education_level="Senior High School",
            reorder_point=5,
            variants=[
                {"size": "S", "beginning_inventory": 12},
                {"size": "M", "beginning_inventory": 3, "reorder_point": 8, "unit_price": "300"},
            ],
        )
    s = await get_variant(session, item.id, "S")
    m = await get_variant(session, item.id, "M")
    assert (s.beginning_inventory, s.reorder_point) == (12, 5)
    assert (m.beginning_inventory, m.reorder_point, m.unit_price) == (3, 8, Decimal("300.00"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": " ", "education_level": "College"},
        {"name": "Polo", "education_level": "Graduate"},
        {"name": "Polo", "education_level": "College", "reorder_point": -1},
        {"name": "Polo", "education_level": "College", "unit_price": "-5"},
        {"name": "Polo", "education_level": "College", "variants": [{"size": "M"}, {"size": " m "}]},
    ],
)
@pytest.mark.asyncio
async def test_create_item_validation(session: AsyncSession, kwargs):
    svc = ItemService()
    with pytest.raises(InventoryValidationError):
        async with UnitOfWork(session):
            await svc.create_item(session, **kwargs)


@pytest.mark.asyncio
async def test_get_item_not_found(session: AsyncSession):
    with pytest.raises(ItemNotFound):
        await ItemService().get_item(session, 424242)


@pytest.mark.asyncio
async def test_import_structured_legacy_record(session: AsyncSession):
    record = {
        "name": "PE Uniform",
        "education_level": "Elementary",
        "size": "S, M",
        "reorder_point": 10,
        "price": "250",
        "note": json.dumps(
            {
                "_type": "sizeVariations",
                "sizeVariations": [
                    {"size": "S", "beginning_inventory": 20, "released": 5},
                    {"size": "M", "stock": 40},
                ],
            }
        ),
    }
    async with UnitOfWork(session):
        item, resolution = await ItemService().import_legacy_item(session, record)
    assert resolution.strategy == STRUCTURED
    s = await get_variant(session, item.id, "S")
    m = await get_variant(session, item.id, "M")
    assert (s.beginning_inventory, s.released, s.ending_inventory) == (20, 5, 15)
    assert m.beginning_inventory == 40
    assert s.reorder_point == m.reorder_point == 10


@pytest.mark.asyncio
async def test_import_malformed_note_falls_back_and_reports_warning(session: AsyncSession):
    record = {
        "name": "Polo",
        "education_level": "Preschool",
        "size": "S,M",
        "beginning_inventory": 6,
        "note": "{not json",
    }
    async with UnitOfWork(session):
        item, resolution = await ItemService().import_legacy_item(session, record)
    assert resolution.strategy == DELIMITED
    assert resolution.warnings
    assert item.education_level == "Kindergarten"
    assert [v.size for v in item.variants] == ["S", "M"]
    assert all(v.beginning_inventory == 6 for v in item.variants)
