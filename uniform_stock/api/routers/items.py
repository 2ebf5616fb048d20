# uniform_stock/api/routers/items.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.core.config import get_settings
from uniform_stock.db.session import get_session
from uniform_stock.db.uow import UnitOfWork
from uniform_stock.domain.status import StatusThresholds
from uniform_stock.models.item import Item
from uniform_stock.schemas.inventory import ReportRowOut
from uniform_stock.schemas.item import ItemCreate, ItemOut, LegacyImportOut, LegacyItemIn
from uniform_stock.services.inventory_report_service import build_report_row
from uniform_stock.services.item_service import ItemService

router = APIRouter(prefix="/items", tags=["items"])


def get_item_service() -> ItemService:
    return ItemService(default_size_label=get_settings().DEFAULT_SIZE_LABEL)


def _item_out(item: Item) -> ItemOut:
    thresholds = StatusThresholds.from_settings(get_settings())
    return ItemOut(
        id=item.id,
        name=item.name,
        education_level=item.education_level,
        unit_price=item.unit_price,
        reorder_point=item.reorder_point,
        is_active=item.is_active,
        created_at=item.created_at,
        variants=[ReportRowOut.model_validate(build_report_row(item, v, thresholds)) for v in item.variants],
    )


# ---------------------------------------------------------
# 1) 创建商品（目录种子）
# ---------------------------------------------------------
@router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_in: ItemCreate,
    session: AsyncSession = Depends(get_session),
    item_service: ItemService = Depends(get_item_service),
):
    async with UnitOfWork(session):
        item = await item_service.create_item(
            session,
            name=item_in.name,
            education_level=item_in.education_level,
            unit_price=item_in.unit_price,
            reorder_point=item_in.reorder_point,
            is_active=item_in.is_active,
            sizes=item_in.sizes,
            variants=item_in.variant_specs(),
        )
    return _item_out(item)


# ---------------------------------------------------------
# 2) 历史记录迁移
# ---------------------------------------------------------
@router.post("/import-legacy", response_model=LegacyImportOut, status_code=status.HTTP_201_CREATED)
async def import_legacy_item(
    record: LegacyItemIn,
    session: AsyncSession = Depends(get_session),
    item_service: ItemService = Depends(get_item_service),
):
    async with UnitOfWork(session):
        item, resolution = await item_service.import_legacy_item(session, record.to_record())
    return LegacyImportOut(item=_item_out(item), strategy=resolution.strategy, warnings=resolution.warnings)


# ---------------------------------------------------------
# 3) 查询单个
# ---------------------------------------------------------
@router.get("/{item_id}", response_model=ItemOut)
async def get_item(
    item_id: int,
    session: AsyncSession = Depends(get_session),
    item_service: ItemService = Depends(get_item_service),
):
    return _item_out(await item_service.get_item(session, item_id))
