# uniform_stock/api/routers/inventory.py
from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.api.problem import raise_422
from uniform_stock.db.session import get_session
from uniform_stock.db.uow import UnitOfWork
from uniform_stock.models.enums import parse_education_level
from uniform_stock.schemas.inventory import (
    AddStockIn,
    InventoryHealthOut,
    InventoryReportOut,
    PeriodCloseIn,
    PeriodCloseOut,
    ReorderPointIn,
    ReportRowOut,
    StockMovementIn,
    StockMovementOut,
)
from uniform_stock.services.inventory_report_service import InventoryReportService
from uniform_stock.services.stock_service import StockService

router = APIRouter(prefix="/inventory", tags=["inventory"])


def get_report_service() -> InventoryReportService:
    return InventoryReportService()


def get_stock_service() -> StockService:
    return StockService()


# ---------------------------------------------------------
# 查询参数
# ---------------------------------------------------------
def date_range(
    start: Optional[date] = Query(None, description="起始日期（本地，含当天 00:00:00.000）"),
    end: Optional[date] = Query(None, description="结束日期（本地，含当天 23:59:59.999）"),
) -> Tuple[Optional[date], Optional[date]]:
    if start is not None and end is not None and start > end:
        raise_422(
            "invalid_date_range",
            "start must not be after end",
            details=[{"type": "validation", "path": "start", "reason": f"{start} > {end}"}],
        )
    return start, end


def education_level_param(
    education_level: Optional[str] = Query(None, alias="educationLevel"),
) -> Optional[str]:
    if education_level is None or not education_level.strip():
        return None
    try:
        level = parse_education_level(education_level)
    except ValueError as e:
        raise_422(
            "invalid_education_level",
            str(e),
            details=[{"type": "validation", "path": "educationLevel", "reason": str(e)}],
        )
    return level.value if level is not None else None


# ---------------------------------------------------------
# 1) 报表
# ---------------------------------------------------------
@router.get("/report", response_model=List[ReportRowOut])
async def inventory_report_rows(
    education_level: Optional[str] = Depends(education_level_param),
    search: Optional[str] = Query(None, max_length=128),
    dates: Tuple[Optional[date], Optional[date]] = Depends(date_range),
    session: AsyncSession = Depends(get_session),
    svc: InventoryReportService = Depends(get_report_service),
):
    """扁平 (item, size) 行；与分组报表同一份数据、同一套过滤。"""
    start, end = dates
    report = await svc.report(session, education_level=education_level, search=search, start=start, end=end)
    return [ReportRowOut.model_validate(row) for g in report.groups for row in g.rows]


@router.get("/report/groups", response_model=InventoryReportOut)
async def inventory_report_groups(
    education_level: Optional[str] = Depends(education_level_param),
    search: Optional[str] = Query(None, max_length=128),
    dates: Tuple[Optional[date], Optional[date]] = Depends(date_range),
    session: AsyncSession = Depends(get_session),
    svc: InventoryReportService = Depends(get_report_service),
):
    start, end = dates
    report = await svc.report(session, education_level=education_level, search=search, start=start, end=end)
    return InventoryReportOut.model_validate(report)


@router.get("/health", response_model=InventoryHealthOut)
async def inventory_health(
    dates: Tuple[Optional[date], Optional[date]] = Depends(date_range),
    session: AsyncSession = Depends(get_session),
    svc: InventoryReportService = Depends(get_report_service),
):
    """仪表盘计数：直接取报表聚合结果，不再单独全量扫描。"""
    start, end = dates
    report = await svc.report(session, start=start, end=end)
    return InventoryHealthOut(
        total_groups=report.total_groups,
        out_of_stock=report.out_of_stock,
        critical=report.critical,
        at_reorder_point=report.at_reorder_point,
    )


@router.get("/sizes", response_model=List[str])
async def inventory_sizes(
    name: str = Query(..., min_length=1, max_length=128),
    education_level: Optional[str] = Depends(education_level_param),
    session: AsyncSession = Depends(get_session),
    svc: InventoryReportService = Depends(get_report_service),
):
    return await svc.available_sizes(session, name=name, education_level=education_level)


# ---------------------------------------------------------
# 2) 期间计数变更
# ---------------------------------------------------------
@router.post("/items/{item_id}/add-stock", response_model=ReportRowOut)
async def add_stock(
    item_id: int,
    body: AddStockIn,
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    async with UnitOfWork(session):
        row = await svc.add_stock(
            session,
            item_id,
            body.quantity,
            size=body.size,
            unit_price=body.unit_price,
            note=body.note,
        )
    return ReportRowOut.model_validate(row)


@router.post("/items/{item_id}/release", response_model=ReportRowOut)
async def record_release(
    item_id: int,
    body: StockMovementIn,
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    async with UnitOfWork(session):
        row = await svc.record_release(session, item_id, body.quantity, size=body.size, note=body.note)
    return ReportRowOut.model_validate(row)


@router.post("/items/{item_id}/return", response_model=ReportRowOut)
async def record_return(
    item_id: int,
    body: StockMovementIn,
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    async with UnitOfWork(session):
        row = await svc.record_return(session, item_id, body.quantity, size=body.size, note=body.note)
    return ReportRowOut.model_validate(row)


@router.post("/items/{item_id}/reset-beginning-inventory", response_model=List[PeriodCloseOut])
async def reset_beginning_inventory(
    item_id: int,
    body: Optional[PeriodCloseIn] = None,
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    """期间结转；不给 size 时结转该商品全部尺码。"""
    size = body.size if body is not None else None
    async with UnitOfWork(session):
        results = await svc.reset_beginning_inventory(session, item_id, size=size)
    return [PeriodCloseOut.model_validate(r) for r in results]


@router.put("/items/{item_id}/reorder-point", response_model=List[ReportRowOut])
async def set_reorder_point(
    item_id: int,
    body: ReorderPointIn,
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    async with UnitOfWork(session):
        rows = await svc.set_reorder_point(session, item_id, body.reorder_point, size=body.size)
    return [ReportRowOut.model_validate(r) for r in rows]


# ---------------------------------------------------------
# 3) 流水
# ---------------------------------------------------------
@router.get("/items/{item_id}/movements", response_model=List[StockMovementOut])
async def list_movements(
    item_id: int,
    size: Optional[str] = Query(None, max_length=64),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    svc: StockService = Depends(get_stock_service),
):
    return await svc.list_movements(session, item_id, size=size, limit=limit, offset=offset)
