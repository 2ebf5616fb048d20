# uniform_stock/services/inventory_report_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.core.config import get_settings
from uniform_stock.domain.date_range import DateLike, local_tz
from uniform_stock.domain.report import InventoryReport, ReportRow, aggregate_report, distinct_sizes
from uniform_stock.domain.status import StatusThresholds, classify_stock
from uniform_stock.metrics import NEGATIVE_ENDING
from uniform_stock.models.item import Item
from uniform_stock.models.size_variant import SizeVariant

log = logging.getLogger(__name__)


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    # SQLite 取回的是 naive（实际存的是 UTC）
    if ts is None or ts.tzinfo is not None:
        return ts
    return ts.replace(tzinfo=timezone.utc)


def build_report_row(item: Item, variant: SizeVariant, thresholds: StatusThresholds) -> ReportRow:
    """单个 (item, variant) → 报表行；库存一律取推导值，状态同一规则计算。"""
    ending = variant.ending_inventory
    return ReportRow(
        item_id=int(item.id),
        variant_id=int(variant.id),
        name=item.name,
        education_level=item.education_level,
        size=variant.size,
        beginning_inventory=int(variant.beginning_inventory),
        purchases=int(variant.purchases),
        released=int(variant.released),
        returns=int(variant.returns),
        ending_inventory=ending,
        reorder_point=int(variant.reorder_point),
        status=classify_stock(ending, variant.reorder_point, thresholds),
        unit_price=variant.unit_price if variant.unit_price is not None else item.unit_price,
        created_at=_aware(item.created_at),
    )


class InventoryReportService:
    """
    库存报表读侧：

    - fetch_rows       一条 JOIN 查询取 (item, variant) 扁平行（每行四个计数同一次读取）
    - report           过滤 / 分组 / 计数（聚合逻辑在 domain.report，纯函数）
    - available_sizes  某 (name, education_level) 组合下可选尺码
    """

    def __init__(
        self,
        *,
        thresholds: Optional[StatusThresholds] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        settings = get_settings()
        self.thresholds = thresholds or StatusThresholds.from_settings(settings)
        self.tz = tz or local_tz(settings.REPORT_TZ)

    async def fetch_rows(
        self,
        session: AsyncSession,
        *,
        education_level: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[ReportRow]:
        stmt = select(Item, SizeVariant).join(SizeVariant, SizeVariant.item_id == Item.id)
        if not include_inactive:
            stmt = stmt.where(Item.is_active.is_(True))
        if education_level is not None:
            stmt = stmt.where(Item.education_level == str(education_level))
        q = (search or "").strip()
        if q:
            # search 里的 % 和 _ 按字面匹配
            stmt = stmt.where(Item.name.icontains(q, autoescape=True))
        stmt = stmt.order_by(Item.id.asc(), SizeVariant.id.asc())

        rows: List[ReportRow] = []
        for item, variant in (await session.execute(stmt)).all():
            row = build_report_row(item, variant, self.thresholds)
            if row.ending_inventory < 0:
                # 数据质量告警：原样透出，不截断为 0
                NEGATIVE_ENDING.labels(education_level=row.education_level).inc()
                log.warning(
                    "negative ending inventory item=%s size=%r ending=%s "
                    "(b=%s p=%s r=%s t=%s)",
                    row.item_id,
                    row.size,
                    row.ending_inventory,
                    row.beginning_inventory,
                    row.purchases,
                    row.released,
                    row.returns,
                )
            rows.append(row)
        return rows

    async def report(
        self,
        session: AsyncSession,
        *,
        education_level: Optional[str] = None,
        search: Optional[str] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> InventoryReport:
        rows = await self.fetch_rows(session, education_level=education_level, search=search)
        return aggregate_report(
            rows,
            education_level=education_level,
            start=start,
            end=end,
            tz=self.tz,
        )

    async def available_sizes(
        self,
        session: AsyncSession,
        *,
        name: str,
        education_level: Optional[str] = None,
    ) -> List[str]:
        key = " ".join((name or "").split())
        if not key:
            return []
        stmt = (
            select(Item, SizeVariant)
            .join(SizeVariant, SizeVariant.item_id == Item.id)
            .where(Item.is_active.is_(True))
            .where(func.lower(Item.name) == key.lower())
            .order_by(Item.id.asc(), SizeVariant.id.asc())
        )
        if education_level is not None:
            stmt = stmt.where(Item.education_level == str(education_level))
        result = await session.execute(stmt)
        return distinct_sizes(build_report_row(i, v, self.thresholds) for i, v in result.all())
