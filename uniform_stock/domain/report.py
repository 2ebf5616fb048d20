# uniform_stock/domain/report.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from uniform_stock.domain.date_range import DateLike, filter_by_date_range
from uniform_stock.domain.status import most_severe
from uniform_stock.models.enums import StockStatus


@dataclass(frozen=True)
class ReportRow:
    """(item, variant) 扁平行；status 已按同一规则计算，报表与单行分类不会不一致。"""

    item_id: int
    variant_id: int
    name: str
    education_level: str
    size: str
    beginning_inventory: int
    purchases: int
    released: int
    returns: int
    ending_inventory: int
    reorder_point: int
    status: StockStatus
    unit_price: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    @property
    def stock(self) -> int:
        # 当前库存唯一口径 = 推导出的期末库存
        return self.ending_inventory


@dataclass
class ReportGroup:
    name: str
    education_level: str
    rows: List[ReportRow] = field(default_factory=list)

    @property
    def status(self) -> StockStatus:
        return most_severe(r.status for r in self.rows) or StockStatus.IN_STOCK

    @property
    def sizes(self) -> List[str]:
        return [r.size for r in self.rows]


@dataclass
class InventoryReport:
    groups: List[ReportGroup]
    total_groups: int
    out_of_stock: int
    critical: int
    at_reorder_point: int


def _size_key(row: ReportRow) -> Tuple[str, str, int]:
    return (row.size.casefold(), row.size, row.variant_id)


def _group_key(g: ReportGroup) -> Tuple[str, str, str, str]:
    return (g.name.casefold(), g.education_level.casefold(), g.name, g.education_level)


def aggregate_report(
    rows: Iterable[ReportRow],
    *,
    education_level: Optional[str] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    tz: Optional[tzinfo] = None,
    date_field: str = "created_at",
) -> InventoryReport:
    """
    报表聚合（单次遍历）：

      1) 日期区间过滤
      2) 学段过滤（精确匹配）
      3) 按 (name, education_level) 分组
      4) 组内按尺码（大小写归一）升序
      5) 组状态 = 成员最严重状态

    计数：每组只落一个桶（按组汇总状态），缺货组不会再计入补货点。
    """
    selected = filter_by_date_range(rows, date_field, start, end, tz)
    if education_level is not None:
        selected = [r for r in selected if r.education_level == str(education_level)]

    groups: Dict[Tuple[str, str], ReportGroup] = {}
    for row in selected:
        key = (row.name, row.education_level)
        g = groups.get(key)
        if g is None:
            g = groups[key] = ReportGroup(name=row.name, education_level=row.education_level)
        g.rows.append(row)

    ordered = sorted(groups.values(), key=_group_key)
    counts = {s: 0 for s in StockStatus}
    for g in ordered:
        g.rows.sort(key=_size_key)
        counts[g.status] += 1

    return InventoryReport(
        groups=ordered,
        total_groups=len(ordered),
        out_of_stock=counts[StockStatus.OUT_OF_STOCK],
        critical=counts[StockStatus.CRITICAL],
        at_reorder_point=counts[StockStatus.AT_REORDER_POINT],
    )


def distinct_sizes(rows: Iterable[ReportRow]) -> List[str]:
    """去重（大小写不敏感）+ 排序后的尺码列表。"""
    seen: Dict[str, str] = {}
    for r in rows:
        seen.setdefault(r.size.casefold(), r.size)
    return [seen[k] for k in sorted(seen)]
