# uniform_stock/domain/status.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from uniform_stock.models.enums import StockStatus

# 严重程度：数值越大越严重
SEVERITY = {
    StockStatus.IN_STOCK: 0,
    StockStatus.AT_REORDER_POINT: 1,
    StockStatus.CRITICAL: 2,
    StockStatus.OUT_OF_STOCK: 3,
}


@dataclass(frozen=True)
class StatusThresholds:
    """
    分级边界全部由 reorder_point 推导：

    - stock <= 0                                    → Out of Stock
    - stock <  reorder_point * critical_ratio       → Critical
    - stock <= reorder_point * reorder_ceiling_ratio → At Reorder Point
    - 其余                                          → In Stock
    """

    critical_ratio: float = 0.5
    reorder_ceiling_ratio: float = 1.5

    @classmethod
    def from_settings(cls, settings) -> "StatusThresholds":
        return cls(
            critical_ratio=float(settings.CRITICAL_RATIO),
            reorder_ceiling_ratio=float(settings.REORDER_CEILING_RATIO),
        )


DEFAULT_THRESHOLDS = StatusThresholds()


def classify_stock(
    current_stock: int,
    reorder_point: int,
    thresholds: Optional[StatusThresholds] = None,
) -> StockStatus:
    t = thresholds or DEFAULT_THRESHOLDS
    stock = int(current_stock or 0)
    rp = max(int(reorder_point or 0), 0)

    # 负库存同样视为缺货；数值本身由上层原样透出
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock < rp * t.critical_ratio:
        return StockStatus.CRITICAL
    if stock <= rp * t.reorder_ceiling_ratio:
        return StockStatus.AT_REORDER_POINT
    return StockStatus.IN_STOCK


def most_severe(statuses: Iterable[StockStatus]) -> Optional[StockStatus]:
    """组内汇总状态：取最严重者；空集合返回 None。"""
    worst: Optional[StockStatus] = None
    for s in statuses:
        s = StockStatus(s)
        if worst is None or SEVERITY[s] > SEVERITY[worst]:
            worst = s
    return worst
