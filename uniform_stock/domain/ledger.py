# uniform_stock/domain/ledger.py
"""
期间台账计算（纯函数，无副作用）

    ending_inventory = beginning_inventory + purchases - released + returns

- 允许 0 / 负数中间值，不抛异常
- 结果为负不做截断：负库存是数据质量信号，由上层记录告警后原样透出
"""

from __future__ import annotations

from dataclasses import dataclass


def ending_inventory(beginning: int, purchases: int, released: int, returns: int) -> int:
    return int(beginning or 0) + int(purchases or 0) - int(released or 0) + int(returns or 0)


@dataclass(frozen=True)
class PeriodCounters:
    beginning_inventory: int = 0
    purchases: int = 0
    released: int = 0
    returns: int = 0

    @property
    def ending_inventory(self) -> int:
        return ending_inventory(self.beginning_inventory, self.purchases, self.released, self.returns)

    def rolled_over(self) -> "PeriodCounters":
        """结转后的下一期计数：期初 = 本期期末，其余清零。"""
        return PeriodCounters(beginning_inventory=self.ending_inventory)
