# uniform_stock/services/stock_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.core.config import get_settings
from uniform_stock.domain.ledger import ending_inventory
from uniform_stock.domain.report import ReportRow
from uniform_stock.domain.status import StatusThresholds
from uniform_stock.metrics import STOCK_MOVEMENTS
from uniform_stock.models.enums import MovementType
from uniform_stock.models.item import Item
from uniform_stock.models.size_variant import SizeVariant
from uniform_stock.models.stock_movement import StockMovement
from uniform_stock.services.errors import (
    AmbiguousVariant,
    InactiveItem,
    InventoryValidationError,
    ItemNotFound,
)
from uniform_stock.services.inventory_report_service import build_report_row
from uniform_stock.services.ledger_writer import write_movement

log = logging.getLogger(__name__)

_MAX_SIZE_LABEL = 64

# 变动类型 → (计数列, 对期末库存的符号)
_MOVEMENT_COLUMNS = {
    MovementType.PURCHASE: ("purchases", 1),
    MovementType.RELEASE: ("released", -1),
    MovementType.RETURN: ("returns", 1),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PeriodCloseResult:
    """单个 variant 的结转结果；closed=False 表示本期无变动，结转为空操作。"""

    row: ReportRow
    closed: bool
    closed_period_no: Optional[int]
    period_no: int


def _positive_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InventoryValidationError("quantity", "quantity must be an integer")
    if quantity <= 0:
        raise InventoryValidationError("quantity", "quantity must be greater than 0")
    return quantity


def _non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InventoryValidationError(field, f"{field} must be a non-negative integer")
    return value


def _optional_price(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InventoryValidationError("unit_price", "unit_price must be a number") from None
    if not d.is_finite() or d < 0:
        raise InventoryValidationError("unit_price", "unit_price must be a non-negative number")
    return d


def _selector(size: Any) -> Optional[str]:
    if size is None:
        return None
    if not isinstance(size, str):
        raise InventoryValidationError("size", "size must be a string")
    label = " ".join(size.split())
    if not label:
        return None
    if len(label) > _MAX_SIZE_LABEL:
        raise InventoryValidationError("size", f"size must be at most {_MAX_SIZE_LABEL} characters")
    return label


def pick_variant(item: Item, size: Optional[str]) -> SizeVariant:
    """
    尺码选择器 → 唯一 variant：

    - 未给尺码：仅当商品只有一个 variant 时取它
    - 给了尺码：trim + 大小写不敏感精确匹配，必须恰好命中一个
    - 其余情况一律 AmbiguousVariant（附候选尺码）
    """
    variants = list(item.variants)
    candidates = [v.size for v in variants]
    label = _selector(size)
    if label is None:
        if len(variants) == 1:
            return variants[0]
        raise AmbiguousVariant(item.id, None, candidates)

    key = label.casefold()
    matches = [v for v in variants if " ".join(v.size.split()).casefold() == key]
    if len(matches) != 1:
        raise AmbiguousVariant(item.id, label, [v.size for v in matches] or candidates)
    return matches[0]


def pick_variants(item: Item, size: Optional[str]) -> List[SizeVariant]:
    """批量操作（结转 / 补货点）：未给尺码 = 全部 variant。"""
    if _selector(size) is None:
        return list(item.variants)
    return [pick_variant(item, size)]


class StockService:
    """
    库存写侧（期间计数 + 流水），不控事务：调用方用 UnitOfWork 包裹。

    所有计数变更都是单条 UPDATE（列 = 列 + :qty），并发请求不会丢失更新；
    同一条语句 RETURNING 更新后的四个计数，流水里的前后库存与计数一致。
    """

    def __init__(
        self,
        *,
        thresholds: Optional[StatusThresholds] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.thresholds = thresholds or StatusThresholds.from_settings(get_settings())
        self._now = clock or _utcnow

    # ---------------- lookup ----------------

    async def _load_item(self, session: AsyncSession, item_id: int, *, require_active: bool = True) -> Item:
        item = await session.get(Item, int(item_id)) if int(item_id) > 0 else None
        if item is None:
            raise ItemNotFound(item_id)
        if require_active and not item.is_active:
            raise InactiveItem(item.id)
        return item

    def _row(self, item: Item, variant: SizeVariant) -> ReportRow:
        return build_report_row(item, variant, self.thresholds)

    # ---------------- movements ----------------

    async def _apply_movement(
        self,
        session: AsyncSession,
        *,
        item_id: int,
        size: Optional[str],
        quantity: int,
        movement: MovementType,
        unit_price: Any = None,
        note: Optional[str] = None,
    ) -> ReportRow:
        qty = _positive_quantity(quantity)
        price = _optional_price(unit_price)
        item = await self._load_item(session, item_id)
        variant = pick_variant(item, size)

        column, sign = _MOVEMENT_COLUMNS[movement]
        now = self._now()
        values: dict = {column: getattr(SizeVariant, column) + qty, "updated_at": now}
        if price is not None:
            values["unit_price"] = price

        stmt = (
            update(SizeVariant)
            .where(SizeVariant.id == variant.id)
            .values(**values)
            .returning(
                SizeVariant.beginning_inventory,
                SizeVariant.purchases,
                SizeVariant.released,
                SizeVariant.returns,
                SizeVariant.period_no,
            )
            .execution_options(synchronize_session=False)
        )
        b, p, r, t, period_no = (await session.execute(stmt)).one()
        after = ending_inventory(b, p, r, t)
        before = after - sign * qty

        await write_movement(
            session,
            item_id=item.id,
            variant_id=variant.id,
            period_no=period_no,
            reason=movement,
            delta=sign * qty,
            ending_before=before,
            ending_after=after,
            occurred_at=now,
            note=note,
        )
        await session.refresh(variant)
        STOCK_MOVEMENTS.labels(reason=movement.value).inc()

        log.info(
            "%s item=%s size=%r qty=%s %s=%s ending %s->%s period=%s",
            movement.value.lower(),
            item.id,
            variant.size,
            qty,
            column,
            getattr(variant, column),
            before,
            after,
            period_no,
        )
        if after < 0:
            log.warning("ending inventory went negative item=%s size=%r ending=%s", item.id, variant.size, after)
        return self._row(item, variant)

    async def add_stock(
        self,
        session: AsyncSession,
        item_id: int,
        quantity: int,
        *,
        size: Optional[str] = None,
        unit_price: Any = None,
        note: Optional[str] = None,
    ) -> ReportRow:
        """
        AddStock：purchases += quantity（仅此一个计数变化）。

        校验失败 / 商品不存在 / 选择器不唯一时不写任何东西。
        """
        return await self._apply_movement(
            session,
            item_id=item_id,
            size=size,
            quantity=quantity,
            movement=MovementType.PURCHASE,
            unit_price=unit_price,
            note=note,
        )

    async def record_release(
        self,
        session: AsyncSession,
        item_id: int,
        quantity: int,
        *,
        size: Optional[str] = None,
        note: Optional[str] = None,
    ) -> ReportRow:
        return await self._apply_movement(
            session,
            item_id=item_id,
            size=size,
            quantity=quantity,
            movement=MovementType.RELEASE,
            note=note,
        )

    async def record_return(
        self,
        session: AsyncSession,
        item_id: int,
        quantity: int,
        *,
        size: Optional[str] = None,
        note: Optional[str] = None,
    ) -> ReportRow:
        return await self._apply_movement(
            session,
            item_id=item_id,
            size=size,
            quantity=quantity,
            movement=MovementType.RETURN,
            note=note,
        )

    # ---------------- period close ----------------

    async def reset_beginning_inventory(
        self,
        session: AsyncSession,
        item_id: int,
        *,
        size: Optional[str] = None,
    ) -> List[PeriodCloseResult]:
        """
        期间结转：beginning := ending；purchases / released / returns 清零；period_no + 1。

        每个 variant 一条 UPDATE，SET 右侧全部读取更新前的行值，结转原子完成。
        WHERE 要求本期有变动：无变动时不改任何东西（重复结转为空操作）。
        """
        item = await self._load_item(session, item_id, require_active=False)
        targets = pick_variants(item, size)
        now = self._now()

        results: List[PeriodCloseResult] = []
        for variant in targets:
            stmt = (
                update(SizeVariant)
                .where(SizeVariant.id == variant.id)
                .where(
                    or_(
                        SizeVariant.purchases != 0,
                        SizeVariant.released != 0,
                        SizeVariant.returns != 0,
                    )
                )
                .values(
                    beginning_inventory=SizeVariant.beginning_inventory
                    + SizeVariant.purchases
                    - SizeVariant.released
                    + SizeVariant.returns,
                    purchases=0,
                    released=0,
                    returns=0,
                    period_no=SizeVariant.period_no + 1,
                    period_started_at=now,
                    updated_at=now,
                )
                .returning(SizeVariant.beginning_inventory, SizeVariant.period_no)
                .execution_options(synchronize_session=False)
            )
            returned = (await session.execute(stmt)).one_or_none()
            await session.refresh(variant)

            if returned is None:
                log.info(
                    "period close skipped item=%s size=%r period=%s (no movement)",
                    item.id,
                    variant.size,
                    variant.period_no,
                )
                results.append(
                    PeriodCloseResult(
                        row=self._row(item, variant),
                        closed=False,
                        closed_period_no=None,
                        period_no=variant.period_no,
                    )
                )
                continue

            beginning, period_no = returned
            await write_movement(
                session,
                item_id=item.id,
                variant_id=variant.id,
                period_no=period_no - 1,
                reason=MovementType.PERIOD_CLOSE,
                delta=0,
                ending_before=beginning,
                ending_after=beginning,
                occurred_at=now,
                note=f"period {period_no - 1} closed",
            )
            STOCK_MOVEMENTS.labels(reason=MovementType.PERIOD_CLOSE.value).inc()
            log.info(
                "period closed item=%s size=%r period %s->%s beginning=%s",
                item.id,
                variant.size,
                period_no - 1,
                period_no,
                beginning,
            )
            results.append(
                PeriodCloseResult(
                    row=self._row(item, variant),
                    closed=True,
                    closed_period_no=period_no - 1,
                    period_no=period_no,
                )
            )
        return results

    # ---------------- reorder point ----------------

    async def set_reorder_point(
        self,
        session: AsyncSession,
        item_id: int,
        reorder_point: int,
        *,
        size: Optional[str] = None,
    ) -> List[ReportRow]:
        rp = _non_negative_int(reorder_point, "reorder_point")
        item = await self._load_item(session, item_id, require_active=False)
        targets = pick_variants(item, size)
        now = self._now()

        ids = [v.id for v in targets]
        await session.execute(
            update(SizeVariant)
            .where(SizeVariant.id.in_(ids))
            .values(reorder_point=rp, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if len(targets) == len(item.variants):
            item.reorder_point = rp
            await session.flush()

        rows: List[ReportRow] = []
        for v in targets:
            await session.refresh(v)
            rows.append(self._row(item, v))
        log.info("reorder point set item=%s sizes=%s reorder_point=%s", item.id, [v.size for v in targets], rp)
        return rows

    # ---------------- history ----------------

    async def list_movements(
        self,
        session: AsyncSession,
        item_id: int,
        *,
        size: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[StockMovement]:
        """流水按时间倒序（同一时刻按 id 倒序）。"""
        item = await self._load_item(session, item_id, require_active=False)
        stmt = select(StockMovement).where(StockMovement.item_id == item.id)
        if _selector(size) is not None:
            stmt = stmt.where(StockMovement.variant_id == pick_variant(item, size).id)
        stmt = (
            stmt.order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
            .limit(max(1, min(int(limit), 500)))
            .offset(max(0, int(offset)))
        )
        return (await session.execute(stmt)).scalars().all()
