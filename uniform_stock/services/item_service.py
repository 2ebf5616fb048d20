# uniform_stock/services/item_service.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from uniform_stock.domain.variants import ResolvedVariant, VariantResolution, resolve_variants, split_size_labels
from uniform_stock.metrics import VARIANT_ENCODING_WARNINGS
from uniform_stock.models.enums import parse_education_level
from uniform_stock.models.item import Item
from uniform_stock.models.size_variant import SizeVariant
from uniform_stock.services.errors import InventoryValidationError, ItemNotFound

log = logging.getLogger(__name__)

VariantSpec = Union[ResolvedVariant, Mapping[str, Any]]


def _price_or_none(value: Any, field: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InventoryValidationError(field, f"{field} must be a number") from None
    if not d.is_finite() or d < 0:
        raise InventoryValidationError(field, f"{field} must be a non-negative number")
    return d


def _non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InventoryValidationError(field, f"{field} must be a non-negative integer")
    return value


class ItemService:
    """
    目录侧最小能力（目录管理本身在外部系统）：

    - create_item          建商品 + 规范化 variant 行（至少一个隐式 variant）
    - import_legacy_item   历史记录一次性迁移（note JSON / 逗号尺码 / 单尺码）
    - get_item             按 id 取商品（不存在抛 ItemNotFound）
    """

    def __init__(self, *, default_size_label: str = "N/A") -> None:
        self.default_size_label = default_size_label

    async def create_item(
        self,
        session: AsyncSession,
        *,
        name: str,
        education_level: str,
        unit_price: Any = None,
        reorder_point: int = 0,
        is_active: bool = True,
        sizes: Optional[Iterable[str]] = None,
        variants: Optional[Sequence[VariantSpec]] = None,
    ) -> Item:
        name_val = " ".join((name or "").split())
        if not name_val:
            raise InventoryValidationError("name", "name is required")
        try:
            level = parse_education_level(education_level)
        except ValueError as e:
            raise InventoryValidationError("education_level", str(e)) from None
        if level is None:
            raise InventoryValidationError("education_level", "education_level is required")

        price = _price_or_none(unit_price, "unit_price")
        rp = _non_negative_int(reorder_point, "reorder_point")

        rows = self._variant_rows(variants=variants, sizes=sizes, reorder_point=rp)

        item = Item(
            name=name_val,
            education_level=level.value,
            unit_price=price,
            reorder_point=rp,
            is_active=bool(is_active),
            variants=rows,
        )
        session.add(item)
        await session.flush()

        log.info(
            "item created id=%s name=%r level=%s sizes=%s",
            item.id,
            item.name,
            item.education_level,
            [v.size for v in rows],
        )
        return item

    def _variant_rows(
        self,
        *,
        variants: Optional[Sequence[VariantSpec]],
        sizes: Optional[Iterable[str]],
        reorder_point: int,
    ) -> list[SizeVariant]:
        specs: list[ResolvedVariant] = []
        if variants:
            for i, v in enumerate(variants):
                if isinstance(v, ResolvedVariant):
                    specs.append(v)
                    continue
                label = " ".join(str(v.get("size") or "").split())
                if not label:
                    raise InventoryValidationError(f"variants[{i}].size", "size is required")
                specs.append(
                    ResolvedVariant(
                        size=label,
                        beginning_inventory=_non_negative_int(
                            v.get("beginning_inventory", 0), f"variants[{i}].beginning_inventory"
                        ),
                        reorder_point=_non_negative_int(
                            v.get("reorder_point", reorder_point), f"variants[{i}].reorder_point"
                        ),
                        unit_price=_price_or_none(v.get("unit_price"), f"variants[{i}].unit_price"),
                    )
                )
        else:
            labels = split_size_labels(",".join(sizes or []))
            if not labels:
                labels = [self.default_size_label]
            specs = [ResolvedVariant(size=label, reorder_point=reorder_point) for label in labels]

        seen: set[str] = set()
        rows: list[SizeVariant] = []
        for s in specs:
            key = s.size.casefold()
            if key in seen:
                raise InventoryValidationError("variants", f"duplicate size {s.size!r}")
            seen.add(key)
            rows.append(
                SizeVariant(
                    size=s.size,
                    beginning_inventory=s.beginning_inventory,
                    purchases=s.purchases,
                    released=s.released,
                    returns=s.returns,
                    reorder_point=s.reorder_point,
                    unit_price=s.unit_price,
                    period_no=1,
                )
            )
        return rows

    async def import_legacy_item(
        self,
        session: AsyncSession,
        record: Mapping[str, Any],
    ) -> Tuple[Item, VariantResolution]:
        """
        历史商品记录 → 规范化表（一次性迁移）。

        解析失败只降级不报错；告警写日志并计数，迁移结果里保留 warnings 供核对。
        历史计数原样导入（负数也不截断）。
        """
        resolution = resolve_variants(record, default_label=self.default_size_label)
        if resolution.warnings:
            VARIANT_ENCODING_WARNINGS.labels(strategy=resolution.strategy).inc(len(resolution.warnings))

        try:
            level = parse_education_level(record.get("education_level"))
        except ValueError as e:
            raise InventoryValidationError("education_level", str(e)) from None
        if level is None:
            raise InventoryValidationError("education_level", "education_level is required")
        name_val = " ".join(str(record.get("name") or "").split())
        if not name_val:
            raise InventoryValidationError("name", "name is required")

        item = Item(
            name=name_val,
            education_level=level.value,
            unit_price=_price_or_none(record.get("unit_price", record.get("price")), "unit_price"),
            reorder_point=max(resolution.variants[0].reorder_point, 0) if resolution.variants else 0,
            is_active=bool(record.get("is_active", True)),
            variants=[
                SizeVariant(
                    size=v.size,
                    beginning_inventory=v.beginning_inventory,
                    purchases=v.purchases,
                    released=v.released,
                    returns=v.returns,
                    reorder_point=max(v.reorder_point, 0),
                    unit_price=v.unit_price,
                    period_no=1,
                )
                for v in resolution.variants
            ],
        )
        if record.get("created_at") is not None:
            item.created_at = record["created_at"]
        session.add(item)
        await session.flush()

        log.info(
            "legacy item imported id=%s name=%r strategy=%s sizes=%s",
            item.id,
            item.name,
            resolution.strategy,
            resolution.sizes,
        )
        return item, resolution

    async def get_item(self, session: AsyncSession, item_id: int) -> Item:
        item = await session.get(Item, int(item_id)) if item_id and int(item_id) > 0 else None
        if item is None:
            raise ItemNotFound(item_id)
        return item
