# uniform_stock/domain/variants.py
"""
Variant Resolver：把一条（历史格式的）商品记录展开成有序的尺码 variant 列表。

解析顺序（先成功者胜出）：

  1) structured  note 字段里的 JSON：
                   {"_type": "sizeVariations", "sizeVariations": [{"size": "M", ...}, ...]}
                 每个条目自带计数（缺省为 0）；reorder_point / 单价缺省继承商品级
  2) delimited   size 字段为多个分隔的尺码（"S, M, L"），每个尺码继承商品级计数
  3) single      仅一个隐式 variant，标签取 size 字段或兜底标签（N/A）

解析失败不抛异常，记 warning 后降级到下一策略。本模块只读，不做任何写入；
历史编码仅用于一次性导入，稳态存储是 size_variants 规范化表。
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

log = logging.getLogger(__name__)

STRUCTURED = "structured"
DELIMITED = "delimited"
SINGLE = "single"

STRUCTURED_TYPE_TAG = "sizeVariations"

_SIZE_SPLIT_RE = re.compile(r"[,;|]")
_COUNTER_KEYS = ("beginning_inventory", "purchases", "released", "returns")
_ZERO_COUNTERS = {k: 0 for k in _COUNTER_KEYS}


@dataclass(frozen=True)
class ResolvedVariant:
    size: str
    beginning_inventory: int = 0
    purchases: int = 0
    released: int = 0
    returns: int = 0
    reorder_point: int = 0
    unit_price: Optional[Decimal] = None


@dataclass
class VariantResolution:
    strategy: str
    variants: List[ResolvedVariant]
    warnings: List[str] = field(default_factory=list)

    @property
    def sizes(self) -> List[str]:
        return [v.size for v in self.variants]


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        f = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if f != f or f in (float("inf"), float("-inf")):
        return default
    return int(f)


def _to_price(value: Any) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def _clean_label(value: Any) -> str:
    return " ".join(str(value or "").split())


def _counters(src: Mapping[str, Any], fallback: Mapping[str, int]) -> dict:
    """
    取四个期间计数；条目一个计数都没有时：
      - 带历史原始库存 stock → 视为期初库存导入
      - 否则继承 fallback
    """
    if any(src.get(k) is not None for k in _COUNTER_KEYS):
        return {k: _to_int(src.get(k)) for k in _COUNTER_KEYS}
    if src.get("stock") is not None:
        return {
            "beginning_inventory": _to_int(src.get("stock")),
            "purchases": 0,
            "released": 0,
            "returns": 0,
        }
    return dict(fallback)


def _parse_structured(
    note: Any,
    *,
    item_reorder_point: int,
    item_price: Optional[Decimal],
    warnings: List[str],
) -> List[ResolvedVariant]:
    if note is None or note == "":
        return []

    payload = note
    if isinstance(note, (str, bytes)):
        text = note.decode() if isinstance(note, bytes) else note
        text = text.strip()
        # 普通备注（非 JSON）不算格式错误
        if not text.startswith(("{", "[")):
            return []
        try:
            payload = json.loads(text)
        except ValueError as e:
            warnings.append(f"malformed sizeVariations JSON: {e}")
            return []

    if not isinstance(payload, Mapping) or payload.get("_type") != STRUCTURED_TYPE_TAG:
        return []

    entries = payload.get(STRUCTURED_TYPE_TAG)
    if not isinstance(entries, list):
        warnings.append("sizeVariations is not a list")
        return []

    out: List[ResolvedVariant] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            warnings.append(f"sizeVariations[{i}] is not an object")
            continue
        label = _clean_label(entry.get("size"))
        if not label:
            warnings.append(f"sizeVariations[{i}] has no size")
            continue
        key = label.casefold()
        if key in seen:
            warnings.append(f"sizeVariations[{i}] duplicates size {label!r}")
            continue
        seen.add(key)

        rp = entry.get("reorder_point")
        # 显式 0 也是条目自带的补货点；缺失或非法才继承商品级
        own_rp = -1 if rp is None else _to_int(rp, -1)
        price = _to_price(entry.get("unit_price", entry.get("price")))
        out.append(
            ResolvedVariant(
                size=label,
                reorder_point=own_rp if own_rp >= 0 else item_reorder_point,
                unit_price=price if price is not None else item_price,
                **_counters(entry, _ZERO_COUNTERS),
            )
        )
    return out


def split_size_labels(size: Any) -> List[str]:
    """'S, M , L' → ['S', 'M', 'L']（去空、按大小写不敏感去重、保持原顺序）"""
    out: List[str] = []
    seen: set[str] = set()
    for part in _SIZE_SPLIT_RE.split(str(size or "")):
        label = _clean_label(part)
        if label and label.casefold() not in seen:
            seen.add(label.casefold())
            out.append(label)
    return out


def resolve_variants(record: Mapping[str, Any], *, default_label: str = "N/A") -> VariantResolution:
    warnings: List[str] = []

    item_counters = _counters(record, _ZERO_COUNTERS)
    item_rp = _to_int(record.get("reorder_point"))
    item_price = _to_price(record.get("unit_price", record.get("price")))

    # 1) structured
    structured = _parse_structured(
        record.get("note"),
        item_reorder_point=item_rp,
        item_price=item_price,
        warnings=warnings,
    )
    if structured:
        return _finish(VariantResolution(STRUCTURED, structured, warnings), record)

    # 2) delimited
    labels = split_size_labels(record.get("size"))
    if len(labels) > 1:
        variants = [
            ResolvedVariant(size=label, reorder_point=item_rp, unit_price=item_price, **item_counters)
            for label in labels
        ]
        return _finish(VariantResolution(DELIMITED, variants, warnings), record)

    # 3) single
    label = labels[0] if labels else (_clean_label(default_label) or "N/A")
    single = ResolvedVariant(size=label, reorder_point=item_rp, unit_price=item_price, **item_counters)
    return _finish(VariantResolution(SINGLE, [single], warnings), record)


def _finish(res: VariantResolution, record: Mapping[str, Any]) -> VariantResolution:
    if res.warnings:
        log.warning(
            "variant encoding warnings (resolved as %s) for item %r: %s",
            res.strategy,
            record.get("id") or record.get("name"),
            "; ".join(res.warnings),
        )
    return res
