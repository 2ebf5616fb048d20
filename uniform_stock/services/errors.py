# uniform_stock/services/errors.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class InventoryError(Exception):
    """库存领域错误基类；HTTP 层按 error_code / http_status 翻译成 Problem。"""

    error_code = "inventory_error"
    http_status = 400

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    @property
    def details(self) -> List[Dict[str, Any]]:
        return []


class InventoryValidationError(InventoryError):
    error_code = "validation_error"
    http_status = 422

    def __init__(self, field: str, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context=context)
        self.field = field

    @property
    def details(self) -> List[Dict[str, Any]]:
        return [{"type": "validation", "path": self.field, "reason": self.message}]


class AmbiguousVariant(InventoryValidationError):
    """尺码选择器命中 0 个或多个 variant；附带候选列表便于调用方消歧。"""

    error_code = "ambiguous_variant"

    def __init__(self, item_id: int, selector: Optional[str], candidates: Sequence[str]):
        self.selector = selector
        self.candidates = list(candidates)
        if selector is None:
            msg = f"item {item_id} has {len(self.candidates)} size variants; a size is required"
        else:
            msg = f"size {selector!r} does not match exactly one variant of item {item_id}"
        super().__init__("size", msg, context={"item_id": item_id, "size": selector})

    @property
    def details(self) -> List[Dict[str, Any]]:
        return [
            {
                "type": "validation",
                "path": "size",
                "reason": self.message,
                "candidates": self.candidates,
            }
        ]


class ItemNotFound(InventoryError):
    error_code = "item_not_found"
    http_status = 404

    def __init__(self, item_id: int):
        super().__init__(f"item {item_id} not found", context={"item_id": item_id})
        self.item_id = item_id


class InactiveItem(InventoryError):
    error_code = "item_inactive"
    http_status = 409

    def __init__(self, item_id: int):
        super().__init__(f"item {item_id} is not active", context={"item_id": item_id})
        self.item_id = item_id
