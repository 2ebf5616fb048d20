from .enums import EducationLevel, MovementType, StockStatus
from .item import Item
from .size_variant import SizeVariant
from .stock_movement import StockMovement

__all__ = [
    "EducationLevel",
    "Item",
    "MovementType",
    "SizeVariant",
    "StockMovement",
    "StockStatus",
]
