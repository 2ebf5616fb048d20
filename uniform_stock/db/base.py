# uniform_stock/db/base.py
from __future__ import annotations

import importlib
import logging
from typing import List

from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("uniform_stock.models")


class Base(DeclarativeBase):
    """全局唯一 ORM Base"""

    pass


_INITIALIZED: bool = False  # 防重复初始化

_MODEL_MODULES = (
    "uniform_stock.models.item",
    "uniform_stock.models.size_variant",
    "uniform_stock.models.stock_movement",
)


def init_models(*, force: bool = False) -> None:
    """
    集中导入模型 + 固化关系映射：
      1) 按固定顺序导入模型模块（保证字符串关系目标类已注册）
      2) 统一 configure_mappers()
    """
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    loaded: List[str] = []
    for mod in _MODEL_MODULES:
        importlib.import_module(mod)
        loaded.append(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (loaded %d modules)", len(loaded))
