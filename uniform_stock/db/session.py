# uniform_stock/db/session.py
# 统一的异步会话工厂 + FastAPI 依赖（get_session）
from __future__ import annotations

import logging
import re
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from uniform_stock.core.config import get_settings

log = logging.getLogger(__name__)


# ---- DSN 归一：统一到 psycopg3 与 aiosqlite ----
def normalize_async_dsn(url: str) -> str:
    url = (url or "").strip()
    # 有些环境会把值写成 '"postgresql+psycopg://..."'，统一剥掉两侧引号
    if (url.startswith('"') and url.endswith('"')) or (url.startswith("'") and url.endswith("'")):
        url = url[1:-1].strip()
    if not url:
        return "sqlite+aiosqlite:///./uniform_stock.db"
    # sqlite:/// → sqlite+aiosqlite:///
    if url.startswith("sqlite://") and not url.startswith("sqlite+"):
        return "sqlite+aiosqlite://" + url[len("sqlite://") :]
    # postgres/postgresql(+*) → postgresql+psycopg
    if url.startswith("postgresql+asyncpg://") or url.startswith("postgres+asyncpg://"):
        return re.sub(r"^postgres(?:ql)?\+asyncpg://", "postgresql+psycopg://", url)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _connect_args_for(url_str: str) -> dict[str, Any]:
    backend = make_url(url_str).get_backend_name()
    if backend.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": 30}
    return {}


def create_engine_for(url_str: str, *, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    dsn = normalize_async_dsn(url_str)
    if make_url(dsn).get_backend_name().startswith("postgresql"):
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(dsn, echo=echo, connect_args=_connect_args_for(dsn), **kwargs)


_settings = get_settings()
ASYNC_URL = normalize_async_dsn(_settings.DATABASE_URL)

async_engine: AsyncEngine = create_engine_for(ASYNC_URL, echo=_settings.SQL_ECHO)

AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

log.info("[DB] Using DSN (async): %s", make_url(ASYNC_URL).render_as_string(hide_password=True))


# ---- FastAPI 依赖 ----
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ---- 关闭引擎（测试/生命周期） ----
async def close_engines() -> None:
    await async_engine.dispose()
