# tests/conftest.py
from __future__ import annotations

import os
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# ============================================================
# 在 import uniform_stock.main 之前固定测试配置
# ============================================================
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REPORT_TZ", "UTC")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from uniform_stock.db.base import Base  # noqa: E402
from uniform_stock.db.session import create_engine_for, get_session  # noqa: E402
from uniform_stock.main import app  # noqa: E402


# =========================================
# 每用例独立 SQLite 文件库（NullPool，避免跨 loop）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'stock.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
def async_session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(async_session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    标准 Session（自动 commit / rollback）
    """
    async with async_session_maker() as sess:
        try:
            yield sess
            if sess.in_transaction():
                await sess.commit()
        except Exception:
            if sess.in_transaction():
                await sess.rollback()
            raise


# =========================================
# FastAPI / httpx AsyncClient（get_session 指向测试库）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def client(async_session_maker) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_get_session
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://testserver",
            timeout=httpx.Timeout(10.0, connect=5.0, read=10.0, write=5.0, pool=5.0),
        ) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_session, None)
