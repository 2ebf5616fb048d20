# uniform_stock/db/uow.py
"""
Unit of Work（UoW）：统一管理 AsyncSession 的事务边界。

    async with UnitOfWork(AsyncSessionLocal) as uow:
        await svc.add_stock(uow.session, ...)

    async with UnitOfWork(session) as uow:   # 复用外部 session
        ...

- 无异常 -> commit
- 有异常 -> rollback（被拒绝的写操作不会留下任何部分更新）
- 只有 UoW 自己创建的 session 才负责 close
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

AsyncSessionFactory = Callable[[], AsyncSession]
SessionOrFactory = Union[AsyncSession, AsyncSessionFactory]


class UnitOfWork(AbstractAsyncContextManager):
    def __init__(self, session_or_factory: SessionOrFactory) -> None:
        self._session_or_factory = session_or_factory
        self.session: Optional[AsyncSession] = None
        self._owns_session: bool = False

    async def __aenter__(self) -> "UnitOfWork":
        if isinstance(self._session_or_factory, AsyncSession):
            self.session = self._session_or_factory
            self._owns_session = False
        else:
            factory = self._session_or_factory
            if not callable(factory):
                raise TypeError("UnitOfWork 期望传入 AsyncSession 或 async_sessionmaker。")
            self.session = factory()
            self._owns_session = True

        if not isinstance(self.session, AsyncSession):
            raise TypeError("async with UnitOfWork(...) 需要 AsyncSession。")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if self.session is None:
            return False

        try:
            if exc_type:
                await self.session.rollback()
            else:
                await self.session.commit()
        finally:
            if self._owns_session:
                try:
                    await self.session.close()
                finally:
                    self.session = None
        # False -> 异常继续向外抛
        return False
