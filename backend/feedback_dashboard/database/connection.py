"""
connection.py
-------------
FeedbackStore: the storage handle handed to every request.

- provision(): creates the database (MySQL) and the `feedbacks` table,
  then opens the async connection pool
- session(): async session from the pool, ServiceUnavailable before provisioning
- create / list_all / stats: the parameterized queries of the API
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import case, func
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from feedback_dashboard.config import Settings
from feedback_dashboard.errors import ServiceUnavailable
from feedback_dashboard.models.feedback import Feedback, FeedbackCreate, FeedbackStats

logger = logging.getLogger(__name__)

# Backends that understand CREATE DATABASE IF NOT EXISTS
SERVER_BACKENDS = ("mysql", "mariadb")


class FeedbackStore:
    def __init__(self, url: str | URL, pool_size: int = 10, echo: bool = False, **engine_kwargs: Any):
        self.url = make_url(url) if isinstance(url, str) else url
        self.pool_size = pool_size
        self.echo = echo
        self.engine_kwargs = engine_kwargs
        self.engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeedbackStore":
        return cls(settings.sqlalchemy_url(), pool_size=settings.db_pool_size, echo=settings.db_echo)

    @property
    def ready(self) -> bool:
        return self._sessions is not None

    # -------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------
    async def provision(self) -> None:
        """Ensure database and table exist. Raises on failure, the caller must not serve traffic."""
        if self.ready:
            return

        engine = None
        try:
            await self._create_database()
            engine = self._create_engine()
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except Exception:
            logger.exception("Provisioning of %s failed", self.url.render_as_string(hide_password=True))
            if engine is not None:
                await engine.dispose()
            raise

        self.engine = engine
        self._sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Storage ready: %s", self.url.render_as_string(hide_password=True))

    async def _create_database(self) -> None:
        if self.url.get_backend_name() not in SERVER_BACKENDS or not self.url.database:
            return

        server_engine = create_async_engine(
            self.url.set(database=None),
            poolclass=NullPool,
            isolation_level="AUTOCOMMIT",
        )
        try:
            quoted = server_engine.dialect.identifier_preparer.quote_identifier(self.url.database)
            async with server_engine.connect() as conn:
                await conn.exec_driver_sql(f"CREATE DATABASE IF NOT EXISTS {quoted}")
        finally:
            await server_engine.dispose()

    def _create_engine(self) -> AsyncEngine:
        kwargs = dict(self.engine_kwargs)
        if self.url.get_backend_name() != "sqlite":
            # Requests beyond the pool size wait for a connection
            kwargs.setdefault("pool_size", self.pool_size)
            kwargs.setdefault("max_overflow", 0)
            kwargs.setdefault("pool_pre_ping", True)
        return create_async_engine(self.url, echo=self.echo, **kwargs)

    async def dispose(self) -> None:
        self._sessions = None
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    # -------------------------------------------------------------
    # Sessions and queries
    # -------------------------------------------------------------
    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessions is None:
            raise ServiceUnavailable()
        async with self._sessions() as session:
            yield session

    async def create(self, data: FeedbackCreate) -> Feedback:
        """Insert a row and return it as stored (re-read after commit)."""
        async with self.session() as session:
            feedback = Feedback(
                name=data.name,
                email=data.email or None,
                message=data.message,
                rating=data.rating,
            )
            session.add(feedback)
            await session.commit()
            await session.refresh(feedback)
            return feedback

    async def list_all(self) -> list[Feedback]:
        async with self.session() as session:
            statement = select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc())
            result = await session.exec(statement)
            return list(result.all())

    async def stats(self) -> FeedbackStats:
        """Aggregate snapshot. A rating of 3 counts as neither positive nor negative."""
        statement = select(
            func.count(Feedback.id),
            func.avg(Feedback.rating),
            func.sum(case((Feedback.rating >= 4, 1), else_=0)),
            func.sum(case((Feedback.rating < 3, 1), else_=0)),
        )
        async with self.session() as session:
            result = await session.exec(statement)
            total, avg_rating, positive, negative = result.one()

        return FeedbackStats(
            total=total or 0,
            avgRating=float(avg_rating or 0),
            positive=int(positive or 0),
            negative=int(negative or 0),
        )
