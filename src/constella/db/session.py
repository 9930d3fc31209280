"""Database store handles.

Each service owns a :class:`Database` built by its application factory and
kept on ``app.state.database``. Request handlers receive sessions through
:func:`get_db`; nothing here is a module-level engine.
"""

from __future__ import annotations

from collections.abc import Generator, Iterable
from typing import Any

from fastapi import Request
from sqlalchemy import Table, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


class Database:
    """Engine and session factory for one service's tables."""

    def __init__(
        self,
        url: str,
        tables: Iterable[Table] | None = None,
        *,
        echo: bool = False,
        engine: Engine | None = None,
    ) -> None:
        connect_args: dict[str, Any] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine = engine or create_engine(
            url,
            pool_pre_ping=True,
            echo=echo,
            connect_args=connect_args,
        )
        self.tables = list(tables) if tables is not None else None
        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    def session(self) -> Session:
        """Open a new session bound to this database."""
        return self.session_factory()

    def create_tables(self) -> None:
        """Create this service's tables."""
        Base.metadata.create_all(bind=self.engine, tables=self.tables)

    def drop_tables(self) -> None:
        """Drop this service's tables."""
        Base.metadata.drop_all(bind=self.engine, tables=self.tables)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
