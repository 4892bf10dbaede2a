"""SQLAlchemy-backed datastore.

Implements the Datastore protocol on top of the tables in
ci_models.datastore.tables. Each operation runs its synchronous
SQLAlchemy work in a worker thread with its own transactional session,
so callers can await it from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ci_models.datastore.base import Row
from ci_models.datastore.tables import TABLES
from ci_models.db import (
    Base,
    create_all_tables,
    get_engine,
    get_session,
    get_session_factory,
)
from ci_models.errors import ModelError, UnknownModelError

logger = logging.getLogger(__name__)


def _table_for(name: str) -> type[Base]:
    try:
        return TABLES[name]
    except KeyError:
        raise UnknownModelError(name) from None


def _row_to_dict(row: Base) -> Row:
    """Convert an ORM row to a plain dict keyed by column name."""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class SqlDatastore:
    """Datastore storing rows in a SQL database.

    Args:
        engine: SQLAlchemy engine. Created from settings if neither engine
            nor session_factory is provided.
        session_factory: Optional session factory bound to the engine.
    """

    def __init__(
        self,
        engine: Any | None = None,
        session_factory: sessionmaker[Session] | None = None,
    ) -> None:
        if engine is None and session_factory is None:
            engine = get_engine()
        if session_factory is None:
            session_factory = get_session_factory(engine)
        self._engine = engine if engine is not None else session_factory.kw.get("bind")
        self._session_factory = session_factory

    def create_tables(self) -> None:
        """Create all datastore tables if they do not exist."""
        create_all_tables(self._engine)

    def dispose(self) -> None:
        """Release pooled connections held by the engine."""
        if self._engine is not None:
            self._engine.dispose()

    async def get(self, query: Mapping[str, Any]) -> Row | None:
        """Fetch one row by id, or None if absent."""
        return await asyncio.to_thread(self._get, query)

    async def scan(self, query: Mapping[str, Any]) -> list[Row]:
        """List rows matching equality filters, one page at a time."""
        return await asyncio.to_thread(self._scan, query)

    async def create(self, query: Mapping[str, Any]) -> Row:
        """Insert a row and return it."""
        return await asyncio.to_thread(self._create, query)

    async def update(self, query: Mapping[str, Any]) -> Row | None:
        """Apply a change set to a row; None if the row does not exist."""
        return await asyncio.to_thread(self._update, query)

    def _get(self, query: Mapping[str, Any]) -> Row | None:
        table = _table_for(query["table"])
        with get_session(self._session_factory) as session:
            row = session.get(table, query["params"]["id"])
            return _row_to_dict(row) if row is not None else None

    def _scan(self, query: Mapping[str, Any]) -> list[Row]:
        table = _table_for(query["table"])
        params = query.get("params") or {}
        paginate = query.get("paginate") or {}
        columns = table.__table__.columns

        stmt = select(table)
        for key, value in params.items():
            if key not in columns:
                raise ModelError(
                    f"Unknown column '{key}' for table {query['table']}",
                    code="invalid_filter",
                )
            stmt = stmt.where(columns[key] == value)
        stmt = stmt.order_by(columns["id"])

        count = paginate.get("count")
        if count:
            page = max(int(paginate.get("page", 1)), 1)
            stmt = stmt.limit(count).offset((page - 1) * count)

        with get_session(self._session_factory) as session:
            rows = session.execute(stmt).scalars().all()
            logger.debug("Scanned %d row(s) from %s", len(rows), query["table"])
            return [_row_to_dict(row) for row in rows]

    def _create(self, query: Mapping[str, Any]) -> Row:
        table = _table_for(query["table"])
        with get_session(self._session_factory) as session:
            row = table(**query["params"])
            session.add(row)
            session.flush()
            logger.debug("Created %s row %s", query["table"], row.id)
            return _row_to_dict(row)

    def _update(self, query: Mapping[str, Any]) -> Row | None:
        table = _table_for(query["table"])
        params = query["params"]
        with get_session(self._session_factory) as session:
            row = session.get(table, params["id"])
            if row is None:
                logger.warning(
                    "Update of missing %s row %s ignored", query["table"], params["id"]
                )
                return None
            for key, value in params["data"].items():
                setattr(row, key, value)
            session.flush()
            return _row_to_dict(row)


__all__ = ["SqlDatastore"]
