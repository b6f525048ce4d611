from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from sql_forwarder.core.models import ExtractionBatch
from sql_forwarder.errors import DataSourceError
from sql_forwarder.utils.logging import get_logger


class DataSource(Protocol):
    """Protocol for relational data sources."""

    def ensure_connected(self) -> None: ...

    def execute_query(self, sql: str) -> ExtractionBatch: ...

    def close(self) -> None: ...


class SqlDataSource:
    """
    SQLAlchemy-backed data source holding one shared connection.

    The connection is opened lazily and re-opened by ``ensure_connected`` when
    it was closed or invalidated by a previous failure.
    """

    def __init__(self, url: str, engine: Optional[Engine] = None):
        self.url = url
        self._engine = engine
        self._conn: Optional[Connection] = None
        self.log = get_logger("sql_forwarder.source")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.url, pool_pre_ping=True)
        return self._engine

    def ensure_connected(self) -> None:
        """Open the connection if there is none or the old one is unusable."""
        if self._conn is not None and not self._conn.closed and not self._conn.invalidated:
            return

        if self._conn is not None:
            self._discard()

        self.log.info("Opening SQL connection")
        try:
            self._conn = self.engine.connect()
        except SQLAlchemyError as e:
            self._conn = None
            raise DataSourceError(f"Could not open SQL connection: {e}") from e

    def execute_query(self, sql: str) -> ExtractionBatch:
        """Run ``sql`` and return every row it produced."""
        if self._conn is None or self._conn.closed:
            raise DataSourceError("SQL connection not open")

        try:
            result = self._conn.execute(text(sql))
            columns = list(result.keys())
            rows = [dict(m) for m in result.mappings().all()]
            # Read-only work; end the implicit transaction so the next tick sees new rows
            self._conn.rollback()
        except SQLAlchemyError as e:
            self._discard()
            raise DataSourceError(f"Query execution failed: {e}") from e

        self.log.info("%s rows retrieved", len(rows))
        return ExtractionBatch(columns=columns, rows=rows)

    def close(self) -> None:
        self._discard()
        if self._engine is not None:
            self._engine.dispose()

    def _discard(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except SQLAlchemyError as e:
            self.log.warning("Error closing SQL connection: %s", type(e).__name__)
        self._conn = None
