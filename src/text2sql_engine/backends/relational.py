"""
SQLAlchemy Backend
==================

Relational execution over a pooled SQLAlchemy engine (MySQL via PyMySQL,
PostgreSQL via psycopg, or anything else SQLAlchemy can reach).
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from text2sql_engine.backends.base import Columns, Rows, SqlBackend, unique_columns
from text2sql_engine.errors import ExecutionError
from text2sql_engine.observability.logging_config import get_logger

logger = get_logger(__name__)


class SqlAlchemyBackend(SqlBackend):
    """Executes statements on a SQLAlchemy ``Engine``."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_url(
        cls,
        url: str,
        pool_size: int = 5,
        pool_recycle: int = 1800,
    ) -> "SqlAlchemyBackend":
        engine = create_engine(
            url,
            pool_size=pool_size,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
        )
        return cls(engine)

    def run(self, sql: str, max_rows: int) -> tuple[Columns, Rows]:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql))
                if not result.returns_rows:
                    return [], []
                columns = unique_columns([str(k) for k in result.keys()])
                fetched = result.fetchmany(max_rows) if max_rows > 0 else result.fetchall()
                return columns, [tuple(row) for row in fetched]
        except SQLAlchemyError as e:
            # Driver message only: it is what the repair heuristics match on
            message = str(getattr(e, "orig", None) or e)
            logger.debug("Statement rejected by backend", error=message)
            raise ExecutionError(message) from e

    def close(self) -> None:
        self.engine.dispose()
