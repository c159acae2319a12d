"""
Backend Interfaces
==================

Thin execution adapters. Backends know nothing about guards, rewrites or
repairs: they run what they are given and raise ``ExecutionError`` when the
store rejects it.
"""

from abc import ABC, abstractmethod
from typing import Any

Columns = list[str]
Rows = list[tuple[Any, ...]]


def unique_columns(names: list[str]) -> Columns:
    """Suffix repeated column names (``id``, ``id_2``) so every column is addressable."""
    seen: dict[str, int] = {}
    result = []
    for name in names:
        count = seen.get(name, 0) + 1
        seen[name] = count
        result.append(name if count == 1 else f"{name}_{count}")
    return result


class Backend(ABC):
    """Base class for all backends."""

    def close(self) -> None:
        """Release pooled connections."""


class SqlBackend(Backend):
    """A relational store that executes SQL text."""

    @abstractmethod
    def run(self, sql: str, max_rows: int) -> tuple[Columns, Rows]:
        """
        Execute a read-only statement.

        Args:
            sql: Validated, capped statement
            max_rows: Upper bound on rows fetched

        Returns:
            Tuple of (column names, rows)

        Raises:
            ExecutionError: the store rejected the statement
        """
        pass


class DocumentBackend(Backend):
    """A document store queried with an equality filter."""

    @abstractmethod
    def find(
        self,
        collection: str,
        filter: dict[str, Any],
        columns: list[str],
        limit: int,
    ) -> tuple[Columns, Rows]:
        """
        Run a filtered find on one collection.

        Args:
            collection: Collection name
            filter: Conjunctive equality filter
            columns: Fields to return; empty means every field
            limit: Maximum number of documents

        Returns:
            Tuple of (column names, rows)

        Raises:
            ExecutionError: the store rejected the query
        """
        pass
