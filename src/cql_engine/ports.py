"""
Database access port consumed by every reconciler.

- Database: protocol for anything that can run CQL (driver session, fakes, ...)
- open_cursor: scoped cursor acquisition; the cursor is closed on every exit path
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Protocol


class Database(Protocol):
    """Port for implementations that can execute CQL against one cluster."""

    def exec(self, statement: str, *args: Any) -> None:
        """Run a statement that returns no rows. Raises on failure."""
        ...

    def query(self, statement: str, *args: Any) -> Any:
        """Run a query and return an opaque cursor over its rows."""
        ...

    def scan(self, cursor: Any) -> Sequence[Any] | None:
        """Advance the cursor; return the next row's columns, or None when exhausted."""
        ...

    def close(self, cursor: Any) -> None:
        """Release a cursor returned by `query`."""
        ...

    def connection_details(self, username: str, password: str) -> Mapping[str, str]:
        """Connection bundle a client would need to log in as `username`."""
        ...

    def shutdown(self) -> None:
        """Close the underlying session."""
        ...


@contextmanager
def open_cursor(db: Database, statement: str, *args: Any) -> Iterator[Any]:
    """Run `statement` and yield its cursor, closing it however the block exits."""
    cursor = db.query(statement, *args)
    try:
        yield cursor
    finally:
        db.close(cursor)
