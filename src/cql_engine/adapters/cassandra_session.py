"""
Adapter: Cassandra session

Implements the `Database` port on top of the DataStax `cassandra-driver`.

- Statements without bind arguments run as simple statements.
- Queries with bind arguments are prepared, so they use `?` markers.
- Cursors are iterators over the driver's ResultSet; rows come back as tuples.
- Functions do not catch driver exceptions; reconcilers wrap them with context.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, Session
from cassandra.query import SimpleStatement, tuple_factory

from src import settings
from src.cql_engine.credentials import ConnectionCredentials
from src.logger import get_logger

_LOGGER = get_logger("cassandra")


class CassandraDatabase:
    """Execute CQL through a driver Session bound to one cluster (and optional keyspace)."""

    def __init__(self, cluster: Cluster, session: Session, credentials: ConnectionCredentials) -> None:
        self._cluster = cluster
        self._session = session
        self._credentials = credentials

    @classmethod
    def from_credentials(
        cls, credentials: ConnectionCredentials, keyspace: str = ""
    ) -> CassandraDatabase:
        """Open a session against `credentials.endpoint`, optionally scoped to `keyspace`."""
        cluster = Cluster(
            contact_points=[credentials.endpoint],
            port=credentials.port,
            auth_provider=PlainTextAuthProvider(
                username=credentials.username, password=credentials.password
            ),
            connect_timeout=settings.CONNECT_TIMEOUT_SECONDS,
        )
        try:
            session = cluster.connect(keyspace or None)
        except Exception:
            cluster.shutdown()
            raise
        session.row_factory = tuple_factory
        _LOGGER.debug("Connected to %s:%d", credentials.endpoint, credentials.port)
        return cls(cluster, session, credentials)

    # ---------- Database port ----------

    def exec(self, statement: str, *args: Any) -> None:
        self._run(statement, args)

    def query(self, statement: str, *args: Any) -> Iterator[Sequence[Any]]:
        return iter(self._run(statement, args))

    def scan(self, cursor: Iterator[Sequence[Any]]) -> Sequence[Any] | None:
        return next(cursor, None)

    def close(self, cursor: Iterator[Sequence[Any]]) -> None:
        # ResultSet pages lazily and holds no server-side handle.
        return None

    def connection_details(self, username: str, password: str) -> Mapping[str, str]:
        return MappingProxyType(
            {
                "username": username,
                "password": password,
                "endpoint": self._credentials.endpoint,
                "port": str(self._credentials.port),
            }
        )

    def shutdown(self) -> None:
        self._cluster.shutdown()

    # ---------- helpers ----------

    def _run(self, statement: str, args: tuple[Any, ...]):
        if args:
            prepared = self._session.prepare(statement)
            return self._session.execute(prepared, args)
        return self._session.execute(SimpleStatement(statement))
