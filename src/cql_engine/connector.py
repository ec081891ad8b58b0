"""
Connect step: resolve a resource's target and hand back an external client.

Flow
----
1) Check the resource kind (before any lookup).
2) Resolve its ProviderConfig by name.
3) Fetch the credentials payload from the CredentialSource and decode it.
4) Open a Database for those credentials and wrap it in the kind's client.

Upstream failures are re-raised as ConnectError subclasses with the original
error chained.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from src.cql_engine.context import ReconcileContext
from src.cql_engine.credentials import (
    ConnectionCredentials,
    CredentialSource,
    ProviderConfig,
    parse_credentials,
)
from src.cql_engine.errors import ConnectError, CredentialsError, ProviderConfigError
from src.cql_engine.models import ExternalCreation, ExternalObservation, ExternalUpdate
from src.cql_engine.ports import Database
from src.cql_engine.reconcilers._common import require_kind

ERR_GET_PROVIDER_CONFIG = "cannot get ProviderConfig"
ERR_GET_CREDENTIALS = "cannot get credentials"
ERR_NEW_CLIENT = "cannot create new Service"

DatabaseFactory = Callable[[ConnectionCredentials, str], Database]


class ExternalClient(Protocol):
    """Reconciliation contract for one resource kind."""

    def observe(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalObservation: ...

    def create(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalCreation: ...

    def update(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalUpdate: ...

    def delete(self, resource: Any, ctx: ReconcileContext | None = None) -> None: ...

    def disconnect(self) -> None: ...


def _default_database_factory(credentials: ConnectionCredentials, keyspace: str) -> Database:
    from src.cql_engine.adapters.cassandra_session import CassandraDatabase

    return CassandraDatabase.from_credentials(credentials, keyspace)


class Connector:
    """
    Produce an ExternalClient for resources of one kind.

    client_factory:
        Builds the kind's client from an open Database (e.g. KeyspaceExternal).
    new_database:
        Opens a Database for decoded credentials and an optional keyspace scope.
    """

    def __init__(
        self,
        kind: type,
        client_factory: Callable[[Database], ExternalClient],
        provider_configs: Mapping[str, ProviderConfig],
        credential_source: CredentialSource,
        new_database: DatabaseFactory | None = None,
    ) -> None:
        self.kind = kind
        self._client_factory = client_factory
        self._provider_configs = dict(provider_configs)
        self._credential_source = credential_source
        self._new_database = new_database or _default_database_factory

    def connect(self, resource: Any) -> ExternalClient:
        managed = require_kind(resource, self.kind)
        provider_config = self._provider_config(managed.provider_config_name)
        credentials = self._credentials(provider_config)
        try:
            db = self._new_database(credentials, "")
        except Exception as err:
            raise ConnectError(f"{ERR_NEW_CLIENT}: {err}") from err
        try:
            return self._client_factory(db)
        except Exception:
            db.shutdown()
            raise

    # ---------- helpers ----------

    def _provider_config(self, name: str) -> ProviderConfig:
        try:
            return self._provider_configs[name]
        except KeyError as err:
            raise ProviderConfigError(f"{ERR_GET_PROVIDER_CONFIG}: {name!r} not found") from err

    def _credentials(self, provider_config: ProviderConfig) -> ConnectionCredentials:
        try:
            payload = self._credential_source.get(provider_config.secret_ref)
        except Exception as err:
            raise CredentialsError(f"{ERR_GET_CREDENTIALS}: {err}") from err
        return parse_credentials(payload)
