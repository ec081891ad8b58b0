"""
Engine: high-level entry point for the reconciler.

Responsibilities
----------------
- Wire default components (credential source, database factory, password
  generator) into one ManagedReconciler per resource kind.
- Expose `reconciler_for(kind)` and `reconcile(resource)`.

Notes:
-----
- No CQL here; work is delegated to the per-kind external clients.
- Defaults are provided, but everything can be overridden for testing or custom behaviour.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src import settings
from src.cql_engine.connector import Connector, DatabaseFactory
from src.cql_engine.context import ReconcileContext
from src.cql_engine.credentials import CredentialSource, KubernetesSecretSource, ProviderConfig
from src.cql_engine.errors import NotResourceKindError
from src.cql_engine.managed import ManagedReconciler, ReconcileOutcome
from src.cql_engine.models import Grant, Keyspace, Role
from src.cql_engine.passwords import PasswordGenerator, RandomPasswordGenerator
from src.cql_engine.reconcilers.grant import GrantExternal
from src.cql_engine.reconcilers.keyspace import KeyspaceExternal
from src.cql_engine.reconcilers.role import RoleExternal
from src.enums import ResourceKind


class Engine:
    """
    High-level entry point for the reconciler.

    You can:
      - pass your own components (for custom behaviour), or
      - rely on defaults (Kubernetes secrets, cassandra-driver sessions).
    """

    def __init__(
        self,
        provider_configs: Mapping[str, ProviderConfig],
        credential_source: CredentialSource | None = None,
        new_database: DatabaseFactory | None = None,
        password_generator: PasswordGenerator | None = None,
        max_concurrency: int = settings.MAX_CONCURRENCY,
    ) -> None:
        self.credential_source = credential_source or KubernetesSecretSource()
        self.password_generator = password_generator or RandomPasswordGenerator()

        def connector(kind: type, client_factory) -> Connector:
            return Connector(
                kind=kind,
                client_factory=client_factory,
                provider_configs=provider_configs,
                credential_source=self.credential_source,
                new_database=new_database,
            )

        self.reconcilers: dict[ResourceKind, ManagedReconciler] = {
            ResourceKind.KEYSPACE: ManagedReconciler(
                connector(Keyspace, KeyspaceExternal), max_concurrency
            ),
            ResourceKind.ROLE: ManagedReconciler(
                connector(Role, lambda db: RoleExternal(db, self.password_generator)),
                max_concurrency,
            ),
            ResourceKind.GRANT: ManagedReconciler(
                connector(Grant, GrantExternal), max_concurrency
            ),
        }

    def reconciler_for(self, kind: ResourceKind) -> ManagedReconciler:
        return self.reconcilers[kind]

    def reconcile(self, resource: Any, ctx: ReconcileContext | None = None) -> ReconcileOutcome:
        """Dispatch on the resource's kind and run one reconcile pass."""
        kind = getattr(resource, "kind", None)
        if kind not in self.reconcilers:
            raise NotResourceKindError(" or ".join(k.value for k in self.reconcilers))
        return self.reconcilers[kind].reconcile(resource, ctx)
