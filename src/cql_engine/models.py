"""
Managed resource models and reconcile results.

Desired parameters are tri-state per attribute:
    None  → unset, the caller expressed no preference (late-initializable)
    value → manage and converge to this value

Resources are frozen. Reconcilers never mutate the caller's object; results
carry an updated copy (late-initialized parameters, refreshed Grant status) in
their `resource` field and the caller decides whether to persist it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias

from src import settings
from src.enums import ResourceKind

# -----------------------------
# Desired parameters
# -----------------------------


@dataclass(frozen=True)
class KeyspaceParameters:
    """Configurable fields of a Keyspace."""

    replication_class: str | None = None
    replication_factor: int | None = None
    durable_writes: bool | None = None


@dataclass(frozen=True)
class RoleParameters:
    """Configurable fields of a Role."""

    superuser: bool | None = None
    login: bool | None = None


@dataclass(frozen=True)
class GrantParameters:
    """Configurable fields of a Grant. Privileges use declared tokens (e.g. ALL_PERMISSIONS)."""

    privileges: tuple[str, ...] = ()
    role: str | None = None
    keyspace: str | None = None


@dataclass(frozen=True)
class GrantObservation:
    """Status of a Grant: the privileges last applied by the engine (CQL tokens)."""

    privileges: tuple[str, ...] = ()


# -----------------------------
# Managed resources
# -----------------------------


@dataclass(frozen=True)
class Keyspace:
    kind = ResourceKind.KEYSPACE

    external_name: str
    for_provider: KeyspaceParameters = field(default_factory=KeyspaceParameters)
    provider_config_name: str = settings.DEFAULT_PROVIDER_CONFIG
    deletion_requested: bool = False


@dataclass(frozen=True)
class Role:
    kind = ResourceKind.ROLE

    external_name: str
    for_provider: RoleParameters = field(default_factory=RoleParameters)
    provider_config_name: str = settings.DEFAULT_PROVIDER_CONFIG
    deletion_requested: bool = False


@dataclass(frozen=True)
class Grant:
    kind = ResourceKind.GRANT

    external_name: str
    for_provider: GrantParameters = field(default_factory=GrantParameters)
    at_provider: GrantObservation = field(default_factory=GrantObservation)
    provider_config_name: str = settings.DEFAULT_PROVIDER_CONFIG
    deletion_requested: bool = False


ManagedResource: TypeAlias = Keyspace | Role | Grant


# -----------------------------
# Reconcile results
# -----------------------------


@dataclass(frozen=True)
class ExternalObservation:
    """
    Verdict of an Observe call.

    resource_exists : bool
        The object exists in the database. False is a normal outcome.
    resource_up_to_date : bool
        Live state matches the (late-initialized) desired state.
    resource_late_initialized : bool
        At least one unset desired attribute was filled from live state.
    resource : ManagedResource | None
        Copy of the caller's resource with late-init / status changes applied.
    """

    resource_exists: bool
    resource_up_to_date: bool = False
    resource_late_initialized: bool = False
    resource: ManagedResource | None = None


@dataclass(frozen=True)
class ExternalCreation:
    """Outcome of Create. Only Role publishes connection details."""

    connection_details: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    resource: ManagedResource | None = None


@dataclass(frozen=True)
class ExternalUpdate:
    """Outcome of Update; `resource` carries a refreshed status where the kind has one."""

    resource: ManagedResource | None = None
