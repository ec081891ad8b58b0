"""
Keyspace reconciler.

Observe
  1) existence query by name; no row → exists=False (not an error)
  2) details query: replication map + durable_writes
  3) late-initialize unset desired attributes from live state
  4) compare class / factor / durable_writes exactly

Create / Update
  Fill defaults (SimpleStrategy, 1, true) for unset attributes and issue a
  single CREATE KEYSPACE IF NOT EXISTS / ALTER KEYSPACE statement.

Delete
  DROP KEYSPACE IF EXISTS.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from src.constants import (
    DEFAULT_DURABLE_WRITES,
    DEFAULT_REPLICATION_CLASS,
    DEFAULT_REPLICATION_FACTOR,
)
from src.cql_engine.context import ReconcileContext
from src.cql_engine.cql import (
    CQL_SELECT_KEYSPACE_DETAILS,
    CQL_SELECT_KEYSPACE_NAME,
    cql_alter_keyspace,
    cql_create_keyspace,
    cql_drop_keyspace,
)
from src.cql_engine.errors import ObserveError, StatementError
from src.cql_engine.identifiers import strip_replication_class_prefix
from src.cql_engine.models import (
    ExternalCreation,
    ExternalObservation,
    ExternalUpdate,
    Keyspace,
    KeyspaceParameters,
)
from src.cql_engine.ports import Database, open_cursor
from src.cql_engine.reconcilers._common import (
    context_or_background,
    require_external_name,
    require_kind,
)
from src.logger import get_logger

_LOGGER = get_logger("keyspace")

ERR_CHECK_KEYSPACE = "failed to check keyspace existence"
ERR_SELECT_KEYSPACE = "cannot select keyspace"
ERR_SCAN_KEYSPACE = "failed to scan keyspace attributes"
ERR_CREATE_KEYSPACE = "cannot create keyspace"
ERR_UPDATE_KEYSPACE = "cannot update keyspace"
ERR_DROP_KEYSPACE = "cannot drop keyspace"


@dataclass(frozen=True, slots=True)
class KeyspaceState:
    """Observed keyspace attributes; always fully populated."""

    replication_class: str
    replication_factor: int
    durable_writes: bool


# -----------------------------
# Pure diff / late-init logic
# -----------------------------


def keyspace_state_from_row(replication: Mapping[str, Any] | None, durable_writes: Any) -> KeyspaceState:
    """
    Build a KeyspaceState from a system_schema.keyspaces row.

    The class loses its `org.apache.cassandra.locator.` prefix. A missing or
    non-numeric replication_factor (e.g. NetworkTopologyStrategy) reads as 0.
    """
    replication = dict(replication or {})
    replication_class = strip_replication_class_prefix(str(replication.get("class", "")))
    try:
        replication_factor = int(replication.get("replication_factor", 0))
    except (TypeError, ValueError):
        replication_factor = 0
    return KeyspaceState(
        replication_class=replication_class,
        replication_factor=replication_factor,
        durable_writes=bool(durable_writes),
    )


def late_initialize(
    desired: KeyspaceParameters, observed: KeyspaceState
) -> tuple[KeyspaceParameters, bool]:
    """Fill every unset desired attribute from `observed`. Returns (filled copy, changed)."""
    changes: dict[str, Any] = {}
    if desired.replication_class is None:
        changes["replication_class"] = observed.replication_class
    if desired.replication_factor is None:
        changes["replication_factor"] = observed.replication_factor
    if desired.durable_writes is None:
        changes["durable_writes"] = observed.durable_writes
    if not changes:
        return desired, False
    return replace(desired, **changes), True


def is_up_to_date(desired: KeyspaceParameters, observed: KeyspaceState) -> bool:
    """Exact match on all three attributes; any unset desired attribute is drift."""
    return (
        desired.replication_class is not None
        and desired.replication_factor is not None
        and desired.durable_writes is not None
        and desired.replication_class == observed.replication_class
        and desired.replication_factor == observed.replication_factor
        and desired.durable_writes == observed.durable_writes
    )


def with_defaults(desired: KeyspaceParameters) -> KeyspaceParameters:
    """Desired parameters with unset attributes replaced by engine defaults."""
    return KeyspaceParameters(
        replication_class=(
            desired.replication_class
            if desired.replication_class is not None
            else DEFAULT_REPLICATION_CLASS
        ),
        replication_factor=(
            desired.replication_factor
            if desired.replication_factor is not None
            else DEFAULT_REPLICATION_FACTOR
        ),
        durable_writes=(
            desired.durable_writes if desired.durable_writes is not None else DEFAULT_DURABLE_WRITES
        ),
    )


# -----------------------------
# External client
# -----------------------------


class KeyspaceExternal:
    """Observe / Create / Update / Delete for Keyspace resources."""

    kind = Keyspace

    def __init__(self, db: Database) -> None:
        self._db = db

    def observe(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalObservation:
        keyspace = require_kind(resource, Keyspace)
        name = require_external_name(keyspace)
        context_or_background(ctx).raise_if_cancelled(ERR_SELECT_KEYSPACE)

        if not self._exists(name):
            return ExternalObservation(resource_exists=False, resource_up_to_date=False)

        observed = self._read_state(name)
        desired, late_initialized = late_initialize(keyspace.for_provider, observed)
        if late_initialized:
            _LOGGER.debug("Late-initialized keyspace %s: %s", name, desired)

        return ExternalObservation(
            resource_exists=True,
            resource_up_to_date=is_up_to_date(desired, observed),
            resource_late_initialized=late_initialized,
            resource=replace(keyspace, for_provider=desired),
        )

    def create(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalCreation:
        keyspace = require_kind(resource, Keyspace)
        name = require_external_name(keyspace)
        params = with_defaults(keyspace.for_provider)
        statement = cql_create_keyspace(
            name, params.replication_class, params.replication_factor, params.durable_writes
        )
        self._exec(statement, ERR_CREATE_KEYSPACE, context_or_background(ctx))
        _LOGGER.info("Created keyspace %s", name)
        return ExternalCreation()

    def update(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalUpdate:
        keyspace = require_kind(resource, Keyspace)
        name = require_external_name(keyspace)
        params = with_defaults(keyspace.for_provider)
        statement = cql_alter_keyspace(
            name, params.replication_class, params.replication_factor, params.durable_writes
        )
        self._exec(statement, ERR_UPDATE_KEYSPACE, context_or_background(ctx))
        _LOGGER.info("Updated keyspace %s", name)
        return ExternalUpdate()

    def delete(self, resource: Any, ctx: ReconcileContext | None = None) -> None:
        keyspace = require_kind(resource, Keyspace)
        name = require_external_name(keyspace)
        self._exec(cql_drop_keyspace(name), ERR_DROP_KEYSPACE, context_or_background(ctx))
        _LOGGER.info("Dropped keyspace %s", name)

    def disconnect(self) -> None:
        self._db.shutdown()

    # ---------- helpers ----------

    def _exists(self, name: str) -> bool:
        try:
            with open_cursor(self._db, CQL_SELECT_KEYSPACE_NAME, name) as cursor:
                return self._db.scan(cursor) is not None
        except Exception as err:
            raise ObserveError(ERR_CHECK_KEYSPACE, err) from err

    def _read_state(self, name: str) -> KeyspaceState:
        try:
            with open_cursor(self._db, CQL_SELECT_KEYSPACE_DETAILS, name) as cursor:
                row = self._db.scan(cursor)
        except Exception as err:
            raise ObserveError(ERR_SELECT_KEYSPACE, err) from err
        if row is None:
            raise ObserveError(ERR_SCAN_KEYSPACE, f"no attributes for keyspace {name!r}")
        replication, durable_writes = row[0], row[1]
        return keyspace_state_from_row(replication, durable_writes)

    def _exec(self, statement: str, label: str, ctx: ReconcileContext) -> None:
        ctx.raise_if_cancelled(label)
        _LOGGER.debug("Executing: %s", statement)
        try:
            self._db.exec(statement)
        except Exception as err:
            raise StatementError(label, err) from err
