"""
Grant reconciler: privilege-set convergence.

Privileges are a set, so convergence is computed rather than replaced:

- Observe unions the permission sets of every row for (role, data/<keyspace>).
  exists     : at least one desired privilege is observed
  up-to-date : every desired privilege is observed, and every privilege in
               status is still desired (privileges dropped from the resource are drift)
- Create issues one GRANT per desired privilege.
- Update issues one GRANT per desired privilege, then one REVOKE per
  privilege in status but no longer desired.
- Delete issues one REVOKE per desired privilege.

One statement per privilege: some CQL dialects reject comma-joined privilege
lists. Loops stop at the first failure or cancellation; statements already
applied stay applied and the next cycle finishes the remaining drift.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from src.cql_engine.context import ReconcileContext
from src.cql_engine.cql import cql_grant, cql_revoke, cql_select_keyspace_permissions
from src.cql_engine.errors import InvalidResourceError, ObserveError, StatementError
from src.cql_engine.identifiers import normalize_privileges
from src.cql_engine.models import (
    ExternalCreation,
    ExternalObservation,
    ExternalUpdate,
    Grant,
    GrantObservation,
)
from src.cql_engine.ports import Database, open_cursor
from src.cql_engine.reconcilers._common import context_or_background, require_kind
from src.enums import GrantPrivilege
from src.logger import get_logger

_LOGGER = get_logger("grant")

ERR_OBSERVE_GRANT = "cannot observe grant"
ERR_CREATE_GRANT = "cannot create grant"
ERR_DELETE_GRANT = "cannot delete grant"

_DECLARED_PRIVILEGES = frozenset(privilege.value for privilege in GrantPrivilege)


@dataclass(frozen=True, slots=True)
class GrantTarget:
    """Role and keyspace a grant applies to, plus its normalized privileges."""

    role: str
    keyspace: str
    privileges: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class GrantState:
    permissions: frozenset[str]


# -----------------------------
# Pure diff logic
# -----------------------------


def resolve_target(grant: Grant) -> GrantTarget:
    params = grant.for_provider
    if not params.role:
        raise InvalidResourceError(f"Grant {grant.external_name!r} has no role")
    if not params.keyspace:
        raise InvalidResourceError(f"Grant {grant.external_name!r} has no keyspace")
    unknown = [p for p in params.privileges if p not in _DECLARED_PRIVILEGES]
    if unknown:
        raise InvalidResourceError(
            f"Grant {grant.external_name!r} declares unknown privileges: {', '.join(unknown)}"
        )
    return GrantTarget(
        role=params.role,
        keyspace=params.keyspace,
        privileges=normalize_privileges(params.privileges),
    )


def is_materialized(desired: Iterable[str], observed: GrantState) -> bool:
    """True when at least one desired privilege is held; an empty desired set never is."""
    return any(privilege in observed.permissions for privilege in desired)


def is_up_to_date(desired: Iterable[str], observed: GrantState, status: Iterable[str]) -> bool:
    desired_set = set(desired)
    if not desired_set <= observed.permissions:
        return False
    return all(privilege in desired_set for privilege in status)


def privileges_to_revoke(status: Iterable[str], desired: Iterable[str]) -> tuple[str, ...]:
    """status − desired, in status order."""
    desired_set = set(desired)
    return tuple(privilege for privilege in dict.fromkeys(status) if privilege not in desired_set)


# -----------------------------
# External client
# -----------------------------


class GrantExternal:
    """Observe / Create / Update / Delete for Grant resources."""

    kind = Grant

    def __init__(self, db: Database) -> None:
        self._db = db

    def observe(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalObservation:
        grant = require_kind(resource, Grant)
        target = resolve_target(grant)
        context_or_background(ctx).raise_if_cancelled(ERR_OBSERVE_GRANT)

        observed = self._read_state(target)
        if not target.privileges:
            # An empty desired set cannot be told apart from privileges granted
            # outside this resource, so it always reads as absent.
            _LOGGER.warning(
                "Grant %s declares no privileges; reporting it as absent", grant.external_name
            )

        up_to_date = is_up_to_date(target.privileges, observed, grant.at_provider.privileges)
        refreshed = grant
        if up_to_date:
            refreshed = replace(grant, at_provider=GrantObservation(privileges=target.privileges))

        return ExternalObservation(
            resource_exists=is_materialized(target.privileges, observed),
            resource_up_to_date=up_to_date,
            resource_late_initialized=False,
            resource=refreshed,
        )

    def create(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalCreation:
        grant = require_kind(resource, Grant)
        target = resolve_target(grant)
        ctx = context_or_background(ctx)

        for privilege in target.privileges:
            self._exec(cql_grant(privilege, target.keyspace, target.role), ERR_CREATE_GRANT, ctx)

        _LOGGER.info(
            "Granted %s on %s to %s", ", ".join(target.privileges), target.keyspace, target.role
        )
        return ExternalCreation()

    def update(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalUpdate:
        grant = require_kind(resource, Grant)
        target = resolve_target(grant)
        ctx = context_or_background(ctx)

        for privilege in target.privileges:
            self._exec(cql_grant(privilege, target.keyspace, target.role), ERR_CREATE_GRANT, ctx)

        revoked = privileges_to_revoke(grant.at_provider.privileges, target.privileges)
        for privilege in revoked:
            self._exec(cql_revoke(privilege, target.keyspace, target.role), ERR_DELETE_GRANT, ctx)

        _LOGGER.info(
            "Updated grant %s: granted=%s revoked=%s",
            grant.external_name,
            list(target.privileges),
            list(revoked),
        )
        return ExternalUpdate(
            resource=replace(grant, at_provider=GrantObservation(privileges=target.privileges))
        )

    def delete(self, resource: Any, ctx: ReconcileContext | None = None) -> None:
        grant = require_kind(resource, Grant)
        target = resolve_target(grant)
        ctx = context_or_background(ctx)

        for privilege in target.privileges:
            self._exec(cql_revoke(privilege, target.keyspace, target.role), ERR_DELETE_GRANT, ctx)

        _LOGGER.info(
            "Revoked %s on %s from %s", ", ".join(target.privileges), target.keyspace, target.role
        )

    def disconnect(self) -> None:
        self._db.shutdown()

    # ---------- helpers ----------

    def _read_state(self, target: GrantTarget) -> GrantState:
        permissions: set[str] = set()
        try:
            with open_cursor(
                self._db, cql_select_keyspace_permissions(target.keyspace), target.role
            ) as cursor:
                while (row := self._db.scan(cursor)) is not None:
                    permissions.update(row[0] or ())
        except Exception as err:
            raise ObserveError(ERR_OBSERVE_GRANT, err) from err
        return GrantState(permissions=frozenset(permissions))

    def _exec(self, statement: str, label: str, ctx: ReconcileContext) -> None:
        ctx.raise_if_cancelled(label)
        _LOGGER.debug("Executing: %s", statement)
        try:
            self._db.exec(statement)
        except Exception as err:
            raise StatementError(label, err) from err
