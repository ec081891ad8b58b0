"""
Role reconciler.

Observe reads (is_superuser, can_login) for the role; both flags are
late-initializable and compared pairwise. Create generates a password through
the injected PasswordGenerator and publishes it as connection details.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from src.cql_engine.context import ReconcileContext
from src.cql_engine.cql import CQL_SELECT_ROLE, cql_alter_role, cql_create_role, cql_drop_role
from src.cql_engine.errors import ObserveError, StatementError
from src.cql_engine.models import (
    ExternalCreation,
    ExternalObservation,
    ExternalUpdate,
    Role,
    RoleParameters,
)
from src.cql_engine.passwords import PasswordGenerator, RandomPasswordGenerator
from src.cql_engine.ports import Database, open_cursor
from src.cql_engine.reconcilers._common import (
    context_or_background,
    require_external_name,
    require_kind,
)
from src.logger import get_logger

_LOGGER = get_logger("role")

ERR_SELECT_ROLE = "cannot select role"
ERR_CREATE_ROLE = "cannot create role"
ERR_UPDATE_ROLE = "cannot update role"
ERR_DROP_ROLE = "cannot drop role"


@dataclass(frozen=True, slots=True)
class RoleState:
    superuser: bool
    login: bool


def late_initialize(desired: RoleParameters, observed: RoleState) -> tuple[RoleParameters, bool]:
    """Fill unset flags from `observed`. Returns (filled copy, changed)."""
    changes: dict[str, bool] = {}
    if desired.superuser is None:
        changes["superuser"] = observed.superuser
    if desired.login is None:
        changes["login"] = observed.login
    if not changes:
        return desired, False
    return replace(desired, **changes), True


def is_up_to_date(desired: RoleParameters, observed: RoleState) -> bool:
    return (
        desired.superuser is not None
        and desired.login is not None
        and desired.superuser == observed.superuser
        and desired.login == observed.login
    )


class RoleExternal:
    """Observe / Create / Update / Delete for Role resources."""

    kind = Role

    def __init__(self, db: Database, password_generator: PasswordGenerator | None = None) -> None:
        self._db = db
        self._passwords = password_generator or RandomPasswordGenerator()

    def observe(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalObservation:
        role = require_kind(resource, Role)
        name = require_external_name(role)
        context_or_background(ctx).raise_if_cancelled(ERR_SELECT_ROLE)

        try:
            with open_cursor(self._db, CQL_SELECT_ROLE, name) as cursor:
                row = self._db.scan(cursor)
        except Exception as err:
            raise ObserveError(ERR_SELECT_ROLE, err) from err

        if row is None:
            return ExternalObservation(resource_exists=False, resource_up_to_date=False)

        observed = RoleState(superuser=bool(row[0]), login=bool(row[1]))
        desired, late_initialized = late_initialize(role.for_provider, observed)

        return ExternalObservation(
            resource_exists=True,
            resource_up_to_date=is_up_to_date(desired, observed),
            resource_late_initialized=late_initialized,
            resource=replace(role, for_provider=desired),
        )

    def create(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalCreation:
        role = require_kind(resource, Role)
        name = require_external_name(role)
        params = role.for_provider

        password = self._passwords.generate()
        statement = cql_create_role(
            name, bool(params.superuser), bool(params.login), password
        )
        ctx = context_or_background(ctx)
        ctx.raise_if_cancelled(ERR_CREATE_ROLE)
        # Statement embeds the password; log the role only.
        _LOGGER.debug("Executing CREATE ROLE for %s", name)
        try:
            self._db.exec(statement)
        except Exception as err:
            raise StatementError(ERR_CREATE_ROLE, err) from err

        _LOGGER.info("Created role %s", name)
        return ExternalCreation(connection_details=self._db.connection_details(name, password))

    def update(self, resource: Any, ctx: ReconcileContext | None = None) -> ExternalUpdate:
        role = require_kind(resource, Role)
        name = require_external_name(role)
        params = role.for_provider
        statement = cql_alter_role(name, bool(params.superuser), bool(params.login))
        self._exec(statement, ERR_UPDATE_ROLE, context_or_background(ctx))
        _LOGGER.info("Updated role %s", name)
        return ExternalUpdate()

    def delete(self, resource: Any, ctx: ReconcileContext | None = None) -> None:
        role = require_kind(resource, Role)
        name = require_external_name(role)
        self._exec(cql_drop_role(name), ERR_DROP_ROLE, context_or_background(ctx))
        _LOGGER.info("Dropped role %s", name)

    def disconnect(self) -> None:
        self._db.shutdown()

    def _exec(self, statement: str, label: str, ctx: ReconcileContext) -> None:
        ctx.raise_if_cancelled(label)
        _LOGGER.debug("Executing: %s", statement)
        try:
            self._db.exec(statement)
        except Exception as err:
            raise StatementError(label, err) from err
