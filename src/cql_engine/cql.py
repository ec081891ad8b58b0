"""
CQL string builders for keyspace, role and grant operations.

All functions return fully-formed CQL strings. Identifiers are double-quoted
via `quote_identifier`; literals are escaped via `escape_cql_literal`.

Design guarantees
- Deterministic, side-effect free string generation.
- Output is a stable contract: callers and tests compare exact strings.
- No business rules: reconcilers decide defaults and ordering.
"""

from __future__ import annotations

from src.constants import KEYSPACES_TABLE, ROLE_PERMISSIONS_TABLE, ROLES_TABLE
from src.cql_engine.identifiers import escape_cql_literal, format_cql_bool, quote_identifier

# ---------- observation queries (bind marker: ?) ----------

CQL_SELECT_KEYSPACE_NAME = f"SELECT keyspace_name FROM {KEYSPACES_TABLE} WHERE keyspace_name = ?"
CQL_SELECT_KEYSPACE_DETAILS = (
    f"SELECT replication, durable_writes FROM {KEYSPACES_TABLE} WHERE keyspace_name = ?"
)
CQL_SELECT_ROLE = f"SELECT is_superuser, can_login FROM {ROLES_TABLE} WHERE role = ?"


def cql_select_keyspace_permissions(keyspace_name: str) -> str:
    """Permissions of one role (bound as ?) on the data resource of `keyspace_name`."""
    return (
        f"SELECT permissions FROM {ROLE_PERMISSIONS_TABLE} "
        f"WHERE role = ? AND resource = 'data/{escape_cql_literal(keyspace_name)}'"
    )


# ---------- keyspace ----------


def _replication_clause(replication_class: str, replication_factor: int, durable_writes: bool) -> str:
    return (
        f"WITH replication = {{'class': '{escape_cql_literal(replication_class)}', "
        f"'replication_factor': {int(replication_factor)}}} "
        f"AND durable_writes = {format_cql_bool(durable_writes)}"
    )


def cql_create_keyspace(
    keyspace_name: str, replication_class: str, replication_factor: int, durable_writes: bool
) -> str:
    """CREATE KEYSPACE IF NOT EXISTS "ks" WITH replication = {...} AND durable_writes = b."""
    clause = _replication_clause(replication_class, replication_factor, durable_writes)
    return f"CREATE KEYSPACE IF NOT EXISTS {quote_identifier(keyspace_name)} {clause}"


def cql_alter_keyspace(
    keyspace_name: str, replication_class: str, replication_factor: int, durable_writes: bool
) -> str:
    """ALTER KEYSPACE "ks" WITH replication = {...} AND durable_writes = b."""
    clause = _replication_clause(replication_class, replication_factor, durable_writes)
    return f"ALTER KEYSPACE {quote_identifier(keyspace_name)} {clause}"


def cql_drop_keyspace(keyspace_name: str) -> str:
    """DROP KEYSPACE IF EXISTS "ks"."""
    return f"DROP KEYSPACE IF EXISTS {quote_identifier(keyspace_name)}"


# ---------- role ----------


def cql_create_role(role_name: str, superuser: bool, login: bool, password: str) -> str:
    """CREATE ROLE IF NOT EXISTS "r" WITH SUPERUSER = b AND LOGIN = b AND PASSWORD = '...'."""
    return (
        f"CREATE ROLE IF NOT EXISTS {quote_identifier(role_name)} "
        f"WITH SUPERUSER = {format_cql_bool(superuser)} AND LOGIN = {format_cql_bool(login)} "
        f"AND PASSWORD = '{escape_cql_literal(password)}'"
    )


def cql_alter_role(role_name: str, superuser: bool, login: bool) -> str:
    """ALTER ROLE "r" WITH SUPERUSER = b AND LOGIN = b."""
    return (
        f"ALTER ROLE {quote_identifier(role_name)} "
        f"WITH SUPERUSER = {format_cql_bool(superuser)} AND LOGIN = {format_cql_bool(login)}"
    )


def cql_drop_role(role_name: str) -> str:
    """DROP ROLE IF EXISTS "r"."""
    return f"DROP ROLE IF EXISTS {quote_identifier(role_name)}"


# ---------- grant ----------


def cql_grant(privilege: str, keyspace_name: str, role_name: str) -> str:
    """GRANT <privilege> ON KEYSPACE "ks" TO "r". One privilege per statement."""
    return (
        f"GRANT {privilege} ON KEYSPACE {quote_identifier(keyspace_name)} "
        f"TO {quote_identifier(role_name)}"
    )


def cql_revoke(privilege: str, keyspace_name: str, role_name: str) -> str:
    """REVOKE <privilege> ON KEYSPACE "ks" FROM "r"."""
    return (
        f"REVOKE {privilege} ON KEYSPACE {quote_identifier(keyspace_name)} "
        f"FROM {quote_identifier(role_name)}"
    )
