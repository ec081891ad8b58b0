"""
Identifier and literal utilities for generated CQL.

This module defines:
- Quoting for identifiers (keyspace and role names).
- Escaping for single-quoted string literals.
- Rendering of boolean literals.
- Normalization of privilege tokens and replication class names.

Conventions:
- Verbs: quote_*, escape_*, format_*, normalize_*, strip_*.
- Identifiers are always double-quoted, so names are case-sensitive in CQL.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.constants import REPLICATION_CLASS_PREFIX

_DECLARED_PRIVILEGE_SEPARATOR = "_"
_CQL_PRIVILEGE_SEPARATOR = " "


def quote_identifier(identifier: str) -> str:
    """Quote a single CQL identifier using double quotes, doubling any embedded quotes."""
    escaped = str(identifier).replace('"', '""')
    return f'"{escaped}"'


def escape_cql_literal(value: str) -> str:
    """
    Escape a Python string for use as a single-quoted CQL literal.
    Doubles single quotes per CQL rules. Empty/None → empty string.
    """
    return (value or "").replace("'", "''")


def format_cql_bool(value: bool) -> str:
    """Lowercase CQL boolean literal: 'true' / 'false'."""
    return "true" if value else "false"


def normalize_privilege(privilege: str) -> str:
    """Declared token → CQL token, e.g. 'ALL_PERMISSIONS' → 'ALL PERMISSIONS'."""
    return str(privilege).replace(_DECLARED_PRIVILEGE_SEPARATOR, _CQL_PRIVILEGE_SEPARATOR)


def normalize_privileges(privileges: Iterable[str]) -> tuple[str, ...]:
    """Normalize every token, keeping declared order and dropping repeats."""
    seen: dict[str, None] = {}
    for privilege in privileges:
        seen.setdefault(normalize_privilege(privilege), None)
    return tuple(seen)


def strip_replication_class_prefix(replication_class: str) -> str:
    """'org.apache.cassandra.locator.SimpleStrategy' → 'SimpleStrategy'."""
    return replication_class.removeprefix(REPLICATION_CLASS_PREFIX)
