"""Shared constant values used across the reconciler."""

from typing import Final

from src.enums import ReplicationClass

DEFAULT_REPLICATION_CLASS: Final[str] = ReplicationClass.SIMPLE.value
DEFAULT_REPLICATION_FACTOR: Final[int] = 1
DEFAULT_DURABLE_WRITES: Final[bool] = True
DEFAULT_CQL_PORT: Final[int] = 9042

# Cassandra reports replication classes fully qualified.
REPLICATION_CLASS_PREFIX: Final[str] = "org.apache.cassandra.locator."

KEYSPACES_TABLE: Final[str] = "system_schema.keyspaces"
ROLES_TABLE: Final[str] = "system_auth.roles"
ROLE_PERMISSIONS_TABLE: Final[str] = "system_auth.role_permissions"
