"""Enumerations used throughout the reconciler."""

from enum import StrEnum


class ResourceKind(StrEnum):
    """Kinds of external database objects managed by the engine."""

    KEYSPACE = "Keyspace"
    ROLE = "Role"
    GRANT = "Grant"


class ReplicationClass(StrEnum):
    """Keyspace replication strategies."""

    SIMPLE = "SimpleStrategy"
    NETWORK_TOPOLOGY = "NetworkTopologyStrategy"


class GrantPrivilege(StrEnum):
    """Privilege tokens as declared on a Grant (underscores instead of spaces)."""

    ALL_PERMISSIONS = "ALL_PERMISSIONS"
    ALTER = "ALTER"
    AUTHORIZE = "AUTHORIZE"
    CREATE = "CREATE"
    DESCRIBE = "DESCRIBE"
    DROP = "DROP"
    EXECUTE = "EXECUTE"
    MODIFY = "MODIFY"
    SELECT = "SELECT"


class ReconcileAction(StrEnum):
    """What a single reconcile pass did to the external object."""

    NONE = "none"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    FAILED = "failed"

    @property
    def changed(self) -> bool:
        """True when the pass issued convergence statements successfully."""
        mapping = {
            ReconcileAction.NONE: False,
            ReconcileAction.CREATED: True,
            ReconcileAction.UPDATED: True,
            ReconcileAction.DELETED: True,
            ReconcileAction.FAILED: False,
        }
        return mapping[self]
