"""
Error taxonomy for the reconciliation engine.

- NotResourceKindError: the supplied object is not the kind a reconciler manages.
- ConnectError (ProviderConfigError, CredentialsError): upstream lookups failed.
- StatementError (ObserveError): a CQL statement or query failed; carries a
  kind-specific label and chains the driver error as __cause__.
- InvalidResourceError: the resource cannot be addressed (empty name, missing refs).
- ReconcileCancelledError: the caller cancelled a multi-statement operation.

A missing row is never an error: Observe reports it as exists=False.
"""

from __future__ import annotations


class CqlEngineError(Exception):
    """Base class for every error raised by the engine."""


class NotResourceKindError(CqlEngineError):
    """Raised when a reconciler receives an object of the wrong kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"managed resource is not a {kind} custom resource")


class InvalidResourceError(CqlEngineError):
    """Raised when a resource lacks what is needed to address it in the database."""


class ConnectError(CqlEngineError):
    """Raised when the Connect step cannot produce a database session."""


class ProviderConfigError(ConnectError):
    """Raised when the referenced provider configuration cannot be resolved."""


class CredentialsError(ConnectError):
    """Raised when credentials cannot be fetched or decoded."""


class StatementError(CqlEngineError):
    """
    A CQL statement failed.

    The message is "<label>: <cause>", e.g. "cannot create role: boom".
    The driver error is kept on `cause` and chained via `raise ... from`.
    """

    def __init__(self, label: str, cause: BaseException | str) -> None:
        self.label = label
        self.cause = cause
        super().__init__(f"{label}: {cause}")


class ObserveError(StatementError):
    """A read performed by Observe failed or returned an unusable result."""


class ReconcileCancelledError(CqlEngineError):
    """Raised when the reconcile context is cancelled before all statements ran."""
