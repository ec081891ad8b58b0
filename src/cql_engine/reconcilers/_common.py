"""Boundary checks shared by the per-kind reconcilers."""

from __future__ import annotations

from typing import Any, TypeVar

from src.cql_engine.context import ReconcileContext, background
from src.cql_engine.errors import InvalidResourceError, NotResourceKindError

R = TypeVar("R")


def require_kind(resource: Any, expected: type[R]) -> R:
    """Return `resource` typed as `expected`, or raise NotResourceKindError."""
    if not isinstance(resource, expected):
        raise NotResourceKindError(expected.__name__)
    return resource


def require_external_name(resource: Any) -> str:
    """The identity used to address the object; never empty once assigned."""
    name = getattr(resource, "external_name", "") or ""
    if not name.strip():
        raise InvalidResourceError(f"{type(resource).__name__} has no external name")
    return name


def context_or_background(ctx: ReconcileContext | None) -> ReconcileContext:
    return ctx if ctx is not None else background()
