"""
Managed reconciliation for one resource kind.

`ManagedReconciler` coordinates a single pass for an object:
  1) Connect (credentials → database → external client)
  2) Observe
  3) Delete if deletion was requested and the object exists,
     Create if it is absent, Update if it drifted, otherwise nothing
  4) Disconnect

It holds no state between calls. Status persistence, requeueing and backoff
belong to the caller; errors are returned on the outcome and logged, and
`reconcile` raises them unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from src import settings
from src.cql_engine.connector import Connector
from src.cql_engine.context import ReconcileContext, background
from src.cql_engine.models import ExternalObservation, ManagedResource
from src.enums import ReconcileAction
from src.logger import LOGGER


@dataclass(frozen=True)
class ReconcileOutcome:
    """Everything the caller needs to persist after one pass."""

    resource: ManagedResource
    action: ReconcileAction
    observation: ExternalObservation | None = None
    connection_details: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ManagedReconciler:
    """Drive one resource kind through observe → create/update/delete."""

    def __init__(self, connector: Connector, max_concurrency: int = settings.MAX_CONCURRENCY) -> None:
        self._connector = connector
        self._max_concurrency = max_concurrency

    # ---------- public API ----------

    def reconcile(self, resource: Any, ctx: ReconcileContext | None = None) -> ReconcileOutcome:
        """Run one pass for `resource`. Raises whatever the external client raises."""
        ctx = ctx or background()
        client = self._connector.connect(resource)
        try:
            observation = client.observe(resource, ctx)
            current = observation.resource or resource

            if resource.deletion_requested:
                if not observation.resource_exists:
                    return ReconcileOutcome(current, ReconcileAction.NONE, observation)
                client.delete(current, ctx)
                return ReconcileOutcome(current, ReconcileAction.DELETED, observation)

            if not observation.resource_exists:
                creation = client.create(current, ctx)
                return ReconcileOutcome(
                    creation.resource or current,
                    ReconcileAction.CREATED,
                    observation,
                    connection_details=creation.connection_details,
                )

            if not observation.resource_up_to_date:
                update = client.update(current, ctx)
                return ReconcileOutcome(
                    update.resource or current, ReconcileAction.UPDATED, observation
                )

            return ReconcileOutcome(current, ReconcileAction.NONE, observation)
        finally:
            client.disconnect()

    def reconcile_all(
        self, resources: Sequence[Any], ctx: ReconcileContext | None = None
    ) -> tuple[ReconcileOutcome, ...]:
        """
        Reconcile distinct objects concurrently on a bounded pool.

        Outcomes keep the input order. A failing object yields a FAILED outcome
        carrying its error; the other objects still run.
        """
        ctx = ctx or background()
        LOGGER.info(
            "Reconciling %d %s resource(s).", len(resources), self._connector.kind.__name__
        )
        with ThreadPoolExecutor(max_workers=self._max_concurrency) as pool:
            outcomes = tuple(pool.map(lambda r: self._reconcile_safely(r, ctx), resources))

        changed = sum(1 for outcome in outcomes if outcome.action.changed)
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        LOGGER.info("Reconcile pass completed: changed=%d, failed=%d", changed, failed)
        return outcomes

    # ---------- helpers ----------

    def _reconcile_safely(self, resource: Any, ctx: ReconcileContext) -> ReconcileOutcome:
        try:
            return self.reconcile(resource, ctx)
        except Exception as err:
            LOGGER.error(
                "Reconcile failed for %s: %s", getattr(resource, "external_name", resource), err
            )
            return ReconcileOutcome(resource, ReconcileAction.FAILED, error=err)
