from __future__ import annotations

from typing import Any

import pytest

from src.cql_engine.context import ReconcileContext
from src.cql_engine.cql import CQL_SELECT_KEYSPACE_DETAILS, CQL_SELECT_KEYSPACE_NAME
from src.cql_engine.errors import (
    InvalidResourceError,
    NotResourceKindError,
    ObserveError,
    ReconcileCancelledError,
    StatementError,
)
from src.cql_engine.models import Keyspace, KeyspaceParameters, Role
from src.cql_engine.reconcilers.keyspace import (
    KeyspaceExternal,
    KeyspaceState,
    is_up_to_date,
    keyspace_state_from_row,
    late_initialize,
    with_defaults,
)

# ---------------------------
# Fakes
# ---------------------------


class FakeDatabase:
    """Serves canned rows per query and records every statement."""

    def __init__(
        self,
        rows: dict[str, list[tuple[Any, ...]]] | None = None,
        exec_error: Exception | None = None,
        query_error: Exception | None = None,
        scan_error: Exception | None = None,
    ) -> None:
        self.rows = rows or {}
        self.exec_error = exec_error
        self.query_error = query_error
        self.scan_error = scan_error
        self.executed: list[str] = []
        self.queries: list[tuple[str, tuple[Any, ...]]] = []
        self.open_cursors = 0

    def exec(self, statement: str, *args: Any) -> None:
        self.executed.append(statement)
        if self.exec_error:
            raise self.exec_error

    def query(self, statement: str, *args: Any):
        self.queries.append((statement, args))
        if self.query_error:
            raise self.query_error
        self.open_cursors += 1
        return iter(self.rows.get(statement, []))

    def scan(self, cursor):
        if self.scan_error:
            raise self.scan_error
        return next(cursor, None)

    def close(self, cursor) -> None:
        self.open_cursors -= 1

    def connection_details(self, username: str, password: str):
        return {"username": username, "password": password}

    def shutdown(self) -> None:
        pass


def live_keyspace(replication_class="org.apache.cassandra.locator.SimpleStrategy", factor="2", durable=True):
    return {
        CQL_SELECT_KEYSPACE_NAME: [("example",)],
        CQL_SELECT_KEYSPACE_DETAILS: [
            ({"class": replication_class, "replication_factor": factor}, durable)
        ],
    }


def make_keyspace(**params) -> Keyspace:
    return Keyspace(external_name="example", for_provider=KeyspaceParameters(**params))


FULL = dict(replication_class="SimpleStrategy", replication_factor=2, durable_writes=True)

# ---------------------------
# Pure functions
# ---------------------------


def test_state_from_row_strips_prefix_and_parses_factor():
    state = keyspace_state_from_row(
        {"class": "org.apache.cassandra.locator.SimpleStrategy", "replication_factor": "3"}, False
    )
    assert state == KeyspaceState("SimpleStrategy", 3, False)


def test_state_from_row_without_factor_reads_zero():
    state = keyspace_state_from_row({"class": "NetworkTopologyStrategy", "dc1": "3"}, True)
    assert state.replication_factor == 0


def test_late_initialize_is_pure_and_reports_change():
    desired = KeyspaceParameters(replication_factor=2)
    filled, changed = late_initialize(desired, KeyspaceState("SimpleStrategy", 5, True))

    assert changed is True
    assert filled == KeyspaceParameters("SimpleStrategy", 2, True)
    assert desired.replication_class is None  # original untouched


def test_late_initialize_noop_when_fully_set():
    desired = KeyspaceParameters(**FULL)
    filled, changed = late_initialize(desired, KeyspaceState("X", 9, False))
    assert (filled, changed) == (desired, False)


def test_unset_attribute_is_never_up_to_date():
    assert not is_up_to_date(
        KeyspaceParameters("SimpleStrategy", 2, None), KeyspaceState("SimpleStrategy", 2, True)
    )


def test_with_defaults_fills_simple_strategy_one_replica_durable():
    assert with_defaults(KeyspaceParameters()) == KeyspaceParameters("SimpleStrategy", 1, True)


# ---------------------------
# Observe
# ---------------------------


def test_observe_absent_is_not_an_error():
    db = FakeDatabase()
    obs = KeyspaceExternal(db).observe(make_keyspace(**FULL))

    assert obs.resource_exists is False
    assert obs.resource_up_to_date is False
    assert db.open_cursors == 0


def test_observe_round_trip_is_up_to_date():
    db = FakeDatabase(rows=live_keyspace())
    obs = KeyspaceExternal(db).observe(make_keyspace(**FULL))

    assert obs.resource_exists is True
    assert obs.resource_up_to_date is True
    assert obs.resource_late_initialized is False
    assert db.queries[0] == (CQL_SELECT_KEYSPACE_NAME, ("example",))


def test_observe_detects_factor_drift():
    db = FakeDatabase(rows=live_keyspace(factor="3"))
    obs = KeyspaceExternal(db).observe(make_keyspace(**FULL))

    assert obs.resource_exists is True
    assert obs.resource_up_to_date is False


def test_observe_late_initializes_then_reports_up_to_date():
    db = FakeDatabase(rows=live_keyspace(durable=False))
    keyspace = make_keyspace(replication_class="SimpleStrategy", replication_factor=2)

    obs = KeyspaceExternal(db).observe(keyspace)

    assert obs.resource_late_initialized is True
    assert obs.resource_up_to_date is True
    assert obs.resource.for_provider.durable_writes is False
    assert keyspace.for_provider.durable_writes is None


def test_observe_missing_details_row_is_an_error():
    db = FakeDatabase(rows={CQL_SELECT_KEYSPACE_NAME: [("example",)]})
    with pytest.raises(ObserveError, match="failed to scan keyspace attributes"):
        KeyspaceExternal(db).observe(make_keyspace(**FULL))
    assert db.open_cursors == 0


def test_observe_wraps_query_failure_and_releases_nothing_open():
    boom = RuntimeError("boom")
    db = FakeDatabase(query_error=boom)
    with pytest.raises(ObserveError) as excinfo:
        KeyspaceExternal(db).observe(make_keyspace(**FULL))
    assert str(excinfo.value) == "failed to check keyspace existence: boom"
    assert excinfo.value.__cause__ is boom


# ---------------------------
# Create / Update / Delete
# ---------------------------


def test_create_applies_defaults():
    db = FakeDatabase()
    KeyspaceExternal(db).create(make_keyspace())
    assert db.executed == [
        'CREATE KEYSPACE IF NOT EXISTS "example" WITH replication = '
        "{'class': 'SimpleStrategy', 'replication_factor': 1} AND durable_writes = true"
    ]


def test_create_twice_issues_idempotent_statement_both_times():
    db = FakeDatabase()
    external = KeyspaceExternal(db)
    external.create(make_keyspace(**FULL))
    external.create(make_keyspace(**FULL))
    assert len(db.executed) == 2
    assert all(s.startswith("CREATE KEYSPACE IF NOT EXISTS") for s in db.executed)


def test_create_failure_is_labelled():
    boom = RuntimeError("boom")
    with pytest.raises(StatementError) as excinfo:
        KeyspaceExternal(FakeDatabase(exec_error=boom)).create(make_keyspace(**FULL))
    assert str(excinfo.value) == "cannot create keyspace: boom"
    assert excinfo.value.__cause__ is boom


def test_update_issues_alter():
    db = FakeDatabase()
    KeyspaceExternal(db).update(make_keyspace(replication_factor=3, durable_writes=False))
    assert db.executed == [
        'ALTER KEYSPACE "example" WITH replication = '
        "{'class': 'SimpleStrategy', 'replication_factor': 3} AND durable_writes = false"
    ]


def test_delete_issues_drop_if_exists():
    db = FakeDatabase()
    KeyspaceExternal(db).delete(make_keyspace())
    assert db.executed == ['DROP KEYSPACE IF EXISTS "example"']


def test_cancelled_context_issues_nothing():
    db = FakeDatabase()
    ctx = ReconcileContext()
    ctx.cancel()
    with pytest.raises(ReconcileCancelledError):
        KeyspaceExternal(db).create(make_keyspace(), ctx)
    assert db.executed == []


# ---------------------------
# Boundary checks
# ---------------------------


@pytest.mark.parametrize("method", ["observe", "create", "update", "delete"])
@pytest.mark.parametrize("resource", [None, Role(external_name="example")])
def test_wrong_kind_is_rejected_without_side_effects(method, resource):
    db = FakeDatabase(rows=live_keyspace())
    with pytest.raises(NotResourceKindError, match="not a Keyspace custom resource"):
        getattr(KeyspaceExternal(db), method)(resource)
    assert db.executed == []
    assert db.queries == []


def test_empty_external_name_is_rejected():
    db = FakeDatabase()
    with pytest.raises(InvalidResourceError):
        KeyspaceExternal(db).delete(Keyspace(external_name=""))
    assert db.executed == []


def test_observe_scan_failure_releases_cursor():
    paging = RuntimeError("paging")
    db = FakeDatabase(rows=live_keyspace(), scan_error=paging)
    with pytest.raises(
        ObserveError, match="^failed to check keyspace existence: paging$"
    ) as excinfo:
        KeyspaceExternal(db).observe(make_keyspace(**FULL))
    assert excinfo.value.__cause__ is paging
    assert db.open_cursors == 0


@pytest.mark.parametrize("method", ["update", "delete"])
def test_cancelled_context_blocks_update_and_delete(method):
    db = FakeDatabase()
    ctx = ReconcileContext()
    ctx.cancel()
    with pytest.raises(ReconcileCancelledError):
        getattr(KeyspaceExternal(db), method)(make_keyspace(**FULL), ctx)
    assert db.executed == []
