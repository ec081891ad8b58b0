import logging
import os

import pytest

# Names of fixture that require a live Cassandra cluster
_CASSANDRA_FIXTURE_NAME = "cassandra_fixture"


def quiet_driver() -> None:
    """Turn down cassandra-driver logging during the test context."""
    logging.getLogger("cassandra").setLevel(logging.WARN)


@pytest.fixture(scope="session")
def cassandra_fixture():
    from src.cql_engine.adapters.cassandra_session import CassandraDatabase
    from src.cql_engine.credentials import ConnectionCredentials

    quiet_driver()

    credentials = ConnectionCredentials(
        username=os.getenv("CASSANDRA_USERNAME", "cassandra"),
        password=os.getenv("CASSANDRA_PASSWORD", "cassandra"),
        endpoint=os.getenv("CASSANDRA_ENDPOINT", "localhost"),
        port=int(os.getenv("CASSANDRA_PORT", "9042")),
    )
    db = CassandraDatabase.from_credentials(credentials)

    yield db

    db.shutdown()


def _mark_tests_using_cassandra_fixture(tests: list[pytest.Function]) -> None:
    """
    Adds the `requires_cassandra` marker to tests that are using the fixture that
    requires a live cluster.

    :param tests: list of tests collected by `pytest`
    """
    for test in tests:
        if _CASSANDRA_FIXTURE_NAME in getattr(test, "fixturenames", ()):
            test.add_marker(pytest.mark.requires_cassandra)


def _skip_cassandra_tests(test: pytest.Function) -> None:
    """
    Tell `pytest` to skip tests that require a Cassandra cluster.

    If the config argument `--include-cassandra-tests` is present, this shouldn't be
    invoked.

    :param test: test collected by `pytest`
    """
    if list(test.iter_markers(name="requires_cassandra")):
        pytest.skip("Skipped tests that require a Cassandra cluster")


def pytest_addoption(parser: pytest.Parser):
    parser.addoption(
        "--include-cassandra-tests",
        action="store_true",
        default=False,
        help="Run tests against a live Cassandra cluster.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    if not config.getoption("--include-cassandra-tests"):
        _mark_tests_using_cassandra_fixture(tests=items)


def pytest_runtest_setup(item: pytest.Item):
    if not item.config.getoption("--include-cassandra-tests"):
        _skip_cassandra_tests(test=item)
