import src.cql_engine.cql as cql


# ---- keyspace ----

def test_create_keyspace_statement():
    out = cql.cql_create_keyspace("example", "SimpleStrategy", 2, True)
    assert out == (
        'CREATE KEYSPACE IF NOT EXISTS "example" WITH replication = '
        "{'class': 'SimpleStrategy', 'replication_factor': 2} AND durable_writes = true"
    )


def test_alter_keyspace_statement():
    out = cql.cql_alter_keyspace("example", "NetworkTopologyStrategy", 3, False)
    assert out == (
        'ALTER KEYSPACE "example" WITH replication = '
        "{'class': 'NetworkTopologyStrategy', 'replication_factor': 3} AND durable_writes = false"
    )


def test_drop_keyspace_statement():
    assert cql.cql_drop_keyspace("example") == 'DROP KEYSPACE IF EXISTS "example"'


# ---- role ----

def test_create_role_statement_escapes_password():
    out = cql.cql_create_role("app", True, False, "it's")
    assert out == (
        'CREATE ROLE IF NOT EXISTS "app" WITH SUPERUSER = true AND LOGIN = false '
        "AND PASSWORD = 'it''s'"
    )


def test_alter_role_statement():
    assert cql.cql_alter_role("app", False, True) == (
        'ALTER ROLE "app" WITH SUPERUSER = false AND LOGIN = true'
    )


def test_drop_role_statement():
    assert cql.cql_drop_role("app") == 'DROP ROLE IF EXISTS "app"'


# ---- grant ----

def test_grant_and_revoke_statements():
    assert cql.cql_grant("SELECT", "ks", "app") == 'GRANT SELECT ON KEYSPACE "ks" TO "app"'
    assert cql.cql_revoke("ALL PERMISSIONS", "ks", "app") == (
        'REVOKE ALL PERMISSIONS ON KEYSPACE "ks" FROM "app"'
    )


def test_select_permissions_embeds_escaped_keyspace_literal():
    out = cql.cql_select_keyspace_permissions("o'ks")
    assert out == (
        "SELECT permissions FROM system_auth.role_permissions "
        "WHERE role = ? AND resource = 'data/o''ks'"
    )


def test_observation_queries_use_bind_markers():
    assert cql.CQL_SELECT_KEYSPACE_NAME.endswith("WHERE keyspace_name = ?")
    assert cql.CQL_SELECT_KEYSPACE_DETAILS.startswith("SELECT replication, durable_writes")
    assert cql.CQL_SELECT_ROLE == (
        "SELECT is_superuser, can_login FROM system_auth.roles WHERE role = ?"
    )
