import sqlite3

import pytest

from busseatwatch.schema_initial import Migration, migrations


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.execute("PRAGMA foreign_keys = ON")
    yield connection
    connection.close()


@pytest.fixture
def migrated(conn):
    for migration in migrations():
        migration.up(conn)
    return conn


def _tables(conn):
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table'"
    ).fetchall()
    return {name for (name,) in rows}


def _indexes(conn):
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name LIKE 'idx_%'"
    ).fetchall()
    return {name for (name,) in rows}


def _add_user(conn, user_id="u1", email="user@example.com"):
    conn.execute("INSERT INTO users (id, email) VALUES (?, ?)", (user_id, email))


def _add_route(conn, route_id="r1", user_id="u1"):
    conn.execute(
        "INSERT INTO user_routes (id, user_id, area_id, route_id, departure_station,"
        " arrival_station, date_start, date_end) VALUES (?, ?, 1, 155, '001', '498',"
        " '2025-01-01', '2025-01-15')",
        (route_id, user_id),
    )


def test_migration_names_in_application_order():
    assert [m.name for m in migrations()] == [
        "m20220101_000001_create_table",
        "m20251014_045535_create_user_routes",
        "m20251014_045537_create_user_passengers",
        "m20251014_045538_create_route_states",
        "m20251014_054404_create_routes_catalog",
        "m20251014_045540_create_stations",
    ]


def test_str_is_name():
    first = migrations()[0]
    assert str(first) == first.name


def test_up_creates_all_tables(migrated):
    assert _tables(migrated) >= {
        "users",
        "user_routes",
        "user_passengers",
        "route_states",
        "stations",
        "routes",
    }


def test_up_creates_indexes(migrated):
    assert _indexes(migrated) == {
        "idx_users_enabled",
        "idx_user_routes_user_id",
        "idx_stations_route_id",
        "idx_routes_area_id",
    }


def test_user_defaults(migrated):
    _add_user(migrated)
    row = migrated.execute(
        "SELECT enabled, notify_on_change_only, scrape_interval_secs,"
        " discord_webhook_url, created_at FROM users WHERE id = 'u1'"
    ).fetchone()
    assert row[0] == 1
    assert row[1] == 1
    assert row[2] == 300
    assert row[3] is None
    assert row[4]


def test_user_email_is_unique(migrated):
    _add_user(migrated, "u1", "same@example.com")
    with pytest.raises(sqlite3.IntegrityError):
        _add_user(migrated, "u2", "same@example.com")
    rows = migrated.execute(
        "SELECT id FROM users WHERE email = 'same@example.com'"
    ).fetchall()
    assert rows == [("u1",)]


def test_user_route_requires_existing_user(migrated):
    with pytest.raises(sqlite3.IntegrityError):
        _add_route(migrated, "r1", "missing")
    assert migrated.execute("SELECT COUNT(*) FROM user_routes").fetchone() == (0,)


def test_passenger_defaults_are_zero(migrated):
    _add_user(migrated)
    _add_route(migrated)
    migrated.execute("INSERT INTO user_passengers (user_route_id) VALUES ('r1')")
    row = migrated.execute(
        "SELECT * FROM user_passengers WHERE user_route_id = 'r1'"
    ).fetchone()
    assert row[0] == "r1"
    assert all(value == 0 for value in row[1:])
    assert len(row) == 9


def test_route_state_defaults(migrated):
    _add_user(migrated)
    _add_route(migrated)
    migrated.execute("INSERT INTO route_states (user_route_id) VALUES ('r1')")
    row = migrated.execute(
        "SELECT last_seen_hash, last_check, total_checks, total_alerts"
        " FROM route_states"
    ).fetchone()
    assert row == ("", None, 0, 0)


def test_deleting_user_cascades(migrated):
    _add_user(migrated)
    _add_route(migrated, "r1")
    _add_route(migrated, "r2")
    migrated.execute("INSERT INTO user_passengers (user_route_id) VALUES ('r1')")
    migrated.execute("INSERT INTO route_states (user_route_id) VALUES ('r2')")
    migrated.execute("DELETE FROM users WHERE id = 'u1'")
    for table in ("user_routes", "user_passengers", "route_states"):
        (count,) = migrated.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        assert count == 0


def test_deleting_route_only_affects_its_children(migrated):
    _add_user(migrated)
    _add_route(migrated, "r1")
    _add_route(migrated, "r2")
    for route in ("r1", "r2"):
        migrated.execute(
            "INSERT INTO user_passengers (user_route_id) VALUES (?)", (route,)
        )
    migrated.execute("DELETE FROM user_routes WHERE id = 'r1'")
    rows = migrated.execute("SELECT user_route_id FROM user_passengers").fetchall()
    assert rows == [("r2",)]


def test_stations_are_seeded(migrated):
    rows = migrated.execute(
        "SELECT station_id, name, route_id FROM stations ORDER BY station_id"
    ).fetchall()
    assert rows == [
        ("001", "Busta Shinjuku", 155),
        ("498", "Kamikochi Bus Terminal", 155),
    ]


def test_routes_catalog_starts_empty_and_requires_created_at(migrated):
    assert migrated.execute("SELECT COUNT(*) FROM routes").fetchone() == (0,)
    with pytest.raises(sqlite3.IntegrityError):
        migrated.execute(
            "INSERT INTO routes (route_id, area_id, name) VALUES ('155', 1, 'x')"
        )


def test_down_in_reverse_removes_tables(migrated):
    for migration in reversed(migrations()):
        migration.down(migrated)
    assert _tables(migrated).isdisjoint(
        {"users", "user_routes", "user_passengers", "route_states", "stations", "routes"}
    )


def test_up_twice_fails_on_existing_index(conn):
    first = migrations()[0]
    first.up(conn)
    with pytest.raises(sqlite3.OperationalError):
        first.up(conn)


def test_down_without_table_fails(conn):
    with pytest.raises(sqlite3.OperationalError):
        migrations()[0].down(conn)


def test_custom_migration_runs_callables_and_scripts(conn):
    calls = []

    def record(connection):
        calls.append(connection)

    migration = Migration(
        "custom",
        ("CREATE TABLE t (x INTEGER);", record),
        ("DROP TABLE t;",),
    )
    migration.up(conn)
    assert "t" in _tables(conn)
    assert calls == [conn]
    migration.down(conn)
    assert "t" not in _tables(conn)