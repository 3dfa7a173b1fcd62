"""Initial database schema: users, tracked routes, passengers, states and catalogs."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

Step = Union[str, Callable[[sqlite3.Connection], None]]


@dataclass(frozen=True)
class Migration:
    """A named, reversible schema change.

    Each step is either an SQL script or a callable that receives the
    connection. ``up`` runs the forward steps in order, ``down`` the
    backward ones.
    """

    name: str
    forward: tuple[Step, ...]
    backward: tuple[Step, ...]

    def up(self, conn: sqlite3.Connection) -> None:
        """Apply the migration."""
        _run(conn, self.forward)

    def down(self, conn: sqlite3.Connection) -> None:
        """Revert the migration."""
        _run(conn, self.backward)

    def __str__(self) -> str:
        return self.name


def _run(conn: sqlite3.Connection, steps: tuple[Step, ...]) -> None:
    for step in steps:
        if isinstance(step, str):
            conn.executescript(step)
        else:
            step(conn)


_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT NOT NULL PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    enabled BOOLEAN NOT NULL DEFAULT TRUE,
    notify_on_change_only BOOLEAN NOT NULL DEFAULT TRUE,
    scrape_interval_secs BIGINT NOT NULL DEFAULT 300,
    discord_webhook_url TEXT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX idx_users_enabled ON users (enabled);
"""

_CREATE_USER_ROUTES = """
CREATE TABLE IF NOT EXISTS user_routes (
    id TEXT NOT NULL PRIMARY KEY,
    user_id TEXT NOT NULL,
    area_id INTEGER NOT NULL,
    route_id INTEGER NOT NULL,
    departure_station TEXT NOT NULL,
    arrival_station TEXT NOT NULL,
    date_start TEXT NOT NULL,
    date_end TEXT NOT NULL,
    departure_time_min TEXT NULL,
    departure_time_max TEXT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT fk_user_routes_user_id FOREIGN KEY (user_id)
        REFERENCES users (id) ON DELETE CASCADE ON UPDATE CASCADE
);
CREATE INDEX idx_user_routes_user_id ON user_routes (user_id);
"""

_CREATE_USER_PASSENGERS = """
CREATE TABLE IF NOT EXISTS user_passengers (
    user_route_id TEXT NOT NULL PRIMARY KEY,
    adult_men SMALLINT NOT NULL DEFAULT 0,
    adult_women SMALLINT NOT NULL DEFAULT 0,
    child_men SMALLINT NOT NULL DEFAULT 0,
    child_women SMALLINT NOT NULL DEFAULT 0,
    handicap_adult_men SMALLINT NOT NULL DEFAULT 0,
    handicap_adult_women SMALLINT NOT NULL DEFAULT 0,
    handicap_child_men SMALLINT NOT NULL DEFAULT 0,
    handicap_child_women SMALLINT NOT NULL DEFAULT 0,
    CONSTRAINT fk_user_passengers_user_route_id FOREIGN KEY (user_route_id)
        REFERENCES user_routes (id) ON DELETE CASCADE ON UPDATE CASCADE
);
"""

_CREATE_ROUTE_STATES = """
CREATE TABLE IF NOT EXISTS route_states (
    user_route_id TEXT NOT NULL PRIMARY KEY,
    last_seen_hash TEXT NOT NULL DEFAULT '',
    last_check TIMESTAMP NULL,
    total_checks BIGINT NOT NULL DEFAULT 0,
    total_alerts BIGINT NOT NULL DEFAULT 0,
    CONSTRAINT fk_route_states_user_route_id FOREIGN KEY (user_route_id)
        REFERENCES user_routes (id) ON DELETE CASCADE ON UPDATE CASCADE
);
"""

_CREATE_STATIONS = """
CREATE TABLE IF NOT EXISTS stations (
    station_id TEXT NOT NULL PRIMARY KEY,
    name TEXT NOT NULL,
    route_id INTEGER NOT NULL
);
CREATE INDEX idx_stations_route_id ON stations (route_id);
INSERT INTO stations (station_id, name, route_id) VALUES
    ('001', 'Busta Shinjuku', 155),
    ('498', 'Kamikochi Bus Terminal', 155);
"""

_CREATE_ROUTES = """
CREATE TABLE IF NOT EXISTS routes (
    route_id TEXT NOT NULL PRIMARY KEY,
    area_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    switch_changeable_flg TEXT NULL,
    created_at TIMESTAMP NOT NULL
);
CREATE INDEX idx_routes_area_id ON routes (area_id);
"""

CREATE_TABLE = Migration(
    "m20220101_000001_create_table",
    (_CREATE_USERS,),
    ("DROP TABLE users;",),
)

CREATE_USER_ROUTES = Migration(
    "m20251014_045535_create_user_routes",
    (_CREATE_USER_ROUTES,),
    ("DROP TABLE user_routes;",),
)

CREATE_USER_PASSENGERS = Migration(
    "m20251014_045537_create_user_passengers",
    (_CREATE_USER_PASSENGERS,),
    ("DROP TABLE user_passengers;",),
)

CREATE_ROUTE_STATES = Migration(
    "m20251014_045538_create_route_states",
    (_CREATE_ROUTE_STATES,),
    ("DROP TABLE route_states;",),
)

CREATE_STATIONS = Migration(
    "m20251014_045540_create_stations",
    (_CREATE_STATIONS,),
    ("DROP TABLE stations;",),
)

CREATE_ROUTES_CATALOG = Migration(
    "m20251014_054404_create_routes_catalog",
    (_CREATE_ROUTES,),
    ("DROP TABLE routes;",),
)


def migrations() -> list[Migration]:
    """Return the initial migrations in the order they are applied."""
    return [
        CREATE_TABLE,
        CREATE_USER_ROUTES,
        CREATE_USER_PASSENGERS,
        CREATE_ROUTE_STATES,
        CREATE_ROUTES_CATALOG,
        CREATE_STATIONS,
    ]