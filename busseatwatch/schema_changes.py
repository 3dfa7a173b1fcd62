"""Later schema changes: station columns, text route ids, seed data and catalog removal."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from busseatwatch.schema_initial import Migration

_Column = Tuple[str, str]
_Literal = Union[str, int, None]

_STATIONS_CREATED_AT_DEFAULT = "2025-10-14 00:00:00"
_SEED_ROUTE: Tuple[str, int, str] = ("155", 1, "Shinjuku - Kamikochi / Shirahone Onsen")
_SEEDED_STATION_IDS: Tuple[str, ...] = ("001", "498")


def _literal(value: _Literal) -> str:
    """Render a value as an SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, int):
        return str(value)
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def _in_list(values: Iterable[_Literal]) -> str:
    return "(" + ", ".join(_literal(value) for value in values) + ")"


def _create_table(
    table: str,
    columns: Sequence[_Column],
    *,
    constraints: Sequence[str] = (),
    if_not_exists: bool = False,
) -> str:
    definitions = [f"{name} {declaration}" for name, declaration in columns]
    definitions.extend(constraints)
    guard = "IF NOT EXISTS " if if_not_exists else ""
    body = ",\n    ".join(definitions)
    return f"CREATE TABLE {guard}{table} (\n    {body}\n);"


def _add_column(table: str, name: str, declaration: str) -> str:
    return f"ALTER TABLE {table} ADD COLUMN {name} {declaration};"


def _index(name: str, table: str, *columns: str) -> str:
    return f"CREATE INDEX {name} ON {table} ({', '.join(columns)});"


def _rebuild(
    table: str,
    suffix: str,
    columns: Sequence[_Column],
    *,
    expressions: Optional[Mapping[str, str]] = None,
    constraints: Sequence[str] = (),
) -> str:
    """Recreate ``table`` with new column definitions, copying every row across."""
    expressions = expressions or {}
    scratch = f"{table}_{suffix}"
    names = [name for name, _ in columns]
    selected = [expressions.get(name, name) for name in names]
    return "\n".join(
        (
            _create_table(scratch, columns, constraints=constraints),
            f"INSERT INTO {scratch} ({', '.join(names)}) "
            f"SELECT {', '.join(selected)} FROM {table};",
            f"DROP TABLE {table};",
            f"ALTER TABLE {scratch} RENAME TO {table};",
        )
    )


def _cast(column: str, column_type: str) -> str:
    return f"CAST({column} AS {column_type})"


def _station_columns(route_id_type: str) -> Tuple[_Column, ...]:
    return (
        ("station_id", "TEXT PRIMARY KEY NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("area_id", "INTEGER NOT NULL DEFAULT 1"),
        ("route_id", route_id_type),
        ("created_at", "TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP"),
    )


def _user_route_columns(route_id_type: str) -> Tuple[_Column, ...]:
    return (
        ("id", "TEXT PRIMARY KEY NOT NULL"),
        ("user_id", "TEXT NOT NULL"),
        ("area_id", "INTEGER NOT NULL"),
        ("route_id", f"{route_id_type} NOT NULL"),
        ("departure_station", "TEXT NOT NULL"),
        ("arrival_station", "TEXT NOT NULL"),
        ("date_start", "TEXT NOT NULL"),
        ("date_end", "TEXT NOT NULL"),
        ("departure_time_min", "TEXT"),
        ("departure_time_max", "TEXT"),
        ("created_at", "TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP"),
    )


_USER_FOREIGN_KEY = (
    "FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE ON UPDATE CASCADE"
)

_STATIONS_AREA_ROUTE_INDEX = _index("idx_stations_area_route", "stations", "area_id", "route_id")
_USER_ROUTES_USER_INDEX = _index("idx_user_routes_user_id", "user_routes", "user_id")


def _stations_with_route_type(column_type: str, suffix: str) -> str:
    return "\n".join(
        (
            _rebuild(
                "stations",
                suffix,
                _station_columns(column_type),
                expressions={"route_id": _cast("route_id", column_type)},
            ),
            _STATIONS_AREA_ROUTE_INDEX,
        )
    )


def _user_routes_with_route_type(column_type: str, suffix: str) -> str:
    return "\n".join(
        (
            _rebuild(
                "user_routes",
                suffix,
                _user_route_columns(column_type),
                expressions={"route_id": _cast("route_id", column_type)},
                constraints=(_USER_FOREIGN_KEY,),
            ),
            _USER_ROUTES_USER_INDEX,
        )
    )


def _alter_stations_up() -> str:
    return "\n".join(
        (
            _add_column("stations", "area_id", "INTEGER NOT NULL DEFAULT 1"),
            _add_column(
                "stations",
                "created_at",
                f"TIMESTAMP NOT NULL DEFAULT {_literal(_STATIONS_CREATED_AT_DEFAULT)}",
            ),
            # The old index may already be gone; dropping it is best effort.
            "DROP INDEX IF EXISTS idx_stations_route_id;",
            _rebuild("stations", "new", _station_columns("INTEGER")),
            _STATIONS_AREA_ROUTE_INDEX,
        )
    )


def _alter_stations_down() -> str:
    legacy_columns = (
        ("station_id", "TEXT PRIMARY KEY NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("route_id", "INTEGER NOT NULL"),
    )
    return "\n".join(
        (
            _rebuild(
                "stations",
                "old",
                legacy_columns,
                expressions={"route_id": "COALESCE(route_id, 0)"},
            ),
            _index("idx_stations_route_id", "stations", "route_id"),
        )
    )


def _seed_routes_up() -> str:
    route_id, area_id, name = _SEED_ROUTE
    values = ", ".join(
        (_literal(route_id), _literal(area_id), _literal(name), _literal(None), "CURRENT_TIMESTAMP")
    )
    return "\n".join(
        (
            "INSERT OR IGNORE INTO routes "
            "(route_id, area_id, name, switch_changeable_flg, created_at) "
            f"VALUES ({values});",
            f"UPDATE stations SET route_id = {_literal(route_id)} "
            f"WHERE station_id IN {_in_list(_SEEDED_STATION_IDS)};",
        )
    )


def _seed_routes_down() -> str:
    route_id = _SEED_ROUTE[0]
    return "\n".join(
        (
            f"DELETE FROM routes WHERE route_id = {_literal(route_id)};",
            f"UPDATE stations SET route_id = {_literal(None)} "
            f"WHERE station_id IN {_in_list(_SEEDED_STATION_IDS)};",
        )
    )


def _drop_catalog_up() -> str:
    # Stations go first: they refer to routes.
    return "\n".join(f"DROP TABLE IF EXISTS {table};" for table in ("stations", "routes"))


def _drop_catalog_down() -> str:
    routes_columns = (
        ("route_id", "TEXT NOT NULL PRIMARY KEY"),
        ("area_id", "INTEGER NOT NULL"),
        ("name", "TEXT NOT NULL"),
        ("switch_changeable_flg", "TEXT"),
        ("created_at", "TIMESTAMP NOT NULL"),
    )
    stations_columns = (
        ("station_id", "TEXT NOT NULL PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("area_id", "INTEGER NOT NULL"),
        ("route_id", "TEXT"),
        ("created_at", "TIMESTAMP NOT NULL"),
    )
    return "\n".join(
        (
            _create_table("routes", routes_columns, if_not_exists=True),
            _create_table("stations", stations_columns, if_not_exists=True),
        )
    )


ALTER_STATIONS_ADD_COLUMNS = Migration(
    "m20251014_060000_alter_stations_add_columns",
    (_alter_stations_up(),),
    (_alter_stations_down(),),
)

FIX_ROUTE_ID_TYPES = Migration(
    "m20251212_000001_fix_route_id_types",
    (
        _stations_with_route_type("TEXT", "new"),
        _user_routes_with_route_type("TEXT", "new"),
    ),
    (
        _stations_with_route_type("INTEGER", "old"),
        _user_routes_with_route_type("INTEGER", "old"),
    ),
)

SEED_ROUTES_DATA = Migration(
    "m20251212_000002_seed_routes_data",
    (_seed_routes_up(),),
    (_seed_routes_down(),),
)

DROP_ROUTES_STATIONS_TABLES = Migration(
    "m20251212_000003_drop_routes_stations_tables",
    (_drop_catalog_up(),),
    (_drop_catalog_down(),),
)


def migrations() -> list[Migration]:
    """Return the later migrations in the order they are applied."""
    return [
        ALTER_STATIONS_ADD_COLUMNS,
        FIX_ROUTE_ID_TYPES,
        SEED_ROUTES_DATA,
        DROP_ROUTES_STATIONS_TABLES,
    ]