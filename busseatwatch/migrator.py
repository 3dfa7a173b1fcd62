"""Applying and reverting the schema migrations, with a command line front end."""

from __future__ import annotations

import argparse
import os
import sqlite3
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from urllib.parse import quote

from busseatwatch import schema_changes, schema_initial
from busseatwatch.schema_initial import Migration

TRACKING_TABLE = "seaql_migrations"
_MODES = {"ro", "rw", "rwc", "memory"}


class MigrationError(Exception):
    """Raised when the recorded migrations do not match the known ones."""


def all_migrations() -> list[Migration]:
    """Return every migration in the order it is applied."""
    return [*schema_initial.migrations(), *schema_changes.migrations()]


def connect(url: str) -> sqlite3.Connection:
    """Open an SQLite database from a ``sqlite:`` URL with foreign keys enforced.

    ``sqlite::memory:`` opens an in-memory database. A ``mode`` query
    parameter (``ro``, ``rw``, ``rwc``, ``memory``) controls how a file is
    opened; without it the file must already exist.
    """
    scheme, sep, rest = url.partition(":")
    if not sep or scheme != "sqlite":
        raise ValueError(f"unsupported database url: {url!r}")
    if rest.startswith("//"):
        rest = rest[2:]
    path, _, query = rest.partition("?")
    if path in ("", ":memory:"):
        conn = sqlite3.connect(":memory:")
    else:
        params = dict(part.partition("=")[::2] for part in query.split("&") if part)
        mode = params.get("mode", "rw")
        if mode not in _MODES:
            raise ValueError(f"unsupported open mode: {mode!r}")
        conn = sqlite3.connect(f"file:{quote(path, safe='/:')}?mode={mode}", uri=True)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


class Migrator:
    """Tracks which migrations a database has and moves it up or down."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.migrations = all_migrations()

    def _ensure_table(self) -> None:
        self.conn.execute(
            f"CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} ("
            "version TEXT NOT NULL PRIMARY KEY, applied_at BIGINT NOT NULL)"
        )
        self.conn.commit()

    def _applied_versions(self) -> set[str]:
        self._ensure_table()
        versions = {
            row[0] for row in self.conn.execute(f"SELECT version FROM {TRACKING_TABLE}")
        }
        missing = sorted(versions - {m.name for m in self.migrations})
        if missing:
            raise MigrationError(
                f"Migration file of version '{missing[0]}' is missing, "
                "this migration has been applied but its file is missing"
            )
        return versions

    @contextmanager
    def _foreign_keys_off(self) -> Iterator[None]:
        self.conn.commit()
        (enabled,) = self.conn.execute("PRAGMA foreign_keys").fetchone()
        self.conn.execute("PRAGMA foreign_keys = OFF")
        try:
            yield
        except BaseException:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()
        finally:
            if enabled:
                self.conn.execute("PRAGMA foreign_keys = ON")

    @staticmethod
    def _limit(migrations: list[Migration], steps: int | None) -> list[Migration]:
        if steps is None:
            return migrations
        if steps < 0:
            raise ValueError("steps must not be negative")
        return migrations[:steps]

    def applied(self) -> list[Migration]:
        """Return the applied migrations in application order."""
        versions = self._applied_versions()
        return [m for m in self.migrations if m.name in versions]

    def pending(self) -> list[Migration]:
        """Return the migrations not yet applied, in application order."""
        versions = self._applied_versions()
        return [m for m in self.migrations if m.name not in versions]

    def status(self) -> list[tuple[str, bool]]:
        """Return each migration name with whether it has been applied."""
        versions = self._applied_versions()
        return [(m.name, m.name in versions) for m in self.migrations]

    def up(self, steps: int | None = None) -> list[str]:
        """Apply pending migrations, all of them or the first ``steps``."""
        todo = self._limit(self.pending(), steps)
        with self._foreign_keys_off():
            for migration in todo:
                migration.up(self.conn)
                self.conn.execute(
                    f"INSERT INTO {TRACKING_TABLE} (version, applied_at) VALUES (?, ?)",
                    (migration.name, int(time.time())),
                )
                self.conn.commit()
        return [m.name for m in todo]

    def down(self, steps: int | None = None) -> list[str]:
        """Revert applied migrations, latest first; all of them or ``steps``."""
        todo = self._limit(list(reversed(self.applied())), steps)
        with self._foreign_keys_off():
            for migration in todo:
                migration.down(self.conn)
                self.conn.execute(
                    f"DELETE FROM {TRACKING_TABLE} WHERE version = ?", (migration.name,)
                )
                self.conn.commit()
        return [m.name for m in todo]

    def fresh(self) -> list[str]:
        """Drop every table, then apply all migrations."""
        with self._foreign_keys_off():
            names = [
                row[0]
                for row in self.conn.execute(
                    "SELECT name FROM sqlite_master "
                    "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
                )
            ]
            for name in names:
                self.conn.execute(f'DROP TABLE IF EXISTS "{name}"')
        return self.up()

    def refresh(self) -> list[str]:
        """Revert all applied migrations, then apply all of them again."""
        self.down()
        return self.up()

    def reset(self) -> list[str]:
        """Revert all applied migrations."""
        return self.down()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="busseatwatch-migrate", description="Manage the database schema."
    )
    parser.add_argument(
        "-u",
        "--database-url",
        default=os.environ.get("DATABASE_URL"),
        help="database URL (defaults to $DATABASE_URL)",
    )
    commands = parser.add_subparsers(dest="command")
    up = commands.add_parser("up", help="apply pending migrations")
    up.add_argument("-n", "--num", type=int, default=None, help="number to apply")
    down = commands.add_parser("down", help="revert applied migrations")
    down.add_argument("-n", "--num", type=int, default=1, help="number to revert")
    commands.add_parser("status", help="show the state of every migration")
    commands.add_parser("fresh", help="drop all tables and apply all migrations")
    commands.add_parser("refresh", help="revert all migrations and apply them again")
    commands.add_parser("reset", help="revert all migrations")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the migration command line."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.database_url:
        parser.error("a database URL is required (-u or DATABASE_URL)")
    command = args.command or "up"
    try:
        conn = connect(args.database_url)
    except (ValueError, sqlite3.Error) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    try:
        migrator = Migrator(conn)
        if command == "status":
            for name, done in migrator.status():
                print(f"Migration '{name}'... {'Applied' if done else 'Pending'}")
            return 0
        if command == "up":
            names, verb = migrator.up(getattr(args, "num", None)), "Applied"
        elif command == "down":
            names, verb = migrator.down(args.num), "Rolled back"
        elif command == "fresh":
            names, verb = migrator.fresh(), "Applied"
        elif command == "refresh":
            names, verb = migrator.refresh(), "Applied"
        else:
            names, verb = migrator.reset(), "Rolled back"
        if not names:
            print("No migrations to run")
        for name in names:
            print(f"{verb} migration '{name}'")
        return 0
    except (MigrationError, ValueError, sqlite3.Error) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        conn.close()