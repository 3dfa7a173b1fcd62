# busseatwatch

Building blocks for watching highway bus routes for free seats:

- `busseatwatch.schedule`: dataclasses `BusSchedule`, `PricingPlan` and
  `SeatAvailability`, each schedule and plan with a `has_seats()` method;
- `busseatwatch.notify`: the rules that decide whether a user is alerted;
- `busseatwatch.statehash`: a stable 64-bit fingerprint of a list of
  schedules, used to tell whether anything changed between two checks;
- `busseatwatch.migrator`: the SQLite schema for users, their watched
  routes, passenger counts and per-route tracking state, applied and
  reverted through ordered migrations, with a `busseatwatch-migrate` command.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Schedules and seats

A `PricingPlan` has seats when its `availability.remaining_seats` is a
number, zero included; `None` means no seat count was reported. A
`BusSchedule` has seats when any of its `available_plans` does.

## Deciding when to alert

```python
from busseatwatch.notify import has_state_changed, should_send_notification

changed = has_state_changed(None, "12345")   # True: there is no earlier state
should_send_notification(True, changed, True)  # True
```

`should_send_notification(notify_on_change_only, state_changed, has_available_seats)`:

| notify_on_change_only | state changed | seats available | alert |
|-----------------------|---------------|-----------------|-------|
| yes                   | yes           | yes             | yes   |
| yes                   | yes           | no              | no    |
| yes                   | no            | any             | no    |
| no                    | any           | yes             | yes   |
| no                    | any           | no              | no    |

`has_state_changed(last_hash, current_hash)` is true when there is no
previous hash or when the two differ. `filter_schedules_with_seats(schedules)`
returns a list of the schedules that have seats, in their original order.

## Fingerprinting schedules

`calculate_state_hash(schedules)` returns an integer built from each
schedule's departure date and time and from each plan's id, price and
remaining-seat count. The same schedules in the same order always give the
same value; changing any of those fields, the number of plans, or the order
of the schedules gives a different one. Other fields, such as the bus number
or plan name, do not affect it.

## The database

```python
from busseatwatch.migrator import Migrator, connect

conn = connect("sqlite::memory:")
migrator = Migrator(conn)
migrator.up()             # apply every pending migration, returns their names
print(migrator.status())  # [(name, applied), ...]
```

`connect(url)` accepts `sqlite::memory:` for an in-memory database, or
`sqlite://<path>` with an optional `?mode=` of `ro`, `rw`, `rwc` or
`memory`; without a mode the file must already exist. Foreign keys are
switched on, so deleting a user removes that user's routes, and deleting a
route removes its passenger counts and tracking state.

`Migrator` offers `applied()`, `pending()`, `status()`, `up(steps)`,
`down(steps)` (latest first), `fresh()` (drop every table, then apply all),
`refresh()` (revert all, then apply all) and `reset()` (revert all). Applied
migrations are recorded in the `seaql_migrations` table; if that table names
a migration the package does not know, `MigrationError` is raised.
`all_migrations()` returns the full ordered list of `Migration` objects.

### From the command line

```
busseatwatch-migrate -u "sqlite://data/bus.db?mode=rwc" status
busseatwatch-migrate up
busseatwatch-migrate up -n 2
busseatwatch-migrate down
busseatwatch-migrate fresh
busseatwatch-migrate refresh
busseatwatch-migrate reset
```

The database URL comes from `-u/--database-url` or the `DATABASE_URL`
environment variable. With no subcommand, `up` is run. `down` reverts one
migration unless `-n` says otherwise. The command exits with status 1 on an
error.

## What this package does not do

It does not fetch timetables or seat counts from any bus operator, send
alerts to chat services, run a periodic checking loop, or serve a web
interface. It provides the data model, the alert rules, the change
fingerprint and the database schema that such a program would use.