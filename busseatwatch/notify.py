"""Decisions on when a seat-availability alert is sent."""

from __future__ import annotations

from collections.abc import Iterable

from busseatwatch.schedule import BusSchedule


def should_send_notification(
    notify_on_change_only: bool,
    state_changed: bool,
    has_available_seats: bool,
) -> bool:
    """Decide whether an alert goes out.

    Without available seats nothing is sent. With seats, a user who only
    wants changes is notified only when the state changed.
    """
    if notify_on_change_only:
        return state_changed and has_available_seats
    return has_available_seats


def filter_schedules_with_seats(
    schedules: Iterable[BusSchedule],
) -> list[BusSchedule]:
    """Keep the schedules with at least one plan that reports seats."""
    return [schedule for schedule in schedules if schedule.has_seats()]


def has_state_changed(last_hash: str | None, current_hash: str) -> bool:
    """Compare the stored hash with the current one.

    A missing previous hash (first check) always counts as a change.
    """
    if last_hash is None:
        return True
    return last_hash != current_hash