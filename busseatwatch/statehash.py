"""Fingerprint of the seat situation seen on a route."""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Iterable

from busseatwatch.schedule import BusSchedule

_MAX_U64 = (1 << 64) - 1


def _write_str(digest: "hashlib._Hash", value: str) -> None:
    data = value.encode("utf-8")
    digest.update(struct.pack("<Q", len(data)))
    digest.update(data)


def _write_u64(digest: "hashlib._Hash", value: int) -> None:
    digest.update(struct.pack("<Q", value & _MAX_U64))


def _write_optional(digest: "hashlib._Hash", value: int | None) -> None:
    if value is None:
        digest.update(b"\x00")
    else:
        digest.update(b"\x01")
        _write_u64(digest, value)


def calculate_state_hash(schedules: Iterable[BusSchedule]) -> int:
    """Return a 64-bit fingerprint of the given schedules.

    Departure date and time of each schedule, and the id, price and
    remaining seats of each of its plans are fed in order, so the same
    schedules in the same order always give the same value, and any
    change in those fields, or in their order, gives a different one.
    """
    digest = hashlib.blake2b(digest_size=8)
    for schedule in schedules:
        _write_str(digest, schedule.departure_date)
        _write_str(digest, schedule.departure_time)
        _write_u64(digest, len(schedule.available_plans))
        for plan in schedule.available_plans:
            _write_u64(digest, plan.plan_id)
            _write_u64(digest, plan.price)
            _write_optional(digest, plan.availability.remaining_seats)
    return int.from_bytes(digest.digest(), "little")