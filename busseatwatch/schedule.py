"""Bus schedules, their pricing plans and seat availability."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SeatAvailability:
    """Seat availability of a plan.

    ``remaining_seats`` is ``None`` when the operator reports no seat count.
    A count of zero is still a reported availability.
    """

    remaining_seats: int | None = None


@dataclass(frozen=True)
class PricingPlan:
    """One fare plan offered on a bus."""

    plan_id: int
    plan_index: int
    plan_name: str
    price: int
    display_price: str
    availability: SeatAvailability = field(default_factory=SeatAvailability)

    def has_seats(self) -> bool:
        """Return True when the plan reports a remaining seat count."""
        return self.availability.remaining_seats is not None


@dataclass
class BusSchedule:
    """A single bus departure with the plans that can be booked on it."""

    bus_number: str
    route_name: str
    departure_station: str
    departure_date: str
    departure_time: str
    arrival_station: str
    arrival_date: str
    arrival_time: str
    way_no: int
    available_plans: list[PricingPlan] = field(default_factory=list)

    def has_seats(self) -> bool:
        """Return True when any of the plans reports remaining seats."""
        return any(plan.has_seats() for plan in self.available_plans)