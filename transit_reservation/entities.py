"""Domain entities returned and accepted by the repositories."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .enums import (
    ACTIVE_TICKET_STATUSES,
    BOOKABLE_FLIGHT_STATUSES,
    BenefitType,
    FlightStatus,
    TicketStatus,
)

logger = logging.getLogger(__name__)

ROUTE_SEPARATOR = "–"
SEAT_TAKEN = "seat already taken"


def _require_text(value: Optional[str], name: str) -> None:
    if value is None or not value.strip():
        raise ValueError(f"{name} must not be empty")


@dataclass(frozen=True)
class Stop:
    """A named location. Two stops are equal when their ids match."""

    id: int
    name: str = field(compare=False)
    city: str = field(compare=False)

    def __post_init__(self) -> None:
        _require_text(self.name, "stop name")
        _require_text(self.city, "stop city")


@dataclass
class Route:
    departure_stop: Stop
    destination_stop: Stop
    intermediate_stops: List[Stop] = field(default_factory=list)
    id: int = 0

    def __post_init__(self) -> None:
        if self.departure_stop is None:
            raise ValueError("departure stop is required")
        if self.destination_stop is None:
            raise ValueError("destination stop is required")
        if self.departure_stop == self.destination_stop:
            logger.warning(
                "Route %s departs from and arrives at the same stop %s",
                self.id,
                self.departure_stop.id,
            )
        self.intermediate_stops = list(self.intermediate_stops or [])

    @property
    def description(self) -> str:
        cities = [self.departure_stop.city]
        cities.extend(stop.city for stop in self.intermediate_stops if stop is not None)
        cities.append(self.destination_stop.city)
        return ROUTE_SEPARATOR.join(cities)


@dataclass
class Flight:
    route: Route
    departure_at: datetime
    arrival_at: datetime
    total_seats: int
    price_per_seat: Decimal
    status: FlightStatus = FlightStatus.PLANNED
    bus_model: Optional[str] = None
    id: int = 0

    def __post_init__(self) -> None:
        if self.route is None:
            raise ValueError("flight route is required")
        if self.departure_at is None or self.arrival_at is None:
            raise ValueError("departure and arrival times are required")
        if self.status is None:
            raise ValueError("flight status is required")
        if self.total_seats <= 0:
            raise ValueError("total seats must be positive")
        self.price_per_seat = Decimal(self.price_per_seat)
        if self.price_per_seat < 0:
            raise ValueError("price per seat must not be negative")
        if self.departure_at > self.arrival_at:
            logger.warning(
                "Flight %s departs at %s after its arrival at %s",
                self.id,
                self.departure_at,
                self.arrival_at,
            )

    @property
    def is_bookable(self) -> bool:
        return self.status in BOOKABLE_FLIGHT_STATUSES


@dataclass
class Passenger:
    full_name: str
    document_type: str
    document_number: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    benefit_type: Optional[BenefitType] = BenefitType.NONE
    id: int = 0

    def __post_init__(self) -> None:
        _require_text(self.full_name, "full name")
        _require_text(self.document_type, "document type")
        _require_text(self.document_number, "document number")
        if self.benefit_type is None:
            self.benefit_type = BenefitType.NONE


@dataclass
class Ticket:
    flight: Flight
    passenger: Passenger
    seat_number: str
    booked_at: datetime
    price_paid: Decimal
    status: TicketStatus = TicketStatus.BOOKED
    booking_expires_at: Optional[datetime] = None
    purchased_at: Optional[datetime] = None
    id: int = 0

    def __post_init__(self) -> None:
        if self.flight is None or self.passenger is None:
            raise ValueError("ticket needs a flight and a passenger")
        _require_text(self.seat_number, "seat number")
        if self.booked_at is None:
            raise ValueError("booking time is required")
        self.price_paid = Decimal(self.price_paid)
        if self.price_paid < 0:
            raise ValueError("price paid must not be negative")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TICKET_STATUSES


@dataclass
class BookingResult:
    """Outcome of a booking attempt; falsy when the seat was already taken."""

    success: bool
    ticket_id: Optional[int] = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.success


@dataclass
class SalesSummary:
    total_sales: Decimal
    ticket_count: int
