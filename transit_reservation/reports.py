"""Seat availability and load factor helpers built on the repositories."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List

from .flights import FlightRepository


def available_seats(total_seats: int, occupied: Iterable[str]) -> List[str]:
    """Return the seat labels ``"1".."total_seats"`` that are not occupied."""

    taken = set(occupied)
    return [str(seat) for seat in range(1, total_seats + 1) if str(seat) not in taken]


def load_factor(occupied: int, total_seats: int) -> float:
    """Occupied seats as a percentage of capacity; 0 for an empty flight."""

    if total_seats <= 0:
        return 0.0
    return occupied / total_seats * 100


@dataclass
class LoadFactorRow:
    flight_id: int
    route: str
    departure_at: datetime
    capacity: int
    occupied: int
    load_factor: float

    def as_row(self) -> list:
        return [
            self.flight_id,
            self.route,
            self.departure_at.strftime("%Y-%m-%d %H:%M"),
            self.capacity,
            self.occupied,
            f"{self.load_factor:.2f} %",
        ]


def build_load_factor_report(flights: FlightRepository, day: date) -> List[LoadFactorRow]:
    report = []
    for flight in flights.get_flights_by_date(day):
        occupied = flights.get_occupied_seats_count(flight.id)
        report.append(
            LoadFactorRow(
                flight_id=flight.id,
                route=flight.route.description,
                departure_at=flight.departure_at,
                capacity=flight.total_seats,
                occupied=occupied,
                load_factor=load_factor(occupied, flight.total_seats),
            )
        )
    return report
