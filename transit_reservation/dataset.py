"""Utilities to populate the database with sample data for tests and demos."""
from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from .database import ConnectionProvider
from .entities import Flight, Passenger, Route, Stop, Ticket
from .enums import BenefitType, TicketStatus
from .flights import FlightRepository
from .passengers import PassengerRepository
from .routes import RouteRepository
from .stops import StopStore
from .tickets import TicketRepository

STOPS: Sequence[Tuple[str, str]] = (
    ("Central Bus Station", "Kyiv"),
    ("Main Station", "Lviv"),
    ("Bus Station No. 1", "Zhytomyr"),
    ("Central Station", "Rivne"),
    ("Privoz Station", "Odesa"),
    ("Central Station", "Vinnytsia"),
    ("Central Station", "Uman"),
    ("Bus Station", "Poltava"),
    ("Central Station", "Kharkiv"),
)
# (departure index, destination index, intermediate indexes)
ROUTES: Sequence[Tuple[int, int, Tuple[int, ...]]] = (
    (0, 1, (2, 3)),
    (0, 4, (6,)),
    (0, 8, (7,)),
    (1, 5, ()),
)
BUS_MODELS = ("Neoplan Cityliner", "Setra S 515", "Mercedes Tourismo", "Bogdan A144")
FIRST_NAMES = ("Olena", "Taras", "Iryna", "Andrii", "Oksana", "Dmytro", "Sofiia", "Maksym")
LAST_NAMES = ("Shevchenko", "Kovalenko", "Bondarenko", "Tkachenko", "Melnyk", "Boyko")
BOOKING_HOLD = timedelta(hours=24)


def _random_departure(base: datetime, days_from_base: int) -> datetime:
    start = base + timedelta(days=days_from_base)
    hour = random.randint(5, 22)
    minute = random.choice((0, 15, 30, 45))
    return start.replace(hour=hour, minute=minute, second=0, microsecond=0)


def generate_sample_data(
    provider: ConnectionProvider,
    *,
    flights: int = 12,
    passengers: int = 60,
    bookings: int = 150,
    now: datetime | None = None,
) -> Dict[str, int]:
    """Populate the database with deterministic pseudo-random data.

    Seat conflicts raised by random booking are counted in ``seat_conflicts``.
    """

    random.seed(42)
    now = now or datetime.now().replace(microsecond=0)
    stop_store = StopStore(provider)
    route_repo = RouteRepository(provider, stop_store)
    flight_repo = FlightRepository(provider, route_repo)
    passenger_repo = PassengerRepository(provider)
    ticket_repo = TicketRepository(provider, flight_repo, passenger_repo, route_repo)

    stops: List[Stop] = [stop_store.add_stop(name, city) for name, city in STOPS]
    routes = [
        route_repo.add_route(
            Route(
                departure_stop=stops[departure],
                destination_stop=stops[destination],
                intermediate_stops=[stops[index] for index in intermediate],
            )
        )
        for departure, destination, intermediate in ROUTES
    ]

    scheduled: List[Flight] = []
    for _ in range(flights):
        departure = _random_departure(now, random.randint(1, 10))
        scheduled.append(
            flight_repo.add_flight(
                Flight(
                    route=random.choice(routes),
                    departure_at=departure,
                    arrival_at=departure + timedelta(hours=random.randint(3, 12)),
                    total_seats=random.choice((30, 45, 50)),
                    price_per_seat=Decimal(random.choice(("450.00", "600.00", "750.50"))),
                    bus_model=random.choice(BUS_MODELS),
                )
            )
        )

    riders: List[Passenger] = []
    for index in range(passengers):
        candidate = Passenger(
            full_name=f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
            document_type="PASSPORT",
            document_number=f"FX{100000 + index}",
            phone_number=f"+380-67-{index:07d}",
            email=f"rider{index}@example.com",
            benefit_type=random.choice(list(BenefitType)),
        )
        candidate.id = passenger_repo.add_or_get_passenger(candidate)
        riders.append(candidate)

    booked = conflicts = 0
    for _ in range(bookings):
        flight = random.choice(scheduled)
        booked_at = now - timedelta(days=random.randint(0, 5))
        ticket = Ticket(
            flight=flight,
            passenger=random.choice(riders),
            seat_number=str(random.randint(1, flight.total_seats)),
            booked_at=booked_at,
            booking_expires_at=booked_at + BOOKING_HOLD,
            price_paid=flight.price_per_seat,
        )
        if not ticket_repo.add_ticket(ticket):
            conflicts += 1
            continue
        booked += 1
        if random.random() < 0.6:
            ticket_repo.update_ticket_status(ticket.id, TicketStatus.SOLD, booked_at + timedelta(hours=1))
        elif random.random() < 0.2:
            ticket_repo.update_ticket_status(ticket.id, TicketStatus.CANCELLED)

    return {
        "stops": len(stops),
        "routes": len(routes),
        "flights": len(scheduled),
        "passengers": len(riders),
        "bookings": booked,
        "seat_conflicts": conflicts,
    }
