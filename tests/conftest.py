from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine

from transit_reservation.database import ConnectionProvider, create_session_factory, init_db
from transit_reservation.entities import Flight, Passenger, Route, Ticket
from transit_reservation.flights import FlightRepository
from transit_reservation.passengers import PassengerRepository
from transit_reservation.routes import RouteRepository
from transit_reservation.stops import StopStore
from transit_reservation.tickets import TicketRepository

DEPARTURE = datetime(2024, 5, 10, 8, 30)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+pysqlite:///{tmp_path / 'transit-test.db'}"


@pytest.fixture
def provider(db_url):
    engine, session_factory = create_session_factory(db_url)
    init_db(engine)
    yield ConnectionProvider(session_factory)
    engine.dispose()


@pytest.fixture
def raw_engine(db_url, provider):
    """Engine without foreign key enforcement, used to plant broken rows."""

    engine = create_engine(db_url)
    yield engine
    engine.dispose()


@pytest.fixture
def repos(provider):
    stops = StopStore(provider)
    routes = RouteRepository(provider, stops)
    flights = FlightRepository(provider, routes)
    passengers = PassengerRepository(provider)
    tickets = TicketRepository(provider, flights, passengers, routes)
    return SimpleNamespace(stops=stops, routes=routes, flights=flights, passengers=passengers, tickets=tickets)


@pytest.fixture
def cities(repos):
    return {
        city: repos.stops.add_stop(name, city)
        for name, city in (
            ("Central Bus Station", "Kyiv"),
            ("Main Station", "Lviv"),
            ("Bus Station No. 1", "Zhytomyr"),
            ("Central Station", "Rivne"),
        )
    }


@pytest.fixture
def kyiv_lviv(repos, cities):
    return repos.routes.add_route(Route(departure_stop=cities["Kyiv"], destination_stop=cities["Lviv"]))


@pytest.fixture
def make_flight(repos, kyiv_lviv):
    def _make(route=None, *, seats=50, departure=DEPARTURE, price="600.00", **kwargs):
        return repos.flights.add_flight(
            Flight(
                route=route or kyiv_lviv,
                departure_at=departure,
                arrival_at=departure + timedelta(hours=7),
                total_seats=seats,
                price_per_seat=Decimal(price),
                bus_model="Neoplan Cityliner",
                **kwargs,
            )
        )

    return _make


@pytest.fixture
def make_passenger(repos):
    def _make(number="FX100001", name="Olena Melnyk", doc_type="PASSPORT", **kwargs):
        passenger = Passenger(full_name=name, document_type=doc_type, document_number=number, **kwargs)
        passenger.id = repos.passengers.add_or_get_passenger(passenger)
        return passenger

    return _make


@pytest.fixture
def make_ticket(repos):
    def _make(flight, passenger, seat, *, booked_at=DEPARTURE - timedelta(days=2), price=None, **kwargs):
        ticket = Ticket(
            flight=flight,
            passenger=passenger,
            seat_number=seat,
            booked_at=booked_at,
            price_paid=flight.price_per_seat if price is None else Decimal(price),
            **kwargs,
        )
        return ticket, repos.tickets.add_ticket(ticket)

    return _make
