import logging
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from transit_reservation.entities import BookingResult, Flight, Passenger, Route, Stop, Ticket
from transit_reservation.enums import (
    BenefitType,
    FlightStatus,
    TicketStatus,
    display_label,
    parse_token,
)
from transit_reservation.errors import DataCorruptionError, IntegrityError

KYIV = Stop(1, "Central Bus Station", "Kyiv")
LVIV = Stop(2, "Main Station", "Lviv")
RIVNE = Stop(3, "Central Station", "Rivne")


def _flight(**overrides):
    values = dict(
        route=Route(KYIV, LVIV),
        departure_at=datetime(2024, 5, 10, 8, 0),
        arrival_at=datetime(2024, 5, 10, 15, 0),
        total_seats=50,
        price_per_seat=Decimal("600.00"),
    )
    values.update(overrides)
    return Flight(**values)


def test_stops_compare_by_id_only():
    assert Stop(1, "Old name", "Kyiv") == KYIV
    assert Stop(4, "Central Bus Station", "Kyiv") != KYIV
    assert len({KYIV, Stop(1, "Renamed", "Kyiv")}) == 1


def test_stop_requires_name_and_city():
    with pytest.raises(ValueError):
        Stop(5, " ", "Kyiv")
    with pytest.raises(ValueError):
        Stop(5, "Station", "")


def test_route_description_follows_travel_order():
    route = Route(KYIV, LVIV, [Stop(7, "Bus Station No. 1", "Zhytomyr"), RIVNE])
    assert route.description == "Kyiv–Zhytomyr–Rivne–Lviv"
    assert Route(KYIV, LVIV).description == "Kyiv–Lviv"


def test_route_requires_both_ends():
    with pytest.raises(ValueError):
        Route(None, LVIV)
    with pytest.raises(ValueError):
        Route(KYIV, None)


def test_circular_route_is_allowed_with_warning(caplog):
    caplog.set_level(logging.WARNING)
    route = Route(KYIV, Stop(1, "Central Bus Station", "Kyiv"))
    assert route.departure_stop == route.destination_stop
    assert "same stop" in caplog.text


def test_flight_validates_capacity_and_price():
    with pytest.raises(ValueError):
        _flight(total_seats=0)
    with pytest.raises(ValueError):
        _flight(price_per_seat=Decimal("-1"))
    assert _flight(price_per_seat=0).price_per_seat == Decimal("0")


def test_flight_arriving_before_departure_is_logged_not_rejected(caplog):
    caplog.set_level(logging.WARNING)
    flight = _flight(arrival_at=datetime(2024, 5, 10, 6, 0))
    assert flight.arrival_at < flight.departure_at
    assert "after its arrival" in caplog.text


def test_flight_bookable_statuses():
    assert _flight().is_bookable
    assert _flight(status=FlightStatus.DELAYED).is_bookable
    assert not _flight(status=FlightStatus.DEPARTED).is_bookable
    assert not _flight(status=FlightStatus.CANCELLED).is_bookable


def test_passenger_benefit_defaults_to_none():
    passenger = Passenger("Taras Boyko", "PASSPORT", "FX1", benefit_type=None)
    assert passenger.benefit_type is BenefitType.NONE
    with pytest.raises(ValueError):
        Passenger("Taras Boyko", "PASSPORT", "")


def test_ticket_validation_and_activity():
    passenger = Passenger("Taras Boyko", "PASSPORT", "FX1", id=1)
    flight = _flight(id=3)
    booked_at = datetime(2024, 5, 1, 12, 0)
    ticket = Ticket(flight, passenger, "12", booked_at, Decimal("600.00"))
    assert ticket.status is TicketStatus.BOOKED
    assert ticket.is_active
    ticket.status = TicketStatus.CANCELLED
    assert not ticket.is_active
    with pytest.raises(ValueError):
        Ticket(flight, passenger, "12", booked_at, Decimal("-0.01"))
    with pytest.raises(ValueError):
        Ticket(flight, passenger, "", booked_at + timedelta(hours=1), Decimal("1"))


def test_booking_result_truthiness():
    assert BookingResult(success=True, ticket_id=4)
    assert not BookingResult(success=False, reason="seat already taken")


def test_every_status_has_a_label():
    for enum_cls in (FlightStatus, TicketStatus, BenefitType):
        for value in enum_cls:
            assert display_label(value)
    assert display_label(TicketStatus.SOLD) == "Sold"


def test_parse_token_rejects_null_and_unknown_values():
    assert parse_token(FlightStatus, "DELAYED", "Flight 1") is FlightStatus.DELAYED
    with pytest.raises(DataCorruptionError):
        parse_token(FlightStatus, None, "Flight 1")
    with pytest.raises(IntegrityError, match="BOGUS"):
        parse_token(TicketStatus, "BOGUS", "Ticket 9")
