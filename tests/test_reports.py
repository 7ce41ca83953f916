from datetime import date, datetime

import pytest

from transit_reservation.enums import TicketStatus
from transit_reservation.reports import available_seats, build_load_factor_report, load_factor


def test_available_seats_excludes_occupied_labels():
    assert available_seats(5, {"2", "4"}) == ["1", "3", "5"]
    assert available_seats(3, set()) == ["1", "2", "3"]
    assert available_seats(2, ["1", "2"]) == []


def test_load_factor_percentage():
    assert load_factor(49, 50) == pytest.approx(98.0)
    assert load_factor(0, 45) == 0.0
    assert load_factor(3, 0) == 0.0


def test_load_factor_report_for_a_day(repos, make_flight, make_passenger, make_ticket):
    morning = make_flight(seats=4, departure=datetime(2024, 5, 10, 6, 0))
    evening = make_flight(seats=10, departure=datetime(2024, 5, 10, 19, 45))
    make_flight(departure=datetime(2024, 5, 11, 6, 0))
    passenger = make_passenger()
    make_ticket(morning, passenger, "1")
    sold, _ = make_ticket(morning, passenger, "2")
    repos.tickets.update_ticket_status(sold.id, TicketStatus.SOLD, datetime(2024, 5, 9, 10, 0))
    cancelled, _ = make_ticket(morning, passenger, "3")
    repos.tickets.update_ticket_status(cancelled.id, TicketStatus.CANCELLED)

    report = build_load_factor_report(repos.flights, date(2024, 5, 10))

    assert [row.flight_id for row in report] == [morning.id, evening.id]
    assert report[0].occupied == 2
    assert report[0].load_factor == pytest.approx(50.0)
    assert report[1].occupied == 0
    assert report[0].as_row() == [morning.id, "Kyiv–Lviv", "2024-05-10 06:00", 4, 2, "50.00 %"]
