"""Persistence of tickets, seat occupancy and sales reporting."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Set

from sqlalchemy import exc as sa_exc
from sqlalchemy import func, select, update

from .database import ConnectionProvider
from .entities import SEAT_TAKEN, BookingResult, Flight, Passenger, SalesSummary, Ticket
from .enums import ACTIVE_TICKET_STATUSES, TicketStatus, parse_token
from .errors import DataCorruptionError, IntegrityError, StorageError
from .flights import FlightRepository
from .models import SEAT_CONSTRAINT, FlightRecord, TicketRecord
from .passengers import PassengerRepository
from .routes import RouteRepository

_ACTIVE_TOKENS = [status.value for status in ACTIVE_TICKET_STATUSES]
_CENT = Decimal("0.01")


def _is_seat_conflict(exc: sa_exc.IntegrityError) -> bool:
    """Recognise a (flight, seat) uniqueness violation across drivers.

    PostgreSQL and MySQL name the index, SQLite names the column pair.
    """

    message = str(exc.orig).lower()
    return SEAT_CONSTRAINT in message or (
        "tickets.flight_id" in message and "tickets.seat_number" in message
    )


def _snapshot(record: TicketRecord) -> dict:
    return {
        "id": record.id,
        "flight_id": record.flight_id,
        "passenger_id": record.passenger_id,
        "seat_number": record.seat_number,
        "booked_at": record.booking_date_time,
        "booking_expires_at": record.booking_expiry_date_time,
        "purchased_at": record.purchase_date_time,
        "price_paid": record.price_paid,
        "status": record.status,
    }


def unknown_route_label(route_id: int) -> str:
    return f"unknown/deleted route, id={route_id}"


class TicketRepository:
    def __init__(
        self,
        provider: ConnectionProvider,
        flights: Optional[FlightRepository] = None,
        passengers: Optional[PassengerRepository] = None,
        routes: Optional[RouteRepository] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._provider = provider
        self._log = logger or logging.getLogger(__name__)
        self._routes = routes or RouteRepository(provider, logger=self._log)
        self._flights = flights or FlightRepository(provider, self._routes, logger=self._log)
        self._passengers = passengers or PassengerRepository(provider, logger=self._log)

    def add_ticket(self, ticket: Ticket) -> BookingResult:
        """Insert ``ticket``; a taken seat yields a falsy :class:`BookingResult`.

        Seat contention is an expected outcome, so it is reported through the
        result instead of an exception and the caller may retry another seat.
        """

        if not ticket.flight.id or not ticket.passenger.id:
            raise IntegrityError("Ticket flight and passenger must be persisted first")

        seat_taken = False
        new_id: Optional[int] = None
        with self._provider.transaction() as session:
            record = TicketRecord(
                flight_id=ticket.flight.id,
                passenger_id=ticket.passenger.id,
                seat_number=ticket.seat_number,
                booking_date_time=ticket.booked_at,
                booking_expiry_date_time=ticket.booking_expires_at,
                purchase_date_time=ticket.purchased_at,
                price_paid=ticket.price_paid,
                status=ticket.status.value,
            )
            session.add(record)
            try:
                session.flush()
            except sa_exc.IntegrityError as exc:
                if not _is_seat_conflict(exc):
                    self._log.error(
                        "Ticket insert for flight %s seat %s failed: %s",
                        ticket.flight.id,
                        ticket.seat_number,
                        exc.orig,
                    )
                    raise StorageError(f"Could not insert ticket: {exc.orig}") from exc
                self._provider.rollback(session)
                seat_taken = True
            else:
                new_id = record.id

        if seat_taken:
            self._log.warning("Seat %s on flight %s is already taken", ticket.seat_number, ticket.flight.id)
            return BookingResult(success=False, reason=SEAT_TAKEN)
        if new_id is None:
            raise IntegrityError("No id was generated for the new ticket")
        ticket.id = new_id
        self._log.info("Added ticket %s for flight %s seat %s", new_id, ticket.flight.id, ticket.seat_number)
        return BookingResult(success=True, ticket_id=new_id)

    def update_ticket_status(
        self,
        ticket_id: int,
        status: TicketStatus,
        purchased_at: Optional[datetime] = None,
    ) -> bool:
        """Overwrite the status of a ticket.

        SOLD with a ``purchased_at`` stores it and clears the booking expiry;
        without one only the status changes. CANCELLED clears the expiry. The
        previous status is not checked.
        """

        values: dict = {"status": status.value}
        if status is TicketStatus.SOLD and purchased_at is not None:
            values["purchase_date_time"] = purchased_at
            values["booking_expiry_date_time"] = None
        elif status is TicketStatus.CANCELLED:
            values["booking_expiry_date_time"] = None

        seat_taken = False
        updated = 0
        with self._provider.transaction() as session:
            try:
                result = session.execute(
                    update(TicketRecord).where(TicketRecord.id == ticket_id).values(**values)
                )
            except sa_exc.IntegrityError as exc:
                if not _is_seat_conflict(exc):
                    raise StorageError(f"Could not update ticket {ticket_id}: {exc.orig}") from exc
                self._provider.rollback(session)
                seat_taken = True
            else:
                updated = result.rowcount

        if seat_taken:
            self._log.warning("Ticket %s cannot become %s: its seat is held by another ticket", ticket_id, status.value)
            return False
        if updated == 0:
            self._log.warning("Ticket %s not found for status change to %s", ticket_id, status.value)
            return False
        self._log.info("Ticket %s status set to %s", ticket_id, status.value)
        return True

    def get_occupied_seats_for_flight(self, flight_id: int) -> Set[str]:
        with self._provider.session() as session:
            return set(
                session.scalars(
                    select(TicketRecord.seat_number).where(
                        TicketRecord.flight_id == flight_id,
                        TicketRecord.status.in_(_ACTIVE_TOKENS),
                    )
                )
            )

    def get_ticket_by_id(self, ticket_id: int) -> Optional[Ticket]:
        with self._provider.session() as session:
            record = session.get(TicketRecord, ticket_id)
            if record is None:
                return None
            row = _snapshot(record)
        return self._to_tickets([row])[0]

    def get_all_tickets(self, status_filter: Optional[TicketStatus] = None) -> List[Ticket]:
        stmt = select(TicketRecord)
        if status_filter is not None:
            stmt = stmt.where(TicketRecord.status == status_filter.value)
        stmt = stmt.order_by(TicketRecord.booking_date_time.desc(), TicketRecord.id.desc())
        with self._provider.session() as session:
            rows = [_snapshot(record) for record in session.scalars(stmt)]
        return self._to_tickets(rows)

    def get_tickets_by_passenger_id(self, passenger_id: int) -> List[Ticket]:
        """Return the travel history of a passenger, latest departure first."""

        passenger = self._passengers.find_by_id(passenger_id)
        if passenger is None:
            self._log.error("Ticket history requested for missing passenger %s", passenger_id)
            raise IntegrityError(f"Passenger {passenger_id} does not exist")

        with self._provider.session() as session:
            rows = [
                _snapshot(record)
                for record in session.scalars(
                    select(TicketRecord)
                    .join(FlightRecord, TicketRecord.flight_id == FlightRecord.id)
                    .where(TicketRecord.passenger_id == passenger_id)
                    .order_by(FlightRecord.departure_date_time.desc(), TicketRecord.id.desc())
                )
            ]
        return self._to_tickets(rows, passengers={passenger_id: passenger})

    def get_sales_by_route_for_period(self, start: date, end: date) -> Dict[str, SalesSummary]:
        """Sum SOLD ticket revenue per route for purchases between ``start`` and ``end`` inclusive."""

        period_start = datetime.combine(start, time.min)
        period_end = datetime.combine(end, time.min) + timedelta(days=1)
        with self._provider.session() as session:
            rows = session.execute(
                select(
                    FlightRecord.route_id,
                    func.sum(TicketRecord.price_paid).label("total_amount"),
                    func.count(TicketRecord.id).label("tickets_sold"),
                )
                .join(FlightRecord, TicketRecord.flight_id == FlightRecord.id)
                .where(
                    TicketRecord.status == TicketStatus.SOLD.value,
                    TicketRecord.purchase_date_time >= period_start,
                    TicketRecord.purchase_date_time < period_end,
                )
                .group_by(FlightRecord.route_id)
                .order_by(FlightRecord.route_id)
            ).all()

        sales: Dict[str, SalesSummary] = {}
        for row in rows:
            label = self._route_label(row.route_id)
            total = Decimal(str(row.total_amount or 0)).quantize(_CENT)
            summary = sales.get(label)
            if summary is None:
                sales[label] = SalesSummary(total_sales=total, ticket_count=row.tickets_sold)
            else:
                summary.total_sales += total
                summary.ticket_count += row.tickets_sold
        return sales

    def get_ticket_counts_by_status(self) -> Dict[TicketStatus, int]:
        counts = {status: 0 for status in TicketStatus}
        with self._provider.session() as session:
            rows = session.execute(
                select(TicketRecord.status, func.count(TicketRecord.id)).group_by(TicketRecord.status)
            ).all()
        for raw, count in rows:
            try:
                status = parse_token(TicketStatus, raw, "Ticket status count")
            except DataCorruptionError as exc:
                self._log.warning("Skipping %s tickets: %s", count, exc)
                continue
            counts[status] = count
        return counts

    def _route_label(self, route_id: int) -> str:
        try:
            route = self._routes.get_route_by_id(route_id)
        except IntegrityError as exc:
            self._log.warning("Route %s cannot be assembled for the sales report: %s", route_id, exc)
            route = None
        if route is None:
            self._log.warning("Sales found for unknown route %s", route_id)
            return unknown_route_label(route_id)
        return route.description

    def _to_tickets(
        self,
        rows: List[dict],
        *,
        passengers: Optional[Dict[int, Passenger]] = None,
    ) -> List[Ticket]:
        flights: Dict[int, Flight] = {}
        passengers = dict(passengers or {})
        tickets = []
        for row in rows:
            context = f"Ticket {row['id']}"
            status = parse_token(TicketStatus, row.pop("status"), context)
            flight_id = row.pop("flight_id")
            passenger_id = row.pop("passenger_id")
            if flight_id not in flights:
                flight = self._flights.get_flight_by_id(flight_id)
                if flight is None:
                    self._log.error("%s references missing flight %s", context, flight_id)
                    raise IntegrityError(f"Flight {flight_id} of ticket {row['id']} does not exist")
                flights[flight_id] = flight
            if passenger_id not in passengers:
                passenger = self._passengers.find_by_id(passenger_id)
                if passenger is None:
                    self._log.error("%s references missing passenger %s", context, passenger_id)
                    raise IntegrityError(f"Passenger {passenger_id} of ticket {row['id']} does not exist")
                passengers[passenger_id] = passenger
            tickets.append(
                Ticket(
                    flight=flights[flight_id],
                    passenger=passengers[passenger_id],
                    status=status,
                    **row,
                )
            )
        return tickets
