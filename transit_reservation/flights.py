"""Persistence of scheduled flights."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy import func, select, update

from .database import ConnectionProvider
from .entities import Flight, Route
from .enums import ACTIVE_TICKET_STATUSES, FlightStatus, parse_token
from .errors import IntegrityError
from .models import FlightRecord, TicketRecord
from .routes import RouteRepository


def _flight_columns(flight: Flight) -> dict:
    return {
        "route_id": flight.route.id,
        "departure_date_time": flight.departure_at,
        "arrival_date_time": flight.arrival_at,
        "total_seats": flight.total_seats,
        "bus_model": flight.bus_model,
        "price_per_seat": flight.price_per_seat,
        "status": flight.status.value,
    }


def _snapshot(record: FlightRecord) -> dict:
    return {
        "id": record.id,
        "route_id": record.route_id,
        "departure_at": record.departure_date_time,
        "arrival_at": record.arrival_date_time,
        "total_seats": record.total_seats,
        "bus_model": record.bus_model,
        "price_per_seat": record.price_per_seat,
        "status": record.status,
    }


class FlightRepository:
    def __init__(
        self,
        provider: ConnectionProvider,
        routes: Optional[RouteRepository] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._provider = provider
        self._log = logger or logging.getLogger(__name__)
        self._routes = routes or RouteRepository(provider, logger=self._log)

    def add_flight(self, flight: Flight) -> Flight:
        if not flight.route.id:
            raise IntegrityError("Flight route has no id")
        with self._provider.transaction() as session:
            record = FlightRecord(**_flight_columns(flight))
            session.add(record)
            try:
                session.flush()
            except sa_exc.IntegrityError as exc:
                raise IntegrityError(f"Could not insert flight on route {flight.route.id}: {exc.orig}") from exc
            if record.id is None:
                raise IntegrityError("No id was generated for the new flight")
            new_id = record.id
        flight.id = new_id
        self._log.info("Added flight %s on route %s", flight.id, flight.route.id)
        return flight

    def update_flight(self, flight: Flight) -> bool:
        with self._provider.transaction() as session:
            try:
                result = session.execute(
                    update(FlightRecord)
                    .where(FlightRecord.id == flight.id)
                    .values(**_flight_columns(flight))
                )
                updated = result.rowcount
            except sa_exc.IntegrityError as exc:
                raise IntegrityError(f"Could not update flight {flight.id}: {exc.orig}") from exc
        if updated == 0:
            self._log.warning("Flight %s not found for update", flight.id)
            return False
        return True

    def update_flight_status(self, flight_id: int, status: FlightStatus) -> bool:
        with self._provider.transaction() as session:
            result = session.execute(
                update(FlightRecord).where(FlightRecord.id == flight_id).values(status=status.value)
            )
            updated = result.rowcount
        if updated == 0:
            self._log.warning("Flight %s not found for status change to %s", flight_id, status.value)
            return False
        self._log.info("Flight %s status set to %s", flight_id, status.value)
        return True

    def get_all_flights(self) -> List[Flight]:
        with self._provider.session() as session:
            rows = [
                _snapshot(record)
                for record in session.scalars(
                    select(FlightRecord).order_by(FlightRecord.departure_date_time.desc())
                )
            ]
        return self._to_flights(rows)

    def get_flight_by_id(self, flight_id: int) -> Optional[Flight]:
        with self._provider.session() as session:
            record = session.get(FlightRecord, flight_id)
            if record is None:
                self._log.debug("Flight %s not found", flight_id)
                return None
            row = _snapshot(record)
        return self._to_flights([row])[0]

    def get_flights_by_date(self, day: date) -> List[Flight]:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        with self._provider.session() as session:
            rows = [
                _snapshot(record)
                for record in session.scalars(
                    select(FlightRecord)
                    .where(
                        FlightRecord.departure_date_time >= start,
                        FlightRecord.departure_date_time < end,
                    )
                    .order_by(FlightRecord.departure_date_time)
                )
            ]
        return self._to_flights(rows)

    def get_occupied_seats_count(self, flight_id: int) -> int:
        with self._provider.session() as session:
            count = session.scalar(
                select(func.count(TicketRecord.id)).where(
                    TicketRecord.flight_id == flight_id,
                    TicketRecord.status.in_([status.value for status in ACTIVE_TICKET_STATUSES]),
                )
            )
        return count or 0

    def _to_flights(self, rows: List[dict]) -> List[Flight]:
        routes: Dict[int, Route] = {}
        flights = []
        for row in rows:
            context = f"Flight {row['id']}"
            raw_status = row.pop("status")
            # Older rows may hold lower-case tokens.
            status = parse_token(FlightStatus, raw_status.upper() if raw_status else raw_status, context)
            route_id = row.pop("route_id")
            if route_id not in routes:
                route = self._routes.get_route_by_id(route_id)
                if route is None:
                    self._log.error("%s references missing route %s", context, route_id)
                    raise IntegrityError(f"Route {route_id} of flight {row['id']} does not exist")
                routes[route_id] = route
            flights.append(Flight(route=routes[route_id], status=status, **row))
        return flights
