"""Persistence of routes and their ordered intermediate stops."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import exc as sa_exc
from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from .database import ConnectionProvider
from .entities import Route, Stop
from .errors import IntegrityError
from .models import RouteIntermediateStop, RouteRecord
from .stops import StopStore


class RouteRepository:
    def __init__(
        self,
        provider: ConnectionProvider,
        stops: Optional[StopStore] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._provider = provider
        self._log = logger or logging.getLogger(__name__)
        self._stops = stops or StopStore(provider, logger=self._log)

    def add_route(self, route: Route) -> Route:
        """Insert ``route`` and its intermediate stops in one transaction.

        The generated id is set on ``route`` only after the commit succeeds.
        Intermediate entries that are ``None`` or carry the placeholder id 0
        are skipped with a warning.
        """

        for role, stop in (("departure", route.departure_stop), ("destination", route.destination_stop)):
            if stop is None or not stop.id:
                raise IntegrityError(f"Route {role} stop is missing or has no id")

        with self._provider.transaction() as session:
            record = RouteRecord(
                departure_stop_id=route.departure_stop.id,
                destination_stop_id=route.destination_stop.id,
            )
            session.add(record)
            try:
                session.flush()
            except sa_exc.IntegrityError as exc:
                self._log.error("Route insert rejected: %s", exc.orig)
                raise IntegrityError(f"Could not insert route {route.description}") from exc
            if record.id is None:
                raise IntegrityError("No id was generated for the new route")

            legs = []
            for stop in route.intermediate_stops:
                if stop is None or not stop.id:
                    self._log.warning("Skipping placeholder intermediate stop on route %s", record.id)
                    continue
                legs.append({"route_id": record.id, "stop_id": stop.id, "stop_order": len(legs) + 1})

            if legs:
                try:
                    result = session.execute(insert(RouteIntermediateStop.__table__), legs)
                except sa_exc.IntegrityError as exc:
                    self._log.error("Intermediate stops for route %s rejected: %s", record.id, exc.orig)
                    raise IntegrityError(
                        f"Could not insert intermediate stops for route {route.description}"
                    ) from exc
                # Drivers that cannot count executemany rows report -1.
                if 0 <= result.rowcount < len(legs):
                    raise IntegrityError(
                        f"Only {result.rowcount} of {len(legs)} intermediate stops were inserted"
                    )
            new_id = record.id

        route.id = new_id
        self._log.info("Added route %s: %s", route.id, route.description)
        return route

    def get_route_by_id(self, route_id: int) -> Optional[Route]:
        with self._provider.session() as session:
            record = session.get(RouteRecord, route_id)
            if record is None:
                self._log.debug("Route %s not found", route_id)
                return None
            departure_id, destination_id = record.departure_stop_id, record.destination_stop_id
            stop_ids = self._intermediate_stop_ids(session, route_id)
        return self._assemble(route_id, departure_id, destination_id, stop_ids, {})

    def get_all_routes(self) -> List[Route]:
        with self._provider.session() as session:
            rows = [
                (record.id, record.departure_stop_id, record.destination_stop_id)
                for record in session.scalars(select(RouteRecord).order_by(RouteRecord.id))
            ]
            legs = {route_id: self._intermediate_stop_ids(session, route_id) for route_id, _, _ in rows}

        cache: Dict[int, Stop] = {}
        return [
            self._assemble(route_id, departure_id, destination_id, legs[route_id], cache)
            for route_id, departure_id, destination_id in rows
        ]

    @staticmethod
    def _intermediate_stop_ids(session: Session, route_id: int) -> List[int]:
        return list(
            session.scalars(
                select(RouteIntermediateStop.stop_id)
                .where(RouteIntermediateStop.route_id == route_id)
                .order_by(RouteIntermediateStop.stop_order)
            )
        )

    def _assemble(
        self,
        route_id: int,
        departure_id: int,
        destination_id: int,
        stop_ids: Sequence[int],
        cache: Dict[int, Stop],
    ) -> Route:
        departure = self._resolve_stop(departure_id, "departure", route_id, cache)
        destination = self._resolve_stop(destination_id, "destination", route_id, cache)
        intermediate = [self._resolve_stop(stop_id, "intermediate", route_id, cache) for stop_id in stop_ids]
        return Route(
            id=route_id,
            departure_stop=departure,
            destination_stop=destination,
            intermediate_stops=intermediate,
        )

    def _resolve_stop(self, stop_id: int, role: str, route_id: int, cache: Dict[int, Stop]) -> Stop:
        if stop_id in cache:
            return cache[stop_id]
        stop = self._stops.get_stop_by_id(stop_id)
        if stop is None:
            self._log.error("Route %s references missing %s stop %s", route_id, role, stop_id)
            raise IntegrityError(f"{role.capitalize()} stop {stop_id} of route {route_id} does not exist")
        cache[stop_id] = stop
        return stop
