"""Point lookups of stops."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select

from .database import ConnectionProvider
from .entities import Stop
from .errors import IntegrityError
from .models import StopRecord


def _to_stop(record: StopRecord) -> Stop:
    return Stop(id=record.id, name=record.name, city=record.city)


class StopStore:
    def __init__(self, provider: ConnectionProvider, *, logger: Optional[logging.Logger] = None):
        self._provider = provider
        self._log = logger or logging.getLogger(__name__)

    def get_stop_by_id(self, stop_id: int) -> Optional[Stop]:
        with self._provider.session() as session:
            record = session.get(StopRecord, stop_id)
            if record is None:
                self._log.debug("Stop %s not found", stop_id)
                return None
            return _to_stop(record)

    def get_all_stops(self) -> List[Stop]:
        with self._provider.session() as session:
            records = session.scalars(
                select(StopRecord).order_by(StopRecord.city, StopRecord.name)
            ).all()
            return [_to_stop(record) for record in records]

    def add_stop(self, name: str, city: str) -> Stop:
        """Persist a new stop and return it with its generated id."""

        Stop(id=0, name=name, city=city)  # validates name and city
        with self._provider.transaction() as session:
            record = StopRecord(name=name, city=city)
            session.add(record)
            session.flush()
            if record.id is None:
                raise IntegrityError("No id was generated for the new stop")
            stop = _to_stop(record)
        self._log.info("Added stop %s (%s, %s)", stop.id, name, city)
        return stop
