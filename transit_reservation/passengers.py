"""Persistence of passengers, deduplicated by their identity document."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy import select, update

from .database import ConnectionProvider
from .entities import Passenger
from .enums import BenefitType, parse_token
from .errors import DataCorruptionError, IntegrityError
from .models import DOCUMENT_CONSTRAINT, PassengerRecord


def _to_passenger(record: PassengerRecord, log: logging.Logger) -> Passenger:
    try:
        benefit = parse_token(BenefitType, record.benefit_type, f"Passenger {record.id}")
    except DataCorruptionError as exc:
        log.error("%s; using %s", exc, BenefitType.NONE.value)
        benefit = BenefitType.NONE
    return Passenger(
        id=record.id,
        full_name=record.full_name,
        document_type=record.document_type,
        document_number=record.document_number,
        phone_number=record.phone_number,
        email=record.email,
        benefit_type=benefit,
    )


def _passenger_columns(passenger: Passenger) -> dict:
    return {
        "full_name": passenger.full_name,
        "document_type": passenger.document_type,
        "document_number": passenger.document_number,
        "phone_number": passenger.phone_number,
        "email": passenger.email,
        "benefit_type": passenger.benefit_type.value,
    }


def _is_document_conflict(exc: sa_exc.IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return DOCUMENT_CONSTRAINT in message or (
        "passengers.document_type" in message and "passengers.document_number" in message
    )


class PassengerRepository:
    def __init__(self, provider: ConnectionProvider, *, logger: Optional[logging.Logger] = None):
        self._provider = provider
        self._log = logger or logging.getLogger(__name__)

    def add_or_get_passenger(self, candidate: Passenger) -> int:
        """Return the id of the passenger holding ``candidate``'s document.

        An existing passenger wins and the candidate's other fields are
        ignored. Otherwise the candidate is inserted and its new id returned.
        """

        existing = self.find_by_document(candidate.document_type, candidate.document_number)
        if existing is not None:
            self._log.info(
                "Passenger with document %s %s already exists as %s",
                candidate.document_type,
                candidate.document_number,
                existing.id,
            )
            return existing.id

        conflict: Optional[sa_exc.IntegrityError] = None
        with self._provider.transaction() as session:
            record = PassengerRecord(**_passenger_columns(candidate))
            session.add(record)
            try:
                session.flush()
            except sa_exc.IntegrityError as exc:
                if not _is_document_conflict(exc):
                    raise IntegrityError(f"Could not insert passenger: {exc.orig}") from exc
                self._provider.rollback(session)
                conflict = exc
            else:
                if record.id is None:
                    raise IntegrityError("No id was generated for the new passenger")
                new_id = record.id

        if conflict is not None:
            # Another caller inserted the same document between lookup and insert.
            winner = self.find_by_document(candidate.document_type, candidate.document_number)
            if winner is None:
                raise IntegrityError(
                    "Passenger document is taken but the owning row cannot be read"
                ) from conflict
            self._log.info("Passenger document race resolved to existing id %s", winner.id)
            return winner.id

        candidate.id = new_id
        self._log.info("Added passenger %s", new_id)
        return new_id

    def find_by_document(self, document_type: str, document_number: str) -> Optional[Passenger]:
        with self._provider.session() as session:
            record = session.scalars(
                select(PassengerRecord).where(
                    PassengerRecord.document_type == document_type,
                    PassengerRecord.document_number == document_number,
                )
            ).first()
            return _to_passenger(record, self._log) if record is not None else None

    def find_by_id(self, passenger_id: int) -> Optional[Passenger]:
        with self._provider.session() as session:
            record = session.get(PassengerRecord, passenger_id)
            return _to_passenger(record, self._log) if record is not None else None

    def get_all_passengers(self) -> List[Passenger]:
        with self._provider.session() as session:
            records = session.scalars(select(PassengerRecord).order_by(PassengerRecord.full_name)).all()
            return [_to_passenger(record, self._log) for record in records]

    def update_passenger(self, passenger: Passenger) -> bool:
        with self._provider.transaction() as session:
            try:
                result = session.execute(
                    update(PassengerRecord)
                    .where(PassengerRecord.id == passenger.id)
                    .values(**_passenger_columns(passenger))
                )
            except sa_exc.IntegrityError as exc:
                raise IntegrityError(f"Could not update passenger {passenger.id}: {exc.orig}") from exc
            updated = result.rowcount
        if updated == 0:
            self._log.warning("Passenger %s not found for update", passenger.id)
            return False
        return True
