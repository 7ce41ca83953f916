"""Status and benefit enumerations shared by entities and repositories."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Union

from .errors import DataCorruptionError


class FlightStatus(str, Enum):
    PLANNED = "PLANNED"
    DELAYED = "DELAYED"
    DEPARTED = "DEPARTED"
    ARRIVED = "ARRIVED"
    CANCELLED = "CANCELLED"


class TicketStatus(str, Enum):
    BOOKED = "BOOKED"
    SOLD = "SOLD"
    CANCELLED = "CANCELLED"


class BenefitType(str, Enum):
    NONE = "NONE"
    STUDENT = "STUDENT"
    PENSIONER = "PENSIONER"
    COMBATANT = "COMBATANT"


# Tickets holding their seat.
ACTIVE_TICKET_STATUSES = (TicketStatus.BOOKED, TicketStatus.SOLD)

BOOKABLE_FLIGHT_STATUSES = (FlightStatus.PLANNED, FlightStatus.DELAYED)

_LABELS: Dict[Enum, str] = {
    FlightStatus.PLANNED: "Planned",
    FlightStatus.DELAYED: "Delayed",
    FlightStatus.DEPARTED: "Departed",
    FlightStatus.ARRIVED: "Arrived",
    FlightStatus.CANCELLED: "Cancelled",
    TicketStatus.BOOKED: "Booked",
    TicketStatus.SOLD: "Sold",
    TicketStatus.CANCELLED: "Cancelled",
    BenefitType.NONE: "No benefit",
    BenefitType.STUDENT: "Student",
    BenefitType.PENSIONER: "Pensioner",
    BenefitType.COMBATANT: "Combatant",
}


def display_label(value: Union[FlightStatus, TicketStatus, BenefitType]) -> str:
    """Return the human readable label for ``value``."""

    return _LABELS[value]


def parse_token(enum_cls, raw: Optional[str], context: str):
    """Convert a persisted token into ``enum_cls``.

    Raises :class:`DataCorruptionError` when the column is null or holds a
    value outside the enumeration.
    """

    if raw is None:
        raise DataCorruptionError(f"{context}: {enum_cls.__name__} is null")
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise DataCorruptionError(f"{context}: unknown {enum_cls.__name__} '{raw}'") from exc
