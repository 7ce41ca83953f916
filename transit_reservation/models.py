"""SQLAlchemy models describing the relational schema."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Only BOOKED and SOLD tickets hold their seat.
_ACTIVE_TICKET_CLAUSE = "status IN ('BOOKED', 'SOLD')"

SEAT_CONSTRAINT = "uq_ticket_flight_seat"
DOCUMENT_CONSTRAINT = "uq_passenger_document"


class Base(DeclarativeBase):
    pass


class StopRecord(Base):
    __tablename__ = "stops"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)


class RouteRecord(Base):
    __tablename__ = "routes"

    id: Mapped[int] = mapped_column(primary_key=True)
    departure_stop_id: Mapped[int] = mapped_column(ForeignKey("stops.id"), nullable=False)
    destination_stop_id: Mapped[int] = mapped_column(ForeignKey("stops.id"), nullable=False)


class RouteIntermediateStop(Base):
    __tablename__ = "route_intermediate_stops"

    route_id: Mapped[int] = mapped_column(ForeignKey("routes.id"), primary_key=True)
    stop_order: Mapped[int] = mapped_column(Integer, primary_key=True)
    stop_id: Mapped[int] = mapped_column(ForeignKey("stops.id"), nullable=False)


class FlightRecord(Base):
    __tablename__ = "flights"
    __table_args__ = (
        CheckConstraint("total_seats > 0", name="ck_total_seats_positive"),
        CheckConstraint("price_per_seat >= 0", name="ck_price_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    route_id: Mapped[int] = mapped_column(ForeignKey("routes.id"), nullable=False)
    departure_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    arrival_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    bus_model: Mapped[Optional[str]] = mapped_column(String(50))
    price_per_seat: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # Plain string so unknown tokens surface as corruption instead of a driver error.
    status: Mapped[Optional[str]] = mapped_column(String(20), default="PLANNED")


class PassengerRecord(Base):
    __tablename__ = "passengers"
    __table_args__ = (
        UniqueConstraint("document_type", "document_number", name=DOCUMENT_CONSTRAINT),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(String(150), nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    document_number: Mapped[str] = mapped_column(String(50), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(120))
    benefit_type: Mapped[str] = mapped_column(String(20), default="NONE", nullable=False)


class TicketRecord(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index(
            SEAT_CONSTRAINT,
            "flight_id",
            "seat_number",
            unique=True,
            sqlite_where=text(_ACTIVE_TICKET_CLAUSE),
            postgresql_where=text(_ACTIVE_TICKET_CLAUSE),
        ),
        CheckConstraint("price_paid >= 0", name="ck_price_paid_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    flight_id: Mapped[int] = mapped_column(ForeignKey("flights.id"), nullable=False)
    passenger_id: Mapped[int] = mapped_column(ForeignKey("passengers.id"), nullable=False)
    seat_number: Mapped[str] = mapped_column(String(10), nullable=False)
    booking_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    booking_expiry_date_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    purchase_date_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    price_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(20), default="BOOKED")
