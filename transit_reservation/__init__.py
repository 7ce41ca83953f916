"""Inventory and reservation persistence for a scheduled bus carrier."""
from .config import Settings, load_settings
from .database import ConnectionProvider, create_session_factory, init_db
from .dataset import generate_sample_data
from .entities import BookingResult, Flight, Passenger, Route, SalesSummary, Stop, Ticket
from .enums import BenefitType, FlightStatus, TicketStatus, display_label
from .errors import (
    ConfigurationError,
    ConnectivityError,
    DataCorruptionError,
    IntegrityError,
    ReservationError,
    StorageError,
)
from .flights import FlightRepository
from .passengers import PassengerRepository
from .routes import RouteRepository
from .stops import StopStore
from .tickets import TicketRepository

__all__ = [
    "Settings",
    "load_settings",
    "ConnectionProvider",
    "create_session_factory",
    "init_db",
    "generate_sample_data",
    "BookingResult",
    "Flight",
    "Passenger",
    "Route",
    "SalesSummary",
    "Stop",
    "Ticket",
    "BenefitType",
    "FlightStatus",
    "TicketStatus",
    "display_label",
    "ConfigurationError",
    "ConnectivityError",
    "DataCorruptionError",
    "IntegrityError",
    "ReservationError",
    "StorageError",
    "FlightRepository",
    "PassengerRepository",
    "RouteRepository",
    "StopStore",
    "TicketRepository",
]
