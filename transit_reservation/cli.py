"""Command line interface for schema setup, seeding and reports."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import Iterable, List, Sequence

from tabulate import tabulate

from .config import load_settings
from .database import ConnectionProvider, init_db
from .dataset import generate_sample_data
from .enums import display_label
from .errors import ReservationError
from .flights import FlightRepository
from .reports import available_seats, build_load_factor_report
from .tickets import TicketRepository


def _render_table(rows: Iterable[Sequence[object]], headers: List[str], **options) -> str:
    return tabulate(list(rows), headers=headers, tablefmt="github", **options)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from exc


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage bus routes, flights and ticket reservations.")
    parser.add_argument(
        "--db-url",
        default=None,
        help="SQLAlchemy database URL (default: the TRANSIT_DB_URL environment variable).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging verbosity (default: WARNING).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the database schema.")
    seed = commands.add_parser("seed", help="Create the schema and load sample data.")
    seed.add_argument("--flights", type=int, default=12)
    seed.add_argument("--passengers", type=int, default=60)
    seed.add_argument("--bookings", type=int, default=150)

    seats = commands.add_parser("seats", help="List free and occupied seats of a flight.")
    seats.add_argument("flight_id", type=int)

    load = commands.add_parser("load-report", help="Seat load factor of flights departing on a date.")
    load.add_argument("date", type=_parse_date)

    sales = commands.add_parser("sales-report", help="Revenue per route for an inclusive purchase period.")
    sales.add_argument("start", type=_parse_date)
    sales.add_argument("end", type=_parse_date)

    commands.add_parser("status-report", help="Number of tickets in each status.")
    return parser.parse_args(list(argv))


def _run(args: argparse.Namespace, provider: ConnectionProvider) -> str:
    if args.command == "init-db":
        init_db(provider.engine)
        return "Schema created."

    if args.command == "seed":
        init_db(provider.engine)
        summary = generate_sample_data(
            provider,
            flights=args.flights,
            passengers=args.passengers,
            bookings=args.bookings,
        )
        return _render_table(summary.items(), ["Entity", "Count"])

    tickets = TicketRepository(provider)
    if args.command == "seats":
        flight = FlightRepository(provider).get_flight_by_id(args.flight_id)
        if flight is None:
            raise ReservationError(f"Flight {args.flight_id} does not exist")
        occupied = tickets.get_occupied_seats_for_flight(flight.id)
        free = available_seats(flight.total_seats, occupied)
        return "\n".join(
            [
                f"Flight {flight.id} {flight.route.description} ({display_label(flight.status)})",
                f"Free ({len(free)}): {', '.join(free) or '-'}",
                f"Occupied ({len(occupied)}): {', '.join(sorted(occupied, key=lambda s: (len(s), s))) or '-'}",
            ]
        )

    if args.command == "load-report":
        rows = build_load_factor_report(FlightRepository(provider), args.date)
        return _render_table(
            (row.as_row() for row in rows),
            ["Flight", "Route", "Departure", "Seats", "Occupied", "Load factor"],
        )

    if args.command == "sales-report":
        sales = tickets.get_sales_by_route_for_period(args.start, args.end)
        return _render_table(
            ((route, f"{summary.total_sales:.2f}", summary.ticket_count) for route, summary in sales.items()),
            ["Route", "Total sales", "Tickets sold"],
            disable_numparse=True,
        )

    counts = tickets.get_ticket_counts_by_status()
    return _render_table(
        ((display_label(status), count) for status, count in counts.items()),
        ["Status", "Tickets"],
    )


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        provider = ConnectionProvider.from_settings(load_settings(args.db_url))
        output = _run(args, provider)
    except ReservationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
