"""
Main CLI application using Typer.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, List, NoReturn, Optional, Tuple

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters.caldav_client import CalDAVClient
from ..adapters.kmeet_client import KMeetClient
from ..adapters.mock_clients import MockCalendarClient, MockMeetingClient
from ..config import AppConfig, load_config
from ..domain.exceptions import SlotbookerError
from ..logging_setup import configure_logging
from ..services.availability import AvailabilityService, parse_request_date
from ..services.booking import BookingRequest, BookingService

app = typer.Typer(
    name="slotbooker",
    help="Show free calendar slots and book meetings over CalDAV",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml, then the environment")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar and meeting clients.")]
MockDataOption = Annotated[Optional[Path], typer.Option("--mock-data", help="Directory of .ics files served in mock mode.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw JSON response.")]


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    configure_logging(config.logging)
    return config


def _build_services(
    config: AppConfig,
    mock: bool,
    mock_data: Optional[Path],
) -> Tuple[AvailabilityService, BookingService]:
    if mock:
        reader = writer = MockCalendarClient(data_dir=mock_data)
        room_client = MockMeetingClient()
    else:
        reader = writer = CalDAVClient(config.caldav)
        room_client = KMeetClient(config.meeting)

    availability = AvailabilityService(config=config, calendar_reader=reader)
    booking = BookingService(
        availability_service=availability,
        room_client=room_client,
        calendar_writer=writer,
        timezone=config.timezone,
    )
    return availability, booking


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _fail(message: str, as_json: bool) -> NoReturn:
    if as_json:
        _emit_json({"error": message})
    else:
        console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Day to check (YYYY-MM-DD)")],
    length: Annotated[Optional[float], typer.Option("--length", "-l", help="Slot length in hours (default 1)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    List the free slots of a day.

    Examples:

        slotbooker slots 2025-06-02
        slotbooker slots 2025-06-02 --length 0.5 --json
    """
    config = _load(config_file)
    slot_length = 1.0 if length is None else length

    try:
        requested_day = parse_request_date(day)
        availability, _ = _build_services(config, mock, mock_data)
        found = asyncio.run(availability.get_available_slots(requested_day, slot_length))
    except SlotbookerError as e:
        _fail(str(e), as_json)

    if as_json:
        _emit_json([slot.to_dict() for slot in found])
        return

    if not found:
        console.print(f"[yellow]⚠ No free {slot_length:g}h slots on {requested_day.isoformat()}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(found)} free slot(s) on {requested_day.isoformat()}:[/bold green]\n")
    for slot in found:
        local = slot.start.in_timezone(config.timezone)
        console.print(f"  {local.format('HH:mm')} – {slot.end.in_timezone(config.timezone).format('HH:mm')}")


@app.command()
def book(
    title: Annotated[str, typer.Argument(help="Meeting title")],
    start: Annotated[str, typer.Option("--start", "-s", help="Start time (ISO-8601)")],
    duration: Annotated[float, typer.Option("--duration", "-d", help="Duration in hours")] = 1.0,
    description: Annotated[Optional[str], typer.Option("--description", help="Meeting description")] = None,
    participants: Annotated[Optional[List[str]], typer.Option("--participant", "-p", help="Participant e-mail (repeatable)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    Book a meeting: create a kMeet room and add the event to the calendar.
    """
    config = _load(config_file)
    _, booking = _build_services(config, mock, mock_data)

    result = asyncio.run(
        booking.book_meeting(
            BookingRequest(
                title=title,
                start=start,
                duration=duration,
                description=description,
                participants=list(participants or []),
            )
        )
    )

    if as_json:
        _emit_json(result.to_dict())
    elif result.success:
        console.print(Panel.fit(
            f"[bold green]✓ Meeting booked[/bold green]\n\n"
            f"[bold]URL:[/bold] {result.meeting_url}\n"
            f"[bold]ID:[/bold] {result.meeting_id}",
            title=title
        ))
    else:
        console.print(f"[bold red]Error:[/bold red] {result.error}")

    if not result.success:
        raise typer.Exit(1)


@app.command()
def show_config(config_file: ConfigOption = None):
    """
    Show the calendar configuration (password masked).
    """
    config = _load(config_file)
    summary = config.describe()

    console.print(f"\n[bold]CalDAV URL:[/bold] {summary['url']}")
    console.print(f"[bold]CalDAV Username:[/bold] {summary['username']}")
    console.print(f"[bold]CalDAV Password:[/bold] {summary['password']}")
    console.print(f"[bold]Calendar Name:[/bold] {summary['calendar_name']}")
    console.print(f"[bold]Timezone:[/bold] {summary['timezone']}\n")

    table = Table(title="Available Time Slots", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")
    for day_name, hours in summary["availability"].items():
        table.add_row(day_name, hours)
    console.print(table)

    lengths = ", ".join(f"{length:g}" for length in summary["slot_lengths"])
    console.print(f"\n[bold]Slot Lengths (hours):[/bold] {lengths}\n")


@app.command()
def test_connection(config_file: ConfigOption = None, mock: MockOption = False):
    """
    Test the CalDAV connection by listing the calendars.
    """
    config = _load(config_file)
    console.print("\n[bold]Testing CalDAV connection...[/bold]\n")

    client = MockCalendarClient() if mock else CalDAVClient(config.caldav)
    try:
        calendars = client.test_connection()
    except SlotbookerError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    lines = "\n".join(
        f"  {index}. {calendar.display_name or 'Unnamed'} ({calendar.url})"
        for index, calendar in enumerate(calendars, 1)
    )
    console.print(Panel.fit(
        f"[bold green]✓ CalDAV connection successful[/bold green]\n\n"
        f"Found {len(calendars)} calendars:\n{lines}",
        title="✓ Connection test"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooker[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
