"""
Main CLI application using Typer.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.gemini_client import GeminiClient
from ..adapters.mock_ai_client import MockAIClient
from ..adapters.trip_store import YamlTripStore
from ..config import AppConfig, TripSettings, get_default_config_path
from ..domain.exceptions import ReservationNotFound, SeatSplitError
from ..domain.models import TimeSlot, as_calendar_date, normalize_name
from ..services.trip_service import TripService, require_authorized

app = typer.Typer(
    name="seatsplit",
    help="Book seats in a shared rental car and split the trip cost by half-day slots",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    config_path: Optional[Path] = None
    mock: bool = False


PasswordOption = Annotated[
    Optional[str],
    typer.Option("--password", "-p", help="Admin password for restricted commands.", envvar="SEATSPLIT_PASSWORD"),
]


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use the offline receipt scanner and advice instead of Gemini.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Seat booking and cost splitting for a shared rental car.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    ctx.obj = CLIState(config_path=config_file, mock=mock)


def _load(ctx: typer.Context) -> Tuple[AppConfig, TripService]:
    """Load configuration and trip state, wiring the AI adapter."""
    state: CLIState = ctx.obj or CLIState()
    config_path = state.config_path or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)

    if state.mock:
        ai_client = MockAIClient()
    else:
        api_key = config.ai.get_api_key()
        ai_client = (
            GeminiClient(api_key=api_key, model=config.ai.model, timeout=config.ai.timeout_seconds)
            if api_key
            else None
        )
        if ai_client is None:
            logger.debug("%s not set; AI features disabled", config.ai.api_key_env)

    store = YamlTripStore(config.resolve_state_path(config_path))
    service = TripService.from_store(
        store,
        default_config=config.trip.to_configuration(),
        default_drivers=config.drivers,
        receipt_parser=ai_client,
        advice_provider=ai_client,
    )
    return config, service


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _short(identifier: str) -> str:
    return identifier[:8]


@app.command()
def slots(ctx: typer.Context):
    """
    Show every slot of the trip with occupancy and driver.
    """
    try:
        _, service = _load(ctx)
        trip = service.configuration
        registry = service.registry

        table = Table(
            title=f"{trip.car_type.label} - {trip.total_days} day(s) from {trip.start.format('ddd, MMM D, YYYY HH:mm')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Slot", style="bold")
        table.add_column("Seats", justify="center")
        table.add_column("Driver", style="green")
        table.add_column("Passengers")

        for key in registry.slot_keys:
            status = registry.slot_status(key.day, key.slot)
            seats = f"{status.occupancy}/{status.capacity}"
            if status.is_full:
                seats = f"[red]{seats} FULL[/red]"

            if status.driver:
                driver = status.driver.name
            elif status.missing_driver:
                driver = "[yellow]Missing Driver[/yellow]"
            else:
                driver = "[dim]-[/dim]"

            people = ", ".join(
                f"{r.name} [dim]({_short(r.id)})[/dim]" for r in status.reservations
            )
            table.add_row(key.format_display(), seats, driver, people or "[dim]empty[/dim]")

        console.print()
        console.print(table)

        missing = registry.slots_missing_driver()
        if missing:
            console.print(f"\n[yellow]⚠ {len(missing)} booked slot(s) without a driver.[/yellow]")
        console.print()

    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def join(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Your name")],
    day: Annotated[str, typer.Argument(metavar="DATE", help="Trip date (YYYY-MM-DD)")],
    slot: Annotated[str, typer.Argument(help="morning or afternoon")],
):
    """
    Reserve a seat in one slot.

    Examples:

        seatsplit join Alice 2025-06-01 morning
        seatsplit join "Bob" 2025-06-02 pm
    """
    try:
        _, service = _load(ctx)
        reservation_id = service.join(name, day, slot)
        service.save()
        time_slot = TimeSlot.parse(slot)
        console.print(
            f"[green]✓ {name.strip()} joined the {time_slot.label} on {as_calendar_date(day).isoformat()}[/green] "
            f"[dim](id {_short(reservation_id)})[/dim]"
        )
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def cancel(
    ctx: typer.Context,
    reservation_id: Annotated[str, typer.Argument(metavar="ID", help="Reservation id (a unique prefix is enough)")],
):
    """
    Remove a reservation. Cancelling an unknown id is not an error.
    """
    try:
        _, service = _load(ctx)
        try:
            reservation = service.registry.find(reservation_id)
        except ReservationNotFound as e:
            console.print(f"[yellow]Nothing to cancel: {e}[/yellow]")
            return

        service.cancel(reservation.id)
        service.save()
        console.print(
            f"[green]✓ Removed {reservation.name} from the {reservation.slot.label} on {reservation.day.isoformat()}[/green]"
        )
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("assign-driver")
def assign_driver(
    ctx: typer.Context,
    day: Annotated[str, typer.Argument(metavar="DATE", help="Trip date (YYYY-MM-DD)")],
    slot: Annotated[str, typer.Argument(help="morning or afternoon")],
    person: Annotated[Optional[str], typer.Argument(help="Passenger name or reservation id. Omit to clear the driver.")] = None,
):
    """
    Pick the driver of a slot from its passengers.
    """
    try:
        _, service = _load(ctx)
        reservation_id = None
        if person:
            in_slot = service.registry.list_by_slot(day, slot)
            key = normalize_name(person)
            match = next((r for r in in_slot if r.name_key == key), None)
            if match is None:
                candidates = [r for r in in_slot if r.id.startswith(person.strip())]
                match = candidates[0] if len(candidates) == 1 else None
            if match is None:
                console.print(f"[yellow]{person} is not booked in this slot; the slot now has no driver.[/yellow]")
            else:
                reservation_id = match.id

        service.assign_driver(day, slot, reservation_id)
        service.save()

        status = service.registry.slot_status(day, slot)
        driver = status.driver.name if status.driver else "nobody"
        console.print(f"[green]✓ Driver for {status.key.format_display()}: {driver}[/green]")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def configure(
    ctx: typer.Context,
    password: PasswordOption = None,
    rental: Annotated[Optional[float], typer.Option("--rental", help="Total rental cost")] = None,
    insurance: Annotated[Optional[float], typer.Option("--insurance", help="Insurance cost per day")] = None,
    days: Annotated[Optional[int], typer.Option("--days", help="Number of trip days")] = None,
    car_type: Annotated[Optional[int], typer.Option("--car-type", help="Seats in the car (5 or 7)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Trip start (YYYY-MM-DDTHH:mm)")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", help="IANA timezone of the start time")] = None,
    payment: Annotated[Optional[str], typer.Option("--payment", help="Payment handle (e.g. Zelle number)")] = None,
):
    """
    Change the trip settings (admin only). Without options, shows them.
    """
    try:
        config, service = _load(ctx)
        current = TripSettings.from_configuration(service.configuration)
        updates = {
            "rental_cost": rental,
            "daily_insurance": insurance,
            "total_days": days,
            "car_type": car_type,
            "start": start,
            "timezone": timezone,
            "payment_handle": payment,
        }
        updates = {k: v for k, v in updates.items() if v is not None}

        if updates:
            merged = TripSettings(**{**current.model_dump(), **updates})
            service.update_configuration(
                merged.to_configuration(),
                authorized=config.is_authorized(password),
            )
            service.save()
            console.print("[green]✓ Trip settings updated.[/green]")

        trip = service.configuration
        console.print(Panel.fit(
            f"[bold]Car:[/bold] {trip.car_type.label}\n"
            f"[bold]Start:[/bold] {trip.start.format('ddd, MMM D, YYYY HH:mm')}\n"
            f"[bold]Days:[/bold] {trip.total_days}\n"
            f"[bold]Rental:[/bold] {trip.rental_cost:.2f}\n"
            f"[bold]Insurance/day:[/bold] {trip.daily_insurance_rate:.2f}\n"
            f"[bold]Pay to:[/bold] {trip.payment_handle or 'Not Set'}",
            title="Trip Settings"
        ))
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def drivers(ctx: typer.Context):
    """
    List the designated drivers.
    """
    try:
        _, service = _load(ctx)
        if not service.drivers:
            console.print("[yellow]No designated drivers added.[/yellow]")
            return
        for name in service.drivers:
            console.print(f"  • {name}")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("add-driver")
def add_driver(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Driver name")],
    password: PasswordOption = None,
):
    """
    Add a designated driver (admin only).
    """
    try:
        config, service = _load(ctx)
        if service.add_driver(name, authorized=config.is_authorized(password)):
            service.save()
            console.print(f"[green]✓ Added driver {name.strip()}[/green]")
        else:
            console.print(f"[yellow]{name.strip() or 'Empty name'} is already listed or invalid.[/yellow]")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("remove-driver")
def remove_driver(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Driver name")],
    password: PasswordOption = None,
):
    """
    Remove a designated driver (admin only).
    """
    try:
        config, service = _load(ctx)
        if service.remove_driver(name, authorized=config.is_authorized(password)):
            service.save()
            console.print(f"[green]✓ Removed driver {name.strip()}[/green]")
        else:
            console.print(f"[yellow]{name.strip()} is not a designated driver.[/yellow]")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def expenses(ctx: typer.Context):
    """
    List recorded expenses.
    """
    try:
        _, service = _load(ctx)
        entries = service.expenses
        if not entries:
            console.print("[yellow]No expenses recorded yet.[/yellow]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("Note")
        table.add_column("Amount", justify="right")
        for entry in entries:
            table.add_row(_short(entry.id), entry.day.isoformat(), entry.note, f"{entry.amount:.2f}")

        console.print()
        console.print(table)
        console.print(f"[bold]Total:[/bold] {sum(e.amount for e in entries):.2f}\n")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("add-expense")
def add_expense(
    ctx: typer.Context,
    amount: Annotated[float, typer.Argument(help="Amount spent")],
    note: Annotated[str, typer.Option("--note", "-n", help="What it was for")] = "",
    day: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD), defaults to today")] = None,
    password: PasswordOption = None,
):
    """
    Record an expense such as a gas fill up (admin only).
    """
    try:
        config, service = _load(ctx)
        entry = service.add_expense(amount, day=day, note=note, authorized=config.is_authorized(password))
        service.save()
        console.print(f"[green]✓ Recorded {entry.amount:.2f} for {entry.note} on {entry.day.isoformat()}[/green]")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("remove-expense")
def remove_expense(
    ctx: typer.Context,
    expense_id: Annotated[str, typer.Argument(metavar="ID", help="Expense id (a unique prefix is enough)")],
    password: PasswordOption = None,
):
    """
    Delete an expense (admin only).
    """
    try:
        config, service = _load(ctx)
        before = len(service.expenses)
        service.remove_expense(expense_id, authorized=config.is_authorized(password))
        if len(service.expenses) == before:
            console.print(f"[yellow]No single expense matches '{expense_id}'.[/yellow]")
            return
        service.save()
        console.print("[green]✓ Expense removed.[/green]")
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command("scan-receipt")
def scan_receipt(
    ctx: typer.Context,
    image: Annotated[Path, typer.Argument(help="Receipt photo (JPEG or PNG)", exists=True, dir_okay=False)],
    record: Annotated[bool, typer.Option("--record/--draft", help="Record the scanned expense right away.")] = False,
    password: PasswordOption = None,
):
    """
    Read amount, date and vendor from a receipt photo (admin only).
    """
    try:
        config, service = _load(ctx)
        authorized = config.is_authorized(password)
        require_authorized(authorized, "record expenses")

        mime_type = "image/png" if image.suffix.lower() == ".png" else "image/jpeg"
        console.print("Scanning receipt...")
        draft = service.scan_receipt(image.read_bytes(), mime_type=mime_type)

        if draft is None:
            console.print("[yellow]Failed to scan receipt. Please enter manually with add-expense.[/yellow]")
            raise typer.Exit(1)

        console.print(f"  Amount: [bold]{draft.amount:.2f}[/bold]")
        console.print(f"  Date:   {draft.day.isoformat()}")
        console.print(f"  Note:   {draft.note}")

        if record:
            service.add_expense(draft.amount, day=draft.day, note=draft.note, authorized=authorized)
            service.save()
            console.print("[green]✓ Expense recorded.[/green]")
    except (SeatSplitError, OSError, ValueError) as e:
        _fail(e)


@app.command()
def summary(
    ctx: typer.Context,
    advice: Annotated[bool, typer.Option("--advice/--no-advice", help="Ask for a tip on settling up.")] = True,
):
    """
    Show the cost split based on booked slots.
    """
    try:
        config, service = _load(ctx)
        report = service.compute_shares()
        trip = service.configuration

        console.print()
        console.print(Panel.fit(
            f"[bold]Total Trip Cost:[/bold] {report.total_trip_cost:.2f} {config.currency}\n"
            f"  Rental {report.costs.rental:.2f} · Insurance {report.costs.insurance:.2f} · Gas {report.costs.expenses:.2f}\n"
            f"[bold]Cost Per Slot:[/bold] {report.cost_per_slot:.2f} (1 slot = morning or afternoon)\n"
            f"[bold]Pay To (Zelle):[/bold] {trip.payment_handle or 'Not Set'}",
            title="Cost Split Summary"
        ))

        if not report.shares:
            console.print("[yellow]No bookings yet. Nothing to split.[/yellow]\n")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Name", style="bold yellow")
        table.add_column("Slots", justify="center")
        table.add_column("Rental", justify="right")
        table.add_column("Insurance", justify="right")
        table.add_column("Gas", justify="right")
        table.add_column("Total Share", justify="right", style="bold green")

        for share in report.shares:
            table.add_row(
                share.name,
                str(share.slots_joined),
                f"{share.rental_share:.2f}",
                f"{share.insurance_share:.2f}",
                f"{share.expense_share:.2f}",
                f"{share.total_share:.2f}",
            )
        console.print(table)

        if advice:
            tip = service.cost_advice(report, currency=config.currency)
            if tip:
                console.print(Panel(tip, title="Advice"))
        console.print()
    except (SeatSplitError, FileNotFoundError, ValueError) as e:
        _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]seatsplit[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
