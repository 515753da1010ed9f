"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.fixture_loader import SAMPLE_SCHEDULE_FILE, load_schedule_file
from ..adapters.in_memory import InMemoryScheduleRepository
from ..config import EngineConfig, get_default_config_path
from ..domain.exceptions import SlotEngineError
from ..domain.models import DayResult
from ..domain.time_model import Clock, FixedClock, SystemClock, format_date, parse_date, parse_time
from ..services.booking_engine import BookingEngine
from ..services.booking_validator import BookingRequest

app = typer.Typer(
    name="slotengine",
    help="Compute bookable appointment slots from business schedules",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", "-d", help="Schedule file (JSON or YAML). Overrides data_file from the config.")]
SampleOption = Annotated[bool, typer.Option("--sample", help="Use the bundled sample schedule.")]
EmployeeOption = Annotated[Optional[str], typer.Option("--employee", "-e", help="Only this employee's schedule and bookings.")]
BusinessViewOption = Annotated[bool, typer.Option("--business-view", help="Business-side view: elapsed slots stay bookable.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the JSON payload instead of a table.")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Pretend the current time is this ISO-8601 instant.", hidden=True)]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(config: EngineConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=config.logging.rich_tracebacks,
            )
        ],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> tuple[EngineConfig, Optional[Path]]:
    """An explicit config file must exist; the default one is optional."""
    if config_file is not None:
        return EngineConfig.load_from_yaml(config_file), config_file

    default_path = get_default_config_path()
    if default_path.exists():
        return EngineConfig.load_from_yaml(default_path), default_path

    return EngineConfig(), None


def _build_engine(
    *,
    config_file: Optional[Path],
    data_file: Optional[Path],
    sample: bool,
    now: Optional[str],
    verbose: bool,
) -> BookingEngine:
    config, config_path = _load_config(config_file)
    _configure_logging(config, verbose)

    if sample:
        schedule_path = SAMPLE_SCHEDULE_FILE
    else:
        schedule_path = data_file or config.resolve_data_file(config_path)

    if schedule_path is None:
        raise FileNotFoundError(
            "No schedule data given. Pass --data, set data_file in config.yaml, or use --sample."
        )

    repository: InMemoryScheduleRepository = load_schedule_file(
        schedule_path,
        default_timezone=config.default_timezone,
        default_slot_interval=config.default_slot_interval,
    )

    clock: Clock = SystemClock()
    if now:
        try:
            clock = FixedClock(pendulum.parse(now))
        except Exception as e:
            raise typer.BadParameter(f"Invalid --now value '{now}': {e}")

    return BookingEngine(repository=repository, clock=clock, max_range_days=config.max_range_days)


def _print_day(day: DayResult) -> None:
    title = day.date.format("dddd, YYYY-MM-DD")

    if not day.available:
        console.print(f"[bold]{title}[/bold]  [yellow]⚠ {day.reason}[/yellow]")
        return

    hours = ", ".join(str(w) for w in day.windows)
    console.print(f"[bold]{title}[/bold]  Working hours: {hours}")

    if day.breaks:
        console.print(f"   Breaks: {', '.join(str(b) for b in day.breaks)}")
    if day.employee_at_capacity:
        console.print("   [yellow]Employee has reached the daily appointment limit[/yellow]")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End")
    table.add_column("Status")
    table.add_column("Spots left", justify="right")

    for slot in day.slots:
        if slot.available:
            status = "[green]✓ available[/green]"
        elif slot.is_past:
            status = "[dim]past[/dim]"
        else:
            status = "[red]✗ booked[/red]"

        spots = "" if slot.spots_left is None else str(slot.spots_left)
        table.add_row(slot.start_time, slot.end_time, status, spots)

    console.print(table)
    console.print(
        f"   {len(day.available_slots)} of {day.total_slots} slot(s) available "
        f"({day.capacity_mode.value})\n"
    )


@app.command()
def slots(
    business_id: Annotated[str, typer.Argument(help="Business id")],
    service_id: Annotated[str, typer.Argument(help="Service id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    employee: EmployeeOption = None,
    business_view: BusinessViewOption = False,
    as_json: JsonOption = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    sample: SampleOption = False,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the slots of one day.

    Examples:

        slotengine slots studio-lumen haircut 2026-11-02 --sample

        slotengine slots studio-lumen haircut 2026-11-03 --employee ana --json
    """
    try:
        engine = _build_engine(
            config_file=config_file, data_file=data_file, sample=sample, now=now, verbose=verbose
        )
        day = asyncio.run(
            engine.compute_day(
                business_id=business_id,
                service_id=service_id,
                date=parse_date(date),
                employee_id=employee,
                allow_past_slots=business_view,
            )
        )
    except (FileNotFoundError, SlotEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(day.to_payload(), indent=2))
    else:
        _print_day(day)


@app.command(name="range")
def slots_range(
    business_id: Annotated[str, typer.Argument(help="Business id")],
    service_id: Annotated[str, typer.Argument(help="Service id")],
    start: Annotated[str, typer.Argument(help="Start date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Argument(help="End date (YYYY-MM-DD), inclusive")],
    employee: EmployeeOption = None,
    business_view: BusinessViewOption = False,
    as_json: JsonOption = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    sample: SampleOption = False,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the slots of every day in an inclusive date range.
    """
    try:
        engine = _build_engine(
            config_file=config_file, data_file=data_file, sample=sample, now=now, verbose=verbose
        )
        result = asyncio.run(
            engine.compute_range(
                business_id=business_id,
                service_id=service_id,
                start_date=parse_date(start),
                end_date=parse_date(end),
                employee_id=employee,
                allow_past_slots=business_view,
            )
        )
    except (FileNotFoundError, SlotEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_payload(), indent=2))
        return

    for day in result.days:
        _print_day(day)

    open_days = sum(1 for day in result.days if day.available)
    console.print(f"[bold green]{open_days} of {result.total_days} day(s) open[/bold green]")


@app.command()
def check(
    business_id: Annotated[str, typer.Argument(help="Business id")],
    service_id: Annotated[str, typer.Argument(help="Service id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start_time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    employee: EmployeeOption = None,
    business_view: BusinessViewOption = False,
    reschedule: Annotated[Optional[str], typer.Option("--reschedule", help="Id of the appointment being moved.")] = None,
    as_json: JsonOption = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    sample: SampleOption = False,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether a specific slot could be booked right now.
    """
    try:
        engine = _build_engine(
            config_file=config_file, data_file=data_file, sample=sample, now=now, verbose=verbose
        )
        request = BookingRequest(
            business_id=business_id,
            service_id=service_id,
            date=parse_date(date),
            start_time=parse_time(start_time),
            employee_id=employee,
            allow_past_slots=business_view,
            exclude_appointment_id=reschedule,
        )
        decision = asyncio.run(engine.validate_and_reserve(request))
    except (FileNotFoundError, SlotEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(decision.to_payload(), indent=2))
        return

    label = f"{format_date(request.date)} {start_time}"
    if decision.ok:
        console.print(f"[bold green]✓ {label} can be booked[/bold green] ({decision.initial_status.value})")
    else:
        console.print(f"[bold red]✗ {label}: {decision.outcome.value}[/bold red] - {decision.message}")


@app.command()
def businesses(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    sample: SampleOption = False,
):
    """
    List the businesses and services of the schedule data.
    """
    try:
        config, config_path = _load_config(config_file)
        schedule_path = SAMPLE_SCHEDULE_FILE if sample else (data_file or config.resolve_data_file(config_path))
        if schedule_path is None:
            raise FileNotFoundError("No schedule data given. Pass --data or use --sample.")
        repository = load_schedule_file(schedule_path, default_timezone=config.default_timezone)
    except (FileNotFoundError, SlotEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title="Businesses",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Business", style="bold yellow")
    table.add_column("Mode")
    table.add_column("Timezone", style="dim")
    table.add_column("Services")

    for business_id in repository.business_ids:
        snapshot = repository.get(business_id)
        services = ", ".join(
            f"{s.id} ({s.duration} min)" for s in snapshot.services.values()
        )
        table.add_row(
            business_id,
            snapshot.business.capacity_mode.value,
            snapshot.business.timezone,
            services,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
