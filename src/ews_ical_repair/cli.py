"""
Command-line interface for EWS iCal Repair.
"""

import logging
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import click
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ews_ical_repair.messages import Appointment
from ews_ical_repair.models import CONFIG_ENV_VAR
from ews_ical_repair.models import CONFIG_SECTION
from ews_ical_repair.models import DEFAULT_CONFIG
from ews_ical_repair.models import CalendarRepairError
from ews_ical_repair.models import RepairConfig
from ews_ical_repair.models import RepairStats
from ews_ical_repair.pipeline import AppointmentRepairer
from ews_ical_repair.pipeline import repair_mime
from ews_ical_repair.transport import JsonLinesPublisher
from ews_ical_repair.transport import read_inbound

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Repair exported iCalendar invitations using structured appointment metadata.",
)

# stdout carries calendar text and outbound records; everything else goes to stderr.
console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option(
            "--config",
            "-c",
            envvar=CONFIG_ENV_VAR,
            help=f"Config file path (default: {DEFAULT_CONFIG})",
        ),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if CONFIG_SECTION not in parser:
        return {}
    return dict(parser[CONFIG_SECTION])


def _config_flag(value: str | None, key: str) -> bool:
    if value is None:
        return False
    flag = ConfigParser.BOOLEAN_STATES.get(value.strip().lower())
    if flag is None:
        raise click.BadParameter(f"{key} in {state.config_path} must be a boolean, got {value!r}")
    return flag


def _build_config(input_path: Path | None, output_path: Path | None, strict: bool) -> RepairConfig:
    config_file = _load_config_file(state.config_path)
    input_value = input_path or config_file.get("input_path")
    output_value = output_path or config_file.get("output_path")

    if not input_value:
        console.print(
            "[bold red]Error:[/] An input file must be provided as an argument "
            "or as [cyan]input_path[/] in the config file."
        )
        raise typer.Exit(1)

    return RepairConfig(
        input_path=Path(input_value),
        output_path=Path(output_value) if output_value else None,
        fail_on_error=strict or _config_flag(config_file.get("fail_on_error"), "fail_on_error"),
        verbose=state.verbose,
    )


def _print_results(stats: RepairStats) -> None:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Published", str(stats.published))
    results.add_row("Skipped", str(stats.skipped))
    failed_val = Text(str(stats.failed))
    if stats.failed == 0:
        failed_val.append(" ✓", style="green")
    else:
        failed_val.stylize("bold red")
    results.add_row("Failed", failed_val)

    console.print(Panel(results, title="[bold]Results[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Subcommand: run
# ---------------------------------------------------------------------------


@app.command()
def run(
    input_file: Annotated[
        Path | None,
        typer.Argument(help="JSON-lines file of exported appointments ('-' for stdin)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where to write repaired records (default: stdout)"),
    ] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Exit with status 1 when any record fails")
    ] = False,
) -> None:
    """Repair every exported appointment in a JSON-lines dump.

    Each input line is one exported appointment record; each repaired
    calendar is written as one outbound JSON record.  Records that cannot be
    repaired are logged and skipped.
    """
    cfg = _build_config(input_file, output, strict)
    logger = logging.getLogger("ews_ical_repair")

    try:
        with (
            click.open_file(str(cfg.input_path), encoding="utf-8") as source,
            click.open_file(str(cfg.output_path or "-"), "w", encoding="utf-8") as sink,
        ):
            repairer = AppointmentRepairer(JsonLinesPublisher(sink), logger)
            stats = repairer.run(read_inbound(source))
    except OSError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None

    _print_results(stats)

    if cfg.fail_on_error and (stats.failed or stats.skipped):
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Subcommand: fix
# ---------------------------------------------------------------------------


@app.command()
def fix(
    mime_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="Exported .ics file"),
    ],
    appointment_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="Appointment metadata as JSON"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Where to write the repaired .ics (default: stdout)"),
    ] = None,
) -> None:
    """Repair a single exported calendar file."""
    try:
        appointment = Appointment.model_validate_json(appointment_file.read_bytes())
    except ValidationError as e:
        console.print(f"[bold red]Invalid appointment metadata:[/] {e}")
        raise typer.Exit(1) from None

    # Read bytes so CRLF line endings survive an unchanged pass-through.
    mime_content = mime_file.read_bytes().decode("utf-8")
    try:
        repaired = repair_mime(mime_content, appointment)
    except CalendarRepairError as e:
        console.print(f"[bold red]Repair failed:[/] {e}")
        raise typer.Exit(1) from None

    with click.open_file(str(output or "-"), "w", encoding="utf-8") as sink:
        sink.write(repaired)


# ---------------------------------------------------------------------------
# Subcommand: inspect
# ---------------------------------------------------------------------------


@app.command()
def inspect(
    ics_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="Calendar file to inspect"),
    ],
    no_raw: Annotated[bool, typer.Option("--no-raw", help="Omit the raw iCal block")] = False,
    exceptions_only: Annotated[
        bool,
        typer.Option("--exceptions-only", help="Show only exception VEVENTs (have RECURRENCE-ID)"),
    ] = False,
    masters_only: Annotated[
        bool, typer.Option("--masters-only", help="Show only master VEVENTs (no RECURRENCE-ID)")
    ] = False,
) -> None:
    """Inspect / debug the events of a calendar file."""
    from ews_ical_repair.debug import dump_event
    from ews_ical_repair.repair.utils import events_of
    from ews_ical_repair.repair.utils import has_recurrence_id
    from ews_ical_repair.repair.utils import parse_calendar

    try:
        calendar = parse_calendar(ics_file.read_bytes().decode("utf-8"))
    except CalendarRepairError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    events = events_of(calendar)
    console.print(f"[bold]Events:[/] {len(events)} total")

    count = 0
    for vevent in events:
        has_rid = has_recurrence_id(vevent)
        if exceptions_only and not has_rid:
            continue
        if masters_only and has_rid:
            continue

        count += 1
        dump_event(vevent, console, show_raw=not no_raw)

    console.print(f"\n[bold]Matched {count} event(s)[/bold]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
