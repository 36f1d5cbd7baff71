"""
Inspect tools for repaired (or raw) calendar documents.

Importable functions:
  dump_event(vevent, console, show_raw=True)  render one event in a Rich Panel
"""

from icalendar import Event
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from ews_ical_repair.repair.utils import attendees_of


def fmt_prop(vevent: Event, name: str):
    prop = vevent.get(name)
    if prop is None:
        return None
    if hasattr(prop, "to_ical"):
        value = prop.to_ical()
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)
    return str(prop)


def _fmt_address(value) -> str:
    params = getattr(value, "params", {})
    text = str(value)
    cn = params.get("CN")
    return f"{cn} <{text}>" if cn else text


def dump_event(vevent: Event, console: Console, show_raw: bool = True) -> None:
    """Render a single VEVENT as a Rich Panel."""
    summary = fmt_prop(vevent, "SUMMARY") or "(no summary)"

    lines = Text()

    def row(label: str, value) -> None:
        if value is None:
            return
        lines.append(f"  {label:<14}: ", style="bold cyan")
        lines.append(f"{value}\n")

    row("SUMMARY", summary)
    row("UID", fmt_prop(vevent, "UID") or "(no UID)")
    row("RECURRENCE-ID", fmt_prop(vevent, "RECURRENCE-ID"))
    row("DTSTART", fmt_prop(vevent, "DTSTART"))
    row("DTEND", fmt_prop(vevent, "DTEND"))
    row("RRULE", fmt_prop(vevent, "RRULE"))

    organizer = vevent.get("ORGANIZER")
    if organizer is not None:
        row("ORGANIZER", _fmt_address(organizer))

    for attendee in attendees_of(vevent):
        params = attendee.params
        lines.append(f"  {'ATTENDEE':<14}: ", style="bold cyan")
        lines.append(
            f"{_fmt_address(attendee)}  PARTSTAT={params.get('PARTSTAT')}  "
            f"ROLE={params.get('ROLE')}  CUTYPE={params.get('CUTYPE')}\n"
        )

    console.print(Panel(lines, title=f"[bold]{summary}[/bold]", expand=False))

    if show_raw:
        raw = vevent.to_ical().decode("utf-8")
        console.print(
            Panel(
                Syntax(raw, "ical", theme="monokai", word_wrap=True),
                title="Raw iCal",
                expand=False,
            )
        )
