# -*- coding: utf-8 -*-
import asyncio
import logging
import typing as t
from zoneinfo import ZoneInfoNotFoundError

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from calendar_engine.dates import MonthRef, resolve_timezone, today_in
from calendar_engine.feeds import TRACKER_API_TOKEN, TRACKER_API_URL, TRACKER_TIMEOUT, TrackerClient
from calendar_engine.loader import CalendarLoader
from calendar_engine.models import CalendarDay, DayCell, PlanningItem
from calendar_engine.planning import display_subject, format_hours, recent_history


console = Console()

WEEKDAY_HEADERS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def format_day_label(item: PlanningItem) -> str:
    """Short date label such as "Mon, Jun 3"."""
    return f"{item.date.strftime('%a, %b')} {item.date.day}"


def render_cell(cell: t.Optional[DayCell]) -> Text:
    if cell is None:
        return Text("")
    text = Text(f"{cell.date.day:>2}")
    if cell.hours:
        text.append(f"\n{format_hours(cell.hours)}", style="dim")
    if cell.is_today:
        text.stylize("bold white on blue")
    elif cell.is_planned:
        text.stylize("bold green")
    return text


def create_month_table(label: str, weeks: list[list[t.Optional[DayCell]]]) -> Table:
    """Calendar grid: today in blue, planned days in green."""
    table = Table(title=f"📅 {label}", show_header=True, header_style="bold magenta", show_lines=True)
    for header in WEEKDAY_HEADERS:
        table.add_column(header, justify="center", width=7)
    for week in weeks:
        table.add_row(*[render_cell(cell) for cell in week])
    return table


def create_planning_table(title: str, items: list[PlanningItem], status_label: str, style: str) -> Table:
    table = Table(title=title, show_header=True, header_style=f"bold {style}")
    table.add_column("Date", style="yellow")
    table.add_column("Hours", justify="right")
    table.add_column("Subject", style="white")
    table.add_column("Batch", style="cyan")
    table.add_column("", style=style)
    for item in items:
        table.add_row(
            format_day_label(item),
            format_hours(item.hours),
            display_subject(item),
            item.batch or "",
            status_label,
        )
    return table


def create_stats_panel(days: t.Iterable[CalendarDay]) -> Panel:
    completed = in_progress = total = hours = 0
    for day in days:
        completed += day.completed_units
        in_progress += day.in_progress_units
        total += day.total_units
        hours += day.hours

    stats_text = Text()
    stats_text.append("Assigned hours: ", style="white")
    stats_text.append(f"{hours}", style="bold green")
    stats_text.append("\nUnits started: ", style="white")
    stats_text.append(f"{total}", style="bold green")
    stats_text.append("\nUnits completed: ", style="white")
    stats_text.append(f"{completed}", style="bold green")
    stats_text.append("\nUnits in progress: ", style="white")
    stats_text.append(f"{in_progress}", style="bold yellow")
    return Panel(stats_text, title="📊 Statistics", border_style="green")


async def load_month(loader: CalendarLoader, client: TrackerClient, month: MonthRef) -> None:
    try:
        await loader.load(month)
    finally:
        await client.aclose()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--year", type=click.IntRange(1, 9999), help="Year to show (default: current year).")
@click.option("--month", type=click.IntRange(1, 12), help="Month to show (default: current month).")
@click.option("--base-url", default=TRACKER_API_URL, show_default=True, help="Tracker API base URL.")
@click.option("--token", default=TRACKER_API_TOKEN, help="Bearer token for the tracker API.")
@click.option("--tz", "tz_name", default="", help="IANA time zone used for local dates (default: system zone).")
@click.option("--timeout", default=TRACKER_TIMEOUT, show_default=True, help="Request timeout in seconds.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
def main(
    year: t.Optional[int],
    month: t.Optional[int],
    base_url: str,
    token: str,
    tz_name: str,
    timeout: float,
    verbose: bool,
) -> None:
    """Show the teaching calendar and planning list for one month."""
    configure_logging(verbose)

    try:
        tz = resolve_timezone(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise click.BadParameter(f"Unknown time zone {tz_name!r}: {e}", param_hint="--tz")

    today = today_in(tz)
    target = MonthRef(year or today.year, month or today.month)

    client = TrackerClient(base_url=base_url, token=token, timeout=timeout)
    loader = CalendarLoader(client, tz=tz, clock=lambda: today, month=target)

    with console.status(f"[bold green]Loading {target.label()}..."):
        asyncio.run(load_month(loader, client, target))

    if loader.last_error:
        console.print(f"[yellow]No data:[/yellow] {loader.last_error}")

    console.print(create_month_table(target.label(), loader.get_month_grid()))

    view = loader.get_planning_view()
    if view.is_empty:
        console.print(
            "\nNo timetable for this month. Your schedule will appear here after it is approved and sent."
        )
    else:
        if view.scheduled:
            console.print("\n", create_planning_table(
                "🕒 Scheduled (this month)", list(view.scheduled), "Scheduled", "magenta",
            ))
        if view.history:
            console.print("\n", create_planning_table("✅ Past", recent_history(view), "Done", "green"))

    console.print(create_stats_panel(loader.get_calendar_model().values()))


if __name__ == "__main__":
    main()
