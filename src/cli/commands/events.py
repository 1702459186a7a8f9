"""Event logging and summary CLI commands."""

from datetime import date

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from shared_types import SymptomIntensity

console = Console()


def _parse_day(_ctx, _param, value):
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


@click.command("log-period")
@click.option("--start", callback=_parse_day, default=None, help="Start date (YYYY-MM-DD, default today)")
@click.option("--end", default=None, help="End date (YYYY-MM-DD)")
@click.option("--notes", default=None)
def log_period(start, end, notes):
    """Record the start of a period."""
    from insights.models import PeriodEvent

    end_date = _parse_day(None, None, end) if end else None
    if end_date and end_date < start:
        raise click.BadParameter("end date is before start date")
    get_components()["events"].add_period(PeriodEvent(start_date=start, end_date=end_date, notes=notes))
    console.print(f"[green]Logged period:[/] {start.isoformat()}")


@click.command("log-symptom")
@click.argument("name")
@click.option("--date", "day", callback=_parse_day, default=None, help="YYYY-MM-DD, default today")
@click.option(
    "-i",
    "--intensity",
    type=click.Choice([s.value for s in SymptomIntensity]),
    default=SymptomIntensity.MILD.value,
)
@click.option("--notes", default=None)
def log_symptom(name, day, intensity, notes):
    """Record a symptom."""
    from insights.models import SymptomEvent

    get_components()["events"].add_symptom(
        SymptomEvent(name=name.lower(), date=day, intensity=SymptomIntensity(intensity), notes=notes)
    )
    console.print(f"[green]Logged symptom:[/] {name} ({intensity}) on {day.isoformat()}")


@click.command("log-mood")
@click.argument("mood")
@click.option("--date", "day", callback=_parse_day, default=None, help="YYYY-MM-DD, default today")
@click.option("-i", "--intensity", type=click.IntRange(1, 5), default=3)
def log_mood(mood, day, intensity):
    """Record a mood."""
    from insights.models import MoodEvent

    get_components()["events"].add_mood(MoodEvent(mood=mood.lower(), date=day, intensity=intensity))
    console.print(f"[green]Logged mood:[/] {mood} on {day.isoformat()}")


@click.command()
def summary():
    """Show the data summary insights are generated from."""
    from insights.summarizer import summarize

    events = get_components()["events"]
    s = summarize(events.periods(), events.symptoms(), events.moods())

    cycle = s.cycle
    console.print(f"\n[bold]Periods tracked:[/] {cycle.total_periods}")
    console.print(f"[bold]Average cycle:[/] {cycle.average_length} days (variability {cycle.variability})")
    if cycle.last_period_date:
        console.print(f"[bold]Last period:[/] {cycle.last_period_date.isoformat()}")
    if cycle.predicted_next_period:
        console.print(f"[bold]Predicted next:[/] {cycle.predicted_next_period.isoformat()}")

    for title, stats, name_attr in (
        ("Top Symptoms", s.symptom_stats, "name"),
        ("Top Moods", s.mood_stats, "mood"),
    ):
        if not stats:
            continue
        table = Table(show_header=True, title=title)
        table.add_column("Name")
        table.add_column("Count", justify="right")
        table.add_column("Trend", style="dim")
        for stat in stats:
            table.add_row(getattr(stat, name_attr), str(stat.frequency), str(stat.trend))
        console.print(table)
