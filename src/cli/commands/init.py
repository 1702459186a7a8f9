"""Init CLI command."""

from datetime import date, timedelta
from pathlib import Path

import click
import yaml
from rich.console import Console

from cli.config import load_config_model

console = Console()

MINIMAL_CONFIG = {
    "llm": {"provider": "none"},
    "paths": {
        "db_path": "~/.cycle-insights/insights.db",
        "events_file": "~/.cycle-insights/events.json",
    },
    "remote": {"enabled": True},
    "backend": {"enabled": True},
}

# Three regular cycles with recurring cramps and anxiety
SAMPLE_PERIOD_OFFSETS = (90, 61, 31)
SAMPLE_SYMPTOMS = (("cramps", "moderate"), ("cramps", "severe"), ("headache", "mild"), ("cramps", "mild"))
SAMPLE_MOODS = (("anxious", 2), ("calm", 4), ("anxious", 3))


def _write_samples(events) -> int:
    from insights.models import MoodEvent, PeriodEvent, SymptomEvent
    from shared_types import SymptomIntensity

    today = date.today()
    count = 0
    for offset in SAMPLE_PERIOD_OFFSETS:
        start = today - timedelta(days=offset)
        events.add_period(PeriodEvent(start_date=start, end_date=start + timedelta(days=5)))
        count += 1
    for i, (name, intensity) in enumerate(SAMPLE_SYMPTOMS):
        events.add_symptom(
            SymptomEvent(name=name, date=today - timedelta(days=3 + i * 7), intensity=SymptomIntensity(intensity))
        )
        count += 1
    for i, (mood, intensity) in enumerate(SAMPLE_MOODS):
        events.add_mood(MoodEvent(mood=mood, date=today - timedelta(days=2 + i * 5), intensity=intensity))
        count += 1
    return count


@click.command()
@click.option("--samples", is_flag=True, help="Create sample tracked events for demo/onboarding")
def init(samples: bool):
    """Initialize data directories, config, and optionally sample events."""
    from insights.events import JsonEventSource

    config = load_config_model()

    for name in ("db_path", "events_file"):
        path = getattr(config.paths, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        console.print(f"[green]✓[/] {name}: {path}")

    config_path = Path.home() / ".cycle-insights" / "config.yaml"
    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(MINIMAL_CONFIG, f, default_flow_style=False)
        console.print(f"[green]✓[/] Created config: {config_path}")

    if samples:
        written = _write_samples(JsonEventSource(config.paths.events_file))
        console.print(f"[green]✓[/] Sample events: {written}")

    console.print("\n[bold]Minimal setup:[/]")
    console.print("  1. Log events with [cyan]cycle-insights log-period[/], [cyan]log-symptom[/], [cyan]log-mood[/]")
    console.print("  2. Run [cyan]cycle-insights generate[/]")
    console.print(
        "\n[dim]Optional: set llm.provider to claude/openai/http and ANTHROPIC_API_KEY or OPENAI_API_KEY[/]"
    )
