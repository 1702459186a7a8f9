"""CLI entry point for cycle-insights."""

import sys
from pathlib import Path

import click

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import (
    act,
    analytics,
    dismiss,
    feedback,
    generate,
    init,
    list_insights,
    log_mood,
    log_period,
    log_symptom,
    purge,
    read,
    show,
    summary,
)
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Cycle Insights - personalized insights from tracked cycle data."""
    try:
        config = load_config_model()
    except ValueError:
        # Commands report config errors themselves
        setup_logging(level="DEBUG" if verbose else "WARNING")
        return

    log_cfg = config.logging
    setup_logging(
        json_mode=log_cfg.json_mode,
        level="DEBUG" if verbose else log_cfg.level,
        log_file=config.paths.log_file,
        file_level=log_cfg.file_level,
    )


for command in (
    init,
    generate,
    list_insights,
    show,
    read,
    dismiss,
    act,
    feedback,
    analytics,
    purge,
    log_period,
    log_symptom,
    log_mood,
    summary,
):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
