"""Insight CLI commands."""

import asyncio

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from shared_types import FeedbackType, InsightCategory, InsightPriority

console = Console()

PRIORITY_STYLE = {
    "urgent": "[bold red]urgent[/]",
    "high": "[red]high[/]",
    "medium": "[yellow]medium[/]",
    "low": "[dim]low[/]",
}


def _insight_table(rows, title: str = "Insights") -> Table:
    table = Table(show_header=True, title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category", style="green")
    table.add_column("Priority")
    table.add_column("Title", max_width=40)
    table.add_column("Conf", justify="right")
    table.add_column("Source", style="dim")
    table.add_column("Status")

    for i in rows:
        status = []
        if i.is_read:
            status.append("read")
        if i.action_taken:
            status.append("acted")
        if i.feedback:
            status.append(str(i.feedback.type))
        table.add_row(
            i.id,
            str(i.category),
            PRIORITY_STYLE.get(str(i.priority), str(i.priority)),
            i.title[:40],
            f"{i.confidence:.0%}",
            str(i.source),
            ", ".join(status) or "[bold]new[/]",
        )
    return table


def _generate_if_stale(manager) -> None:
    try:
        added = asyncio.run(manager.generate_if_stale())
    except ValueError as e:
        console.print(f"[yellow]Auto-generate skipped:[/] {e}")
        return
    if added:
        console.print(f"[dim]Generated {len(added)} insight(s) from recent tracking data.[/]")


@click.command()
@click.option("--force", is_flag=True, help="Replace the stored collection")
@click.option("--include-expired", is_flag=True, help="Keep insights that are already expired")
@click.option("-n", "--max", "max_insights", type=int, default=None, help="Max insights (1-20)")
@click.option(
    "-c",
    "--category",
    "categories",
    multiple=True,
    type=click.Choice([c.value for c in InsightCategory]),
    help="Only keep these categories (repeatable)",
)
@click.option("--local-only", is_flag=True, help="Skip remote strategies")
def generate(force, include_expired, max_insights, categories, local_only):
    """Generate new insights from tracked events."""
    from insights.models import GenerationOptions

    c = get_components()
    manager = c["manager"]
    options = GenerationOptions(
        categories=[InsightCategory(x) for x in categories] or None,
        force_refresh=force,
        include_expired=include_expired,
        max_insights=max_insights or c["config"].insights.default_max_insights,
        use_remote=not local_only,
    )

    try:
        with console.status("Generating insights..."):
            added = asyncio.run(manager.generate(options))
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1)

    if not added:
        console.print("[yellow]No new insights.[/]")
        return
    console.print(_insight_table(added, title=f"{len(added)} new insight(s)"))


@click.command("list")
@click.option("-c", "--category", type=click.Choice([c.value for c in InsightCategory]), default=None)
@click.option("-p", "--priority", type=click.Choice([p.value for p in InsightPriority]), default=None)
@click.option("-s", "--search", "query", default=None, help="Match title, content or tags")
def list_insights(category, priority, query):
    """List active insights."""
    manager = get_components()["manager"]
    _generate_if_stale(manager)

    if query:
        rows = manager.search_insights(query)
    elif category:
        rows = manager.get_insights_by_category(InsightCategory(category))
    else:
        rows = manager.insights()
    if priority:
        rows = [i for i in rows if i.priority == InsightPriority(priority)]
    if category and query:
        rows = [i for i in rows if i.category == InsightCategory(category)]

    if not rows:
        console.print("[yellow]No insights found. Run 'cycle-insights generate' first.[/]")
        return
    console.print(_insight_table(rows))


@click.command()
@click.argument("insight_id")
def show(insight_id):
    """Show one insight in full."""
    insight = get_components()["manager"].get(insight_id)
    if insight is None:
        console.print(f"[red]Not found:[/] {insight_id}")
        raise SystemExit(1)

    console.print(f"\n[cyan bold]{insight.title}[/]")
    console.print(
        f"[dim]{insight.type} | {insight.category} | {insight.priority} | "
        f"{insight.confidence:.0%} | {insight.source} | {insight.generated_at:%Y-%m-%d %H:%M}[/]"
    )
    console.print()
    console.print(insight.content)
    if insight.data_points:
        console.print("\n[bold]Based on:[/]")
        for point in insight.data_points:
            console.print(f"  - {point}")
    if insight.tags:
        console.print(f"\n[dim]Tags: {', '.join(insight.tags)}[/]")
    if insight.expires_at:
        console.print(f"[dim]Expires: {insight.expires_at:%Y-%m-%d}[/]")
    if insight.feedback:
        console.print(f"[dim]Feedback: {insight.feedback.type}[/]")


def _lifecycle(action: str, insight_id: str, verb: str) -> None:
    manager = get_components()["manager"]
    if getattr(manager, action)(insight_id):
        console.print(f"[green]{verb}:[/] {insight_id}")
    else:
        console.print(f"[red]Not found:[/] {insight_id}")
        raise SystemExit(1)


@click.command()
@click.argument("insight_id")
def read(insight_id):
    """Mark an insight as read."""
    _lifecycle("mark_as_read", insight_id, "Read")


@click.command()
@click.argument("insight_id")
def dismiss(insight_id):
    """Dismiss an insight."""
    _lifecycle("dismiss", insight_id, "Dismissed")


@click.command()
@click.argument("insight_id")
def act(insight_id):
    """Record that an insight's suggestion was acted on."""
    _lifecycle("mark_action_taken", insight_id, "Action recorded")


@click.command()
@click.argument("insight_id")
@click.argument("feedback_type", type=click.Choice([f.value for f in FeedbackType]))
@click.option("--notes", default=None)
@click.option("--score", type=click.IntRange(1, 5), default=None, help="Helpfulness 1-5")
def feedback(insight_id, feedback_type, notes, score):
    """Submit feedback for an insight (once per insight)."""
    from insights.manager import FeedbackSubmissionError
    from insights.models import InsightFeedback

    manager = get_components()["manager"]
    entry = InsightFeedback(
        insight_id=insight_id,
        type=FeedbackType(feedback_type),
        notes=notes,
        helpfulness_score=score,
    )
    try:
        recorded = asyncio.run(manager.submit_feedback(entry))
    except FeedbackSubmissionError as e:
        console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1)
    except Exception as e:
        console.print(f"[red]Feedback failed:[/] {e}")
        raise SystemExit(1)

    if recorded:
        console.print(f"[green]Feedback recorded:[/] {insight_id}")
    else:
        console.print(f"[yellow]Not recorded:[/] {insight_id} is unknown or already has feedback")


@click.command()
def analytics():
    """Show insight analytics."""
    manager = get_components()["manager"]
    _generate_if_stale(manager)
    stats = manager.get_insight_analytics()

    console.print(f"\n[bold]Active insights:[/] {stats['total_insights']}")
    console.print(f"[bold]Read:[/] {stats['read_insights']}")
    console.print(f"[bold]Acted on:[/] {stats['action_taken_count']}")
    console.print(f"[bold]Average confidence:[/] {stats['average_confidence']:.0%}")

    for title, key in (("By Category", "category_breakdown"), ("By Type", "type_breakdown")):
        if stats[key]:
            table = Table(show_header=True, title=title)
            table.add_column(title.split()[-1])
            table.add_column("Count", justify="right")
            for name, count in sorted(stats[key].items(), key=lambda kv: -kv[1]):
                table.add_row(name, str(count))
            console.print(table)

    fb = stats["feedback_stats"]
    console.print(
        f"\n[bold]Feedback:[/] {fb['very_helpful']} very helpful, "
        f"{fb['helpful']} helpful, {fb['not_helpful']} not helpful"
    )


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def purge(yes):
    """Delete dismissed insights from storage."""
    manager = get_components()["manager"]
    if not yes and not click.confirm("Delete all dismissed insights?"):
        return
    removed = manager.purge_dismissed()
    console.print(f"[green]Purged:[/] {removed} dismissed insight(s)")
