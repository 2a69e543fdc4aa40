"""Fallback usage and cost report."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.table import Table

from tipster.cli.commands.pipeline_factory import load_pipeline
from tipster.services.fallback_report import build_fallback_report

console = Console()


@click.command("fallback-stats")
@click.option("--days", default=1, type=click.IntRange(min=1), help="Reporting window in days")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def fallback_stats(days: int, as_json: bool):
    """Show per-model fallback rate and cost multiplier."""
    pipeline = load_pipeline()
    since = datetime.now(timezone.utc) - timedelta(days=days)
    counts = asyncio.run(pipeline.predictions.fallback_counts(since))
    report = build_fallback_report(counts, pipeline.providers, pipeline.resolver.mapping)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not report.stats:
        console.print(f"[dim]No predictions in the last {days} day(s)[/dim]")
        return

    table = Table(title=f"Fallback Usage (last {days} day(s))")
    table.add_column("Model", style="cyan")
    table.add_column("Fallback To")
    table.add_column("Predictions", justify="right")
    table.add_column("Fallbacks", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Cost x", justify="right")

    for stat in report.stats:
        multiplier = f"{stat.cost_multiplier:.2f}x" if stat.fallback_to else ""
        if stat.exceeds_2x:
            multiplier = f"[red]{multiplier}[/red]"
        table.add_row(
            stat.model_id,
            stat.fallback_to or "",
            str(stat.total_predictions),
            str(stat.fallback_count),
            f"{stat.fallback_rate * 100:.1f}%",
            multiplier,
        )

    console.print(table)
    console.print(
        f"\nTotal fallbacks: {report.total_fallbacks}, models exceeding 2x cost: {report.models_exceeding_2x}"
    )
