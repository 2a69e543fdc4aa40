"""List registered providers and validate the fallback mapping."""

import click
from rich.console import Console
from rich.table import Table

from tipster.cli.commands.pipeline_factory import load_pipeline

console = Console()


@click.command()
@click.option("--configured-only", is_flag=True, help="Hide providers without credentials")
def providers(configured_only: bool):
    """Show providers, pricing and fallback targets."""
    pipeline = load_pipeline()

    table = Table(title="Prediction Providers")
    table.add_column("Model", style="cyan")
    table.add_column("Name")
    table.add_column("Tier")
    table.add_column("$/1M in", justify="right")
    table.add_column("$/1M out", justify="right")
    table.add_column("Reasoning", justify="center")
    table.add_column("Configured", justify="center")
    table.add_column("Fallback", style="dim")

    shown = 0
    for provider in pipeline.providers.values():
        configured = provider.is_configured()
        if configured_only and not configured:
            continue
        shown += 1
        table.add_row(
            provider.id,
            provider.display_name,
            provider.tier,
            f"{provider.pricing.prompt_per_million:.2f}",
            f"{provider.pricing.completion_per_million:.2f}",
            "yes" if provider.supports_reasoning_output else "",
            "[green]●[/green]" if configured else "[red]○[/red]",
            pipeline.resolver.fallback_for(provider.id) or "",
        )

    console.print(table)
    console.print(
        f"\n{shown} shown, {len(pipeline.configured_ids())}/{len(pipeline.providers)} configured, "
        f"{len(pipeline.resolver.mapping)} fallback mapping(s) valid"
    )
