"""Model health inspection and recovery."""

import asyncio

import click
from rich.console import Console
from rich.table import Table

from tipster.cli.commands.pipeline_factory import load_pipeline

console = Console()


@click.group()
def health():
    """Model health tracking."""
    pass


@health.command("list")
@click.option("--disabled", "disabled_only", is_flag=True, help="Only show auto-disabled models")
def list_health(disabled_only: bool):
    """Show health records."""
    pipeline = load_pipeline()
    records = asyncio.run(pipeline.health.list_records())
    if disabled_only:
        records = [r for r in records if r.auto_disabled]

    if not records:
        console.print("[dim]No health records yet[/dim]")
        return

    table = Table(title="Model Health")
    table.add_column("Model", style="cyan")
    table.add_column("Failures", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Last Failure", style="dim")
    table.add_column("Last Success", style="dim")
    table.add_column("Reason")

    for record in records:
        status = "[red]disabled[/red]" if record.auto_disabled else "[green]active[/green]"
        table.add_row(
            record.model_id,
            str(record.consecutive_failures),
            status,
            record.last_failure_at.strftime("%Y-%m-%d %H:%M") if record.last_failure_at else "",
            record.last_success_at.strftime("%Y-%m-%d %H:%M") if record.last_success_at else "",
            (record.failure_reason or "")[:60],
        )

    console.print(table)


@health.command()
def recover():
    """Re-enable auto-disabled models whose cooldown has elapsed."""
    pipeline = load_pipeline()
    recovered = asyncio.run(pipeline.health.recover_disabled())
    if not recovered:
        console.print("[dim]No models ready for recovery[/dim]")
        return
    for model_id in recovered:
        console.print(f"[green]✓[/green] {model_id} re-enabled on probation")


@health.command()
@click.argument("model_id")
def enable(model_id: str):
    """Manually re-enable MODEL_ID."""
    pipeline = load_pipeline()
    if asyncio.run(pipeline.health.re_enable(model_id)):
        console.print(f"[green]✓[/green] {model_id} re-enabled")
    else:
        raise click.ClickException(f"No health record for {model_id}")
