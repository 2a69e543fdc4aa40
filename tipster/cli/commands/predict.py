"""Run one prediction batch for a match."""

import asyncio
import json
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from tipster.cli.commands.pipeline_factory import load_pipeline
from tipster.core.models import MatchContext

console = Console()


@click.command()
@click.argument("match_id")
@click.option("--home", required=True, help="Home team")
@click.option("--away", required=True, help="Away team")
@click.option("--competition", required=True, help="Competition name")
@click.option("--kickoff", default=None, help="Kickoff time (ISO 8601)")
@click.option("--analysis", default=None, help="Pre-match analysis text for the prompt")
@click.option("--model", "models", multiple=True, help="Only use these model ids (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print outcomes as JSON")
def predict(
    match_id: str,
    home: str,
    away: str,
    competition: str,
    kickoff: Optional[str],
    analysis: Optional[str],
    models: Tuple[str, ...],
    as_json: bool,
):
    """Predict MATCH_ID with every active model."""
    pipeline = load_pipeline()
    context = MatchContext(
        match_id=match_id,
        home_team=home,
        away_team=away,
        competition=competition,
        kickoff=kickoff,
        analysis=analysis,
    )

    outcomes = asyncio.run(pipeline.coordinator.predict_all(context, list(models) or None))

    if as_json:
        click.echo(json.dumps({k: v.to_dict() for k, v in outcomes.items()}, indent=2, default=str))
        return

    if not outcomes:
        console.print("[yellow]No eligible providers (check API keys and model health)[/yellow]")
        return

    table = Table(title=f"{home} vs {away} ({match_id})")
    table.add_column("Model", style="cyan")
    table.add_column("Prediction", justify="center")
    table.add_column("Result", justify="center")
    table.add_column("Time", justify="right")
    table.add_column("Error", style="dim")

    for model_id, outcome in sorted(outcomes.items()):
        if outcome.success and outcome.prediction:
            score = f"{outcome.prediction.home_score}-{outcome.prediction.away_score}"
            table.add_row(model_id, f"[green]{score}[/green]", outcome.prediction.tendency, f"{outcome.duration_ms}ms", "")
        else:
            kind = outcome.error_kind.value if outcome.error_kind else "error"
            table.add_row(model_id, "[red]-[/red]", "", f"{outcome.duration_ms}ms", f"{kind}: {outcome.error or ''}"[:80])

    console.print(table)
    succeeded = sum(1 for o in outcomes.values() if o.success)
    console.print(f"\n{succeeded}/{len(outcomes)} models produced a prediction")
