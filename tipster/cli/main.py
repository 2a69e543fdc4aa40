"""
Tipster CLI - run and inspect multi-model football predictions.

Examples:
    tipster providers
    tipster predict m-123 --home Arsenal --away Chelsea --competition "Premier League"
    tipster health list
    tipster fallback-stats --days 7
"""

import logging
import os
from typing import Optional

import click

from tipster import __version__

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="Tipster")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: TIPSTER_LOG_LEVEL or INFO)")
def cli(log_level: Optional[str]):
    """
    Tipster - multi-model football prediction orchestration.
    """
    level_name = (log_level or os.getenv("TIPSTER_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


# Import command groups
from tipster.cli.commands import health, predict, providers, stats  # noqa: E402

cli.add_command(providers.providers)
cli.add_command(predict.predict)
cli.add_command(health.health)
cli.add_command(stats.fallback_stats)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
