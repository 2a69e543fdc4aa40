"""Build the pipeline for CLI commands, turning config errors into clean exits."""

import click

from tipster.bootstrap import Pipeline, build_pipeline
from tipster.core.errors import ConfigurationError


def load_pipeline() -> Pipeline:
    try:
        return build_pipeline()
    except ConfigurationError as e:
        raise click.ClickException(e.message)
