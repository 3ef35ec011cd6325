"""Main CLI application for the scoring committee engine."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

import click

from ...application.services.scoring.factory import create_scoring_pipeline
from ...application.services.scoring.scoring_pipeline import ScoringOutcome
from ...domain.scoring.entities.attempt import Attempt
from ...domain.scoring.entities.rubric import Rubric
from ...domain.scoring.exceptions import ScoringDomainError
from ...domain.scoring.services.payload_validator import PayloadValidator
from ...domain.scoring.services.prompt_builder import PromptBuilder
from ...domain.scoring.value_objects.committee import CommitteeConfig
from ...infrastructure.performance.config import ScoringEngineConfig
from .utils.formatters import OUTPUT_FORMATS, format_output, format_score_summary
from .utils.logging_setup import level_for, setup_logging

__version__ = "1.0.0"


class CLIContext:
    """Global CLI context."""

    def __init__(self):
        self.verbose = False
        self.debug = False
        self._config = None

    @property
    def config(self) -> ScoringEngineConfig:
        if self._config is None:
            self._config = ScoringEngineConfig.from_env()
        return self._config


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_committee(path: str) -> CommitteeConfig:
    """Committee file holds a list of scorers or an object with a `committee` list."""
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("committee", [])
    return CommitteeConfig.from_list(data)


async def run_scoring(
    config: ScoringEngineConfig, attempt: Attempt, rubric: Rubric, committee: CommitteeConfig
) -> ScoringOutcome:
    pipeline = create_scoring_pipeline(config)
    try:
        return await pipeline.score(attempt, rubric, committee)
    finally:
        await pipeline.close()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also log to a rotating file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, verbose, debug, log_file):
    """
    Scoring Committee Engine CLI

    Score exam attempts with a committee of language-model scorers and
    inspect the engine configuration.

    Examples:
        scoring-engine score attempt.json rubric.json committee.json
        scoring-engine validate attempt.json --rubric rubric.json --show-prompt
        scoring-engine config --format yaml
    """
    ctx.ensure_object(CLIContext)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    setup_logging(level_for(verbose, debug), log_file=log_file)


@cli.command()
@click.argument("attempt_json", type=click.Path(exists=True, dir_okay=False))
@click.argument("rubric_json", type=click.Path(exists=True, dir_okay=False))
@click.argument("committee_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS + ("summary",)),
    default="json",
    help="Output format",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the outcome to a file")
@pass_context
def score(ctx, attempt_json, rubric_json, committee_json, output_format, output):
    """Score ATTEMPT_JSON against RUBRIC_JSON with the scorers in COMMITTEE_JSON."""
    try:
        attempt = Attempt.from_dict(load_json(attempt_json))
        rubric = Rubric.from_dict(load_json(rubric_json))
        committee = load_committee(committee_json)
        outcome = asyncio.run(run_scoring(ctx.config, attempt, rubric, committee))
    except ScoringDomainError as e:
        click.echo(f"Scoring failed: {e.message}", err=True)
        sys.exit(1)
    except (OSError, ValueError, KeyError, TypeError) as e:
        click.echo(f"Error reading input: {e}", err=True)
        sys.exit(1)

    result: Dict[str, Any] = outcome.to_dict()
    if output_format == "summary":
        rendered = format_score_summary(result)
    else:
        rendered = format_output(result, output_format)

    if output:
        Path(output).write_text(rendered + "\n", encoding="utf-8")
        click.echo(f"Outcome written to {output}")
    else:
        click.echo(rendered)


@cli.command()
@click.argument("attempt_json", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--rubric",
    "rubric_json",
    type=click.Path(exists=True, dir_okay=False),
    help="Rubric to build the scoring prompt with",
)
@click.option("--show-prompt", is_flag=True, help="Print the rendered prompt")
def validate(attempt_json, rubric_json, show_prompt):
    """Validate ATTEMPT_JSON without calling any scorer backend."""
    try:
        attempt = Attempt.from_dict(load_json(attempt_json))
        PayloadValidator().validate(attempt)

        prompt = None
        if rubric_json:
            prompt = PromptBuilder().build_prompt(attempt, Rubric.from_dict(load_json(rubric_json)))
    except ScoringDomainError as e:
        click.echo(f"Invalid attempt: {e.message}", err=True)
        sys.exit(1)
    except (OSError, ValueError, KeyError, TypeError) as e:
        click.echo(f"Error reading input: {e}", err=True)
        sys.exit(1)

    click.echo(f"Attempt {attempt.attempt_id} ({attempt.task.value}) is valid")
    if prompt is not None and show_prompt:
        click.echo(prompt)


@cli.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="json",
    help="Output format",
)
@pass_context
def config(ctx, output_format):
    """Show the effective engine configuration, without secrets."""
    click.echo(format_output(ctx.config.to_dict(), output_format))


def main():
    """Entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
