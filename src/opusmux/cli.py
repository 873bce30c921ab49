"""Command-line interface for opusmux."""

import shlex
import sys
from pathlib import Path

import click

from opusmux import __version__
from opusmux.config import load_config
from opusmux.core.pipeline import Pipeline
from opusmux.models.result import ProcessResult
from opusmux.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (defaults to built-in defaults)",
)
@click.pass_context
def cli(ctx, config):
    """opusmux - transcode surround audio tracks to Opus and remux."""
    try:
        cfg = load_config(config)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg

        setup_logging(cfg.logging)

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


def _report(result: ProcessResult) -> None:
    for warning in result.warnings:
        click.secho(f"  ! {warning}", fg="yellow")

    if result.status == "success":
        click.secho(f"✓ {result}", fg="green")
        sys.exit(0)
    elif result.status == "dry_run":
        click.secho(f"⊙ {result}", fg="cyan")
        click.echo(shlex.join(result.mux_command))
        if result.artifacts:
            click.secho(
                "  Note: transcoded track paths point into a temporary workspace "
                "that has already been removed",
                fg="yellow",
            )
        sys.exit(0)
    else:
        click.secho(f"✗ {result}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Container to process",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Container to write",
)
@click.option(
    "--downmix/--no-downmix",
    default=None,
    help="Downmix 5.1/7.1 tracks to stereo (default from config)",
)
@click.option("--dry-run", is_flag=True, default=False, help="Plan only, do not encode or mux")
@click.pass_context
def process(ctx, input_path, output_path, downmix, dry_run):
    """Transcode the audio tracks of one container."""
    config = ctx.obj["config"]
    if dry_run:
        config.execution.dry_run = True

    click.echo(f"Processing: {input_path}")

    result = Pipeline(config).process(input_path, output_path, downmix)
    _report(result)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Container to inspect",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Container the mux command would write",
)
@click.option(
    "--downmix/--no-downmix",
    default=None,
    help="Plan a stereo downmix of 5.1/7.1 tracks (default from config)",
)
@click.pass_context
def plan(ctx, input_path, output_path, downmix):
    """Show the mkvmerge command without transcoding anything."""
    config = ctx.obj["config"]
    config.execution.dry_run = True

    result = Pipeline(config).process(input_path, output_path, downmix)
    _report(result)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"opusmux v{__version__}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
