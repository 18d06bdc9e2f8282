"""Command-line interface for Bloggo.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the destination directory.
- clean: Remove the destination directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from . import __version__
from .errors import BuildError

LOG_ENV = "BLOGGO_LOG"


def _init_logging(verbose: bool) -> None:
    """Configure logging from BLOGGO_LOG, else INFO when verbose, else WARNING."""
    level = logging.INFO if verbose else logging.WARNING
    env_level = os.getenv(LOG_ENV)
    if env_level:
        level = logging.getLevelName(env_level.upper())
        if not isinstance(level, int):
            raise click.BadParameter(f"Unknown log level: {env_level}", param_hint=LOG_ENV)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _report_failure(exc: BuildError) -> None:
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if exc.source_path is not None:
        click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


@click.group()
@click.version_option(version=__version__, prog_name="bloggo")
@click.option(
    "-s",
    "--source",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("source"),
    show_default=True,
    help="Directory containing posts, templates and assets",
)
@click.option(
    "-o",
    "--dest",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory where output will be stored (overrides bloggo.yaml output_dir)",
)
@click.option("-v", "--verbose", is_flag=True, help="Provide verbose output")
@click.pass_context
def cli(ctx: click.Context, source: Path, dest: Path | None, verbose: bool):
    """Bloggo static site generator."""
    _init_logging(verbose)
    ctx.obj = {"source": source, "dest": dest}


@cli.command()
@click.option("--base-url", default=None, help="Base URL prefixed to every link")
@click.option("--clean", "clean_first", is_flag=True, help="Empty the destination first")
@click.pass_obj
def build(obj: dict, base_url: str | None, clean_first: bool):
    """Build static site pages."""
    from .build import build_site

    try:
        report = build_site(
            obj["source"],
            dest_dir=obj["dest"],
            overrides={"base_url": base_url},
            clean_output=clean_first,
        )
    except BuildError as exc:
        _report_failure(exc)
        raise SystemExit(1) from None
    click.echo(f"Built {report.pages_written} pages into {report.output_dir}")


@cli.command()
@click.pass_obj
def clean(obj: dict):
    """Clean destination directory."""
    from .build import clean as clean_output
    from .config import load_config

    try:
        dest = obj["dest"] or Path(load_config(obj["source"]).output_dir)
        removed = clean_output(dest)
    except BuildError as exc:
        _report_failure(exc)
        raise SystemExit(1) from None
    if removed:
        click.echo(f"Removed {dest}")
    else:
        click.echo(f"Nothing to clean at {dest}")


def main():
    """Main entry point for the CLI."""
    cli()
