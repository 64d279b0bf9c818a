"""Command-line interface for Forge.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site into the output directory.
- serve: Run development server with live reload.
- clean: Remove the output directory and the build cache.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click

from . import __version__
from .cache import CACHE_DIR
from .config import load_config
from .errors import ContentError, ForgeError, TemplateRenderError


def _fail(exc: ForgeError) -> None:
    """Print a build failure and exit with status 1."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, ContentError):
        click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    elif isinstance(exc, TemplateRenderError):
        click.echo(click.style(f"  Template: {exc.template}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    else:
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="forge")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Forge static site generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--force", is_flag=True, help="Ignore the build cache")
def build(drafts: bool, force: bool):
    """Build the site into the output directory."""
    from .build import build_site

    site_dir = Path.cwd()
    try:
        result = build_site(site_dir, drafts=drafts, force=force)
    except ForgeError as exc:
        _fail(exc)
        return
    site = result.site
    click.echo(
        f"Built {len(site.posts)} posts and {len(site.pages)} pages into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides forge.yaml)",
)
def serve(drafts: bool, port: int | None):
    """Run dev server with live reload."""
    from .server import DevServer

    site_dir = Path.cwd()
    try:
        config = load_config(site_dir)
    except ForgeError as exc:
        _fail(exc)
        return
    server = DevServer(site_dir, config, port=port, include_drafts=drafts)
    server.start()


@cli.command()
def clean():
    """Remove the output directory and the build cache."""
    site_dir = Path.cwd()
    try:
        config = load_config(site_dir)
    except ForgeError as exc:
        _fail(exc)
        return
    for target in (site_dir / config.build.output_dir, site_dir / CACHE_DIR):
        if target.exists():
            shutil.rmtree(target)
            click.echo(f"Removed {target}")


def main():
    """Entry point for the CLI application."""
    cli()
