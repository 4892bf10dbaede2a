"""Thin CLI wrapper for ci_models.

This module provides the command-line interface using Typer.
All business logic is delegated to the factories.
"""

import asyncio
import json
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from ci_models import __version__
from ci_models.config import get_settings, print_settings_json
from ci_models.datastore import SqlDatastore
from ci_models.db import get_engine

app = typer.Typer(
    name="ci-models",
    help="CI models - inspect pipelines, jobs and builds in the datastore",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ci-models version {__version__}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    """Send log records through rich at the given level."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _open_datastore() -> SqlDatastore:
    """Open the configured datastore, creating its tables if needed."""
    datastore = SqlDatastore(get_engine(get_settings().db_url))
    datastore.create_tables()
    return datastore


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """CI models - inspect pipelines, jobs and builds in the datastore."""
    _configure_logging(get_settings().log_level)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print(f"  Database URL:  {settings.db_url}")
        console.print(f"  UI URI:        {settings.ui_uri}")
        console.print(f"  API URI:       {settings.api_uri or '(not set)'}")
        console.print(f"  Log level:     {settings.log_level}")


db_app = typer.Typer(help="Manage the datastore")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Create the datastore tables."""
    datastore = _open_datastore()
    datastore.dispose()
    console.print("[green]Datastore tables created[/green]")


jobs_app = typer.Typer(help="Inspect jobs")
app.add_typer(jobs_app, name="jobs")


@jobs_app.command("show")
def jobs_show(
    job_id: Annotated[str, typer.Argument(help="Job ID to show")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show details of a job."""
    from ci_models.jobs.factory import JobFactory

    datastore = _open_datastore()
    try:
        job = asyncio.run(JobFactory(datastore).get(job_id))
    finally:
        datastore.dispose()

    if job is None:
        console.print(f"[red]Job not found: {job_id}[/red]")
        raise typer.Exit(code=1)

    if json_output:
        console.print(json.dumps(job.to_json(), indent=2))
        return

    console.print(f"[bold]{job.name}[/bold] ({job.id})")
    console.print(f"  Pipeline: {job.pipeline_id}")
    console.print(f"  State: {job.state}")
    for index, permutation in enumerate(job.permutations):
        commands = ", ".join(
            c.get("name", "?") for c in permutation.get("commands", [])
        )
        console.print(f"  Permutation {index}: {permutation.get('image')}")
        console.print(f"    Commands: {commands or '(none)'}")


@jobs_app.command("builds")
def jobs_builds(
    job_id: Annotated[str, typer.Argument(help="Job ID to list builds for")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List the builds of a job, oldest first."""
    from ci_models.builds.factory import BuildFactory

    settings = get_settings()
    datastore = _open_datastore()
    # Listing never starts builds, so no executor or scm plugin is needed
    factory = BuildFactory(
        datastore,
        executor=None,  # type: ignore[arg-type]
        ui_uri=settings.ui_uri,
        scm_plugin=None,  # type: ignore[arg-type]
    )
    try:
        builds = asyncio.run(factory.get_builds_for_job_id(job_id))
    finally:
        datastore.dispose()

    if not builds:
        if json_output:
            console.print("[]")
        else:
            console.print("[yellow]No builds found[/yellow]")
        return

    if json_output:
        console.print(json.dumps([b.to_json() for b in builds], indent=2))
        return

    console.print(f"[bold]Found {len(builds)} build(s):[/bold]")
    console.print()
    for b in builds:
        status_color = {
            "SUCCESS": "green",
            "FAILURE": "red",
            "RUNNING": "blue",
            "QUEUED": "yellow",
        }.get(b.status, "white")
        console.print(f"  [{status_color}]Build {b.number}[/{status_color}] ({b.id})")
        console.print(f"    Status: {b.status}")
        console.print(f"    Created: {b.create_time or 'N/A'}")
        console.print(f"    Cause: {b.cause or 'N/A'}")
        console.print(f"    Sha: {b.sha or 'N/A'}")
        steps = ", ".join(step["name"] for step in b.steps)
        console.print(f"    Steps: {steps or '(none)'}")
        console.print()


if __name__ == "__main__":
    app()
