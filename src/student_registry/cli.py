"""CLI entry point for Student Registry."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click
import uvicorn

from student_registry import __version__
from student_registry.config import CONFIG_ENV, ConfigError, load_settings
from student_registry.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="student-registry")
def main() -> None:
    """Student Registry - manage student records in a hosted database."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a YAML settings file (default: environment only)",
)
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", type=int, default=8000, show_default=True, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Restart the server when code changes")
def serve(config_path: Path | None, host: str, port: int, reload: bool) -> None:
    """Run the web application."""
    if config_path is not None:
        # The app factory runs in the server process and reads this
        os.environ[CONFIG_ENV] = str(config_path.resolve())

    try:
        settings = load_settings()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(settings.logging)

    click.echo(f"Serving {settings.app.title} on http://{host}:{port}")
    uvicorn.run(
        "student_registry.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@main.command("check-config")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a YAML settings file",
)
def check_config(config_path: Path | None) -> None:
    """Validate settings and print the resolved backend."""
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Backend: {settings.backend.url}")
    click.echo(f"Students table: {settings.backend.students_table}")
    click.echo(f"Log level: {settings.logging.level}")


if __name__ == "__main__":
    main()
