"""Main Typer application — imports and registers all CLI commands.

Entry point: ``ssrforge`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from ssrforge.cli.commands.deploy_cmd import deploy_cmd
from ssrforge.cli.commands.inspect_cmd import inspect_cmd
from ssrforge.cli.commands.plan_cmd import plan_cmd
from ssrforge.config import config

app = typer.Typer(
    name="ssrforge",
    help="ssrforge: compile SSR build output into a CDN deployment plan.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level, "--log-level", help="Logging level (DEBUG, INFO, WARNING...)."
    ),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=config.debug, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="inspect", help="Show the build metadata of a build output.")(inspect_cmd)
app.command(name="plan", help="Compile and validate a deployment plan.")(plan_cmd)
app.command(name="deploy", help="Deploy a built site (in-memory dry run).")(deploy_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
