"""``ssrforge inspect`` — show what the loader sees in a build output."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ssrforge.cli.commands._options import resolve_config
from ssrforge.core.errors import SsrForgeError
from ssrforge.core.deployer import SiteDeployer

console = Console()


def inspect_cmd(
    path: Path = typer.Argument(Path("."), help="Site directory containing the build output."),
    layout: str = typer.Option(None, "--layout", "-l", help="Build layout name."),
    dev: bool = typer.Option(None, "--dev/--no-dev", help="Use placeholder metadata."),
) -> None:
    """Print the build metadata derived from the build output."""
    cfg = resolve_config(site_path=path, layout=layout, dev_mode=dev)
    try:
        deployer = SiteDeployer(config=cfg)
        metadata = deployer.load_build(cfg.site_path)
    except (SsrForgeError, KeyError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=f"Build output ({deployer.layout.name})", header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Static route")
    for i, route in enumerate(metadata.static_routes):
        table.add_row(str(i), route)

    console.print(f"[bold]Assets path:[/bold]   {metadata.assets_path}")
    console.print(
        f"[bold]Versioned dir:[/bold] {metadata.assets_versioned_sub_dir or '[dim]-[/dim]'}"
    )
    if metadata.is_placeholder:
        console.print("[yellow]Placeholder metadata (dev mode)[/yellow]")
    console.print(table)
