"""``ssrforge deploy`` — run the full deploy pipeline.

The CLI drives the in-memory engine, so a deploy from the command line is
a dry run: it compiles, validates, writes the server bundle, walks the
provisioning order and classifies every asset, without touching a cloud
account.  Real backends are plugged in through ``SiteDeployer(engine=...)``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ssrforge.cli.commands._options import resolve_config
from ssrforge.core.deployer import SiteDeployer
from ssrforge.core.errors import SsrForgeError
from ssrforge.monitor.renderer import PlanRenderer
from ssrforge.provisioning.engine import InMemoryEngine

console = Console()


def deploy_cmd(
    path: Path = typer.Argument(Path("."), help="Site directory containing the build output."),
    layout: str = typer.Option(None, "--layout", "-l", help="Build layout name."),
    edge: bool = typer.Option(None, "--edge/--regional", help="Deploy the server to the edge."),
    dev: bool = typer.Option(None, "--dev/--no-dev", help="Use placeholder metadata."),
    domain: str = typer.Option(None, "--domain", help="Custom domain for the site URL."),
    wait: bool = typer.Option(None, "--wait/--no-wait", help="Wait for cache invalidation."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Deploy a built site (dry run against the in-memory engine)."""
    cfg = resolve_config(
        site_path=path,
        layout=layout,
        edge=edge,
        dev_mode=dev,
        domain=domain,
        invalidation_wait=wait,
    )
    renderer = PlanRenderer(console=console)
    try:
        deployer = SiteDeployer(InMemoryEngine(), config=cfg)
    except KeyError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    try:
        result = deployer.deploy(cfg.site_path)
    except SsrForgeError as exc:
        console.print(f"[bold red]Deploy failed:[/bold red] {exc}")
        console.print(renderer.render_stages(deployer.stage_machine.get_all_states()))
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(result.model_dump_json(by_alias=True))
        return
    renderer.print_result(result)
