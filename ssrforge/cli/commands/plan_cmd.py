"""``ssrforge plan`` — compile and validate a deployment plan."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ssrforge.cli.commands._options import resolve_config
from ssrforge.compiler.validator import PlanValidationError
from ssrforge.core.deployer import SiteDeployer
from ssrforge.core.errors import SsrForgeError
from ssrforge.monitor.renderer import PlanRenderer

console = Console()


def plan_cmd(
    path: Path = typer.Argument(Path("."), help="Site directory containing the build output."),
    layout: str = typer.Option(None, "--layout", "-l", help="Build layout name."),
    edge: bool = typer.Option(None, "--edge/--regional", help="Deploy the server to the edge."),
    dev: bool = typer.Option(None, "--dev/--no-dev", help="Use placeholder metadata."),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON."),
) -> None:
    """Compile the build output into a validated deployment plan."""
    cfg = resolve_config(site_path=path, layout=layout, edge=edge, dev_mode=dev)
    try:
        plan = SiteDeployer(config=cfg).compile(cfg.site_path)
    except PlanValidationError as exc:
        console.print("[bold red]Plan is invalid:[/bold red]")
        for violation in exc.violations:
            console.print(f"  - {violation}")
        raise typer.Exit(code=1)
    except (SsrForgeError, KeyError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(plan.model_dump_json())
        return
    PlanRenderer(console=console).print_plan(plan)
