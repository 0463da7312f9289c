"""Rich terminal renderer for plans and deploy results.

Color scheme
------------
- green     : PASSED, static behaviors
- yellow    : WARNED, server behaviors
- bold red  : FAILED, BLOCKED
- dim       : NOT_STARTED, SKIPPED
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ssrforge.models.plan import CacheType, Plan, ServerOrigin
from ssrforge.models.site import DeployResult
from ssrforge.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATE_ICONS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
    StageState.WARNED: "[yellow]WARNED[/yellow]",
    StageState.SKIPPED: "[dim]SKIPPED[/dim]",
    StageState.BLOCKED: "[bold red]BLOCKED[/bold red]",
}

_CACHE_TYPE_STYLES: dict[CacheType, str] = {
    CacheType.STATIC: "green",
    CacheType.SERVER: "yellow",
}

_DISPLAY_NAMES = {sd.stage_id: sd.display_name for sd in DEFAULT_STAGE_DEFINITIONS}


class PlanRenderer:
    """Renders plans and deploy results as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def render_plan(self, plan: Plan) -> Panel:
        """Render a plan's behaviors in evaluation order, with a summary."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        # Only the pattern column may wrap; names stay whole on narrow terminals.
        table.add_column("Type", no_wrap=True)
        table.add_column("Pattern", overflow="fold")
        table.add_column("Origin", no_wrap=True)
        table.add_column("Edge Fn", no_wrap=True)
        table.add_column("CDN Fn", no_wrap=True)

        for i, behavior in enumerate(plan.behaviors):
            style = _CACHE_TYPE_STYLES[behavior.cache_type]
            table.add_row(
                str(i),
                f"[{style}]{behavior.cache_type.value}[/{style}]",
                behavior.pattern or "[dim]* (default)[/dim]",
                behavior.origin,
                behavior.edge_function or "[dim]-[/dim]",
                behavior.cdn_function or "[dim]-[/dim]",
            )

        origins = ", ".join(
            f"{name} ({'function' if isinstance(o, ServerOrigin) else 'storage'})"
            for name, o in plan.origins.items()
        )
        summary = "  |  ".join([
            f"[bold]Mode:[/bold] {'edge' if plan.edge_mode else 'regional'}",
            f"[bold]Origins:[/bold] {origins}",
            f"[bold]Edge functions:[/bold] {', '.join(plan.edge_functions) or '-'}",
            f"[bold]Invalidation:[/bold] {', '.join(plan.invalidation.resolved_paths())}"
            + (" (wait)" if plan.invalidation.wait else ""),
        ])
        return Panel(
            Group(table, Text(""), Text.from_markup(summary)),
            title="[bold]Deployment Plan[/bold]",
            subtitle=plan.fingerprint()[:19],
            border_style="blue",
            padding=(1, 2),
        )

    def print_plan(self, plan: Plan) -> None:
        self.console.print(self.render_plan(plan))

    # ------------------------------------------------------------------
    # Deploy results
    # ------------------------------------------------------------------

    def render_stages(self, states: dict[str, StageState]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Stage", min_width=22)
        table.add_column("State", min_width=12, justify="center")
        for i, (stage_id, state) in enumerate(states.items()):
            table.add_row(
                str(i),
                _DISPLAY_NAMES.get(stage_id, stage_id),
                _STATE_ICONS.get(state, state.value),
            )
        return table

    def render_result(self, result: DeployResult) -> Panel:
        summary_parts = [
            f"[bold]Deploy:[/bold] {result.deploy_id}",
            f"[bold]Mode:[/bold] {result.metadata.mode}",
            f"[bold]URL:[/bold] {result.metadata.url or '-'}",
        ]
        if result.sync is not None:
            summary_parts.append(
                f"[bold]Assets:[/bold] {result.sync.versioned_count} versioned, "
                f"{result.sync.non_versioned_count} non-versioned"
            )
        if result.invalidation is not None:
            summary_parts.append(
                f"[bold]Invalidation:[/bold] {result.invalidation.status.value}"
            )
        parts: list = [self.render_stages(result.stage_states), Text(""),
                       Text.from_markup("  |  ".join(summary_parts))]
        for warning in result.warnings:
            parts.append(Text.from_markup(f"[yellow]warning:[/yellow] {warning}"))
        return Panel(
            Group(*parts),
            title="[bold]ssrforge deploy[/bold]",
            border_style="green" if result.succeeded and not result.warnings else "yellow",
            padding=(1, 2),
        )

    def print_result(self, result: DeployResult) -> None:
        self.console.print(self.render_result(result))
