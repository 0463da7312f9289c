"""Unit tests for the PlanRenderer — plan tables and deploy result panels."""

from __future__ import annotations

from collections.abc import Callable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ssrforge.models.plan import Plan
from ssrforge.models.site import DeployResult, SiteMetadata
from ssrforge.models.stages import StageState
from ssrforge.monitor.renderer import _STATE_ICONS, PlanRenderer


def _console() -> Console:
    return Console(record=True, force_terminal=False, width=140)


def _result(warnings: list[str] | None = None) -> DeployResult:
    return DeployResult(
        deploy_id="deploy-20260101-000000-abc",
        metadata=SiteMetadata(mode="placeholder", path="."),
        stage_states={
            "load_build": StageState.PASSED,
            "provision": StageState.SKIPPED,
        },
        warnings=warnings or [],
    )


class TestPlanRendering:
    def test_render_plan_returns_panel(self, make_plan: Callable[..., Plan]):
        panel = PlanRenderer(console=_console()).render_plan(make_plan())
        assert isinstance(panel, Panel)

    def test_behaviors_listed_in_order(self, make_plan: Callable[..., Plan]):
        console = _console()
        PlanRenderer(console=console).print_plan(make_plan(["robots.txt", "favicon.ico"]))
        text = console.export_text()
        assert text.index("robots.txt") < text.index("favicon.ico") < text.index("(default)")
        assert "regional" in text

    def test_edge_plan_summary(self, make_plan: Callable[..., Plan]):
        console = _console()
        PlanRenderer(console=console).print_plan(make_plan(edge_mode=True))
        text = console.export_text()
        assert "Mode: edge" in text
        assert "Edge functions: server" in text

    def test_function_names_whole_at_80_columns(self, make_plan: Callable[..., Plan]):
        console = Console(record=True, force_terminal=False, width=80)
        PlanRenderer(console=console).print_plan(
            make_plan(["favicon.ico", "assets/entry.client-abc123def456.js", "assets/*"])
        )
        text = console.export_text()
        assert "staticCfFunction" in text
        assert "serverCfFunction" in text
        assert "\u2026" not in text


class TestResultRendering:
    def test_render_stages(self):
        table = PlanRenderer(console=_console()).render_stages(
            {"load_build": StageState.PASSED, "provision": StageState.FAILED}
        )
        assert isinstance(table, Table)
        assert table.row_count == 2

    def test_every_state_has_icon(self):
        assert set(_STATE_ICONS) == set(StageState)

    def test_print_result_shows_warnings(self):
        console = _console()
        PlanRenderer(console=console).print_result(_result(["cache invalidation timed_out"]))
        text = console.export_text()
        assert "deploy-20260101-000000-abc" in text
        assert "Load Build Output" in text
        assert "cache invalidation timed_out" in text
