"""Shared test fixtures for ssrforge."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from ssrforge.compiler.builder import PlanBuilder
from ssrforge.config import DeployConfig
from ssrforge.core.prerequisite_graph import PrerequisiteGraph
from ssrforge.core.stage_machine import StageMachine
from ssrforge.layouts.remix import RemixViteLayout
from ssrforge.models.build import BuildMetadata
from ssrforge.models.plan import Plan
from ssrforge.models.stages import DEFAULT_STAGE_DEFINITIONS
from ssrforge.provisioning.engine import InMemoryEngine


def _write(path: Path, content: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def graph() -> PrerequisiteGraph:
    """Provide a PrerequisiteGraph with the default deploy stages."""
    return PrerequisiteGraph(DEFAULT_STAGE_DEFINITIONS)


@pytest.fixture
def stage_machine(graph: PrerequisiteGraph) -> StageMachine:
    return StageMachine(graph)


@pytest.fixture
def engine() -> InMemoryEngine:
    """Provide a fresh recording engine."""
    return InMemoryEngine()


# ---------------------------------------------------------------------------
# Build output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def vite_site(tmp_path: Path) -> Path:
    """A Remix Vite build: build/client/{favicon.ico, assets/...}."""
    site = tmp_path / "vite-site"
    _write(site / "build/client/favicon.ico", "icon")
    _write(site / "build/client/assets/entry.client-abc123.js", "console.log('hi');")
    _write(site / "build/client/assets/root-def456.css", "body{}")
    _write(site / "build/server/index.js", "export const routes = {};")
    return site


@pytest.fixture
def classic_site(tmp_path: Path) -> Path:
    """A classic Remix build: public/ with a content-hashed build/ folder."""
    site = tmp_path / "classic-site"
    _write(site / "public/favicon.ico", "icon")
    _write(site / "public/robots.txt", "User-agent: *")
    _write(site / "public/build/entry.client-abc123.js", "console.log('hi');")
    _write(site / "public/build/_shared/chunk-789.js", "export {};")
    _write(site / "build/index.js", "export const routes = {};")
    return site


@pytest.fixture
def vite_metadata() -> BuildMetadata:
    return BuildMetadata(
        assets_path=RemixViteLayout.assets_path,
        static_routes=["favicon.ico", "assets/*"],
    )


@pytest.fixture
def make_plan() -> Callable[..., Plan]:
    """Factory fixture: build a plan for the Vite layout."""

    def _factory(
        static_routes: list[str] | None = None,
        edge_mode: bool = False,
        **builder_options,
    ) -> Plan:
        metadata = BuildMetadata(
            assets_path=RemixViteLayout.assets_path,
            static_routes=["favicon.ico", "assets/*"] if static_routes is None else static_routes,
        )
        return PlanBuilder(RemixViteLayout(), **builder_options).build(metadata, edge_mode)

    return _factory


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., DeployConfig]:
    """Factory fixture: a DeployConfig isolated from the process environment."""

    def _factory(**overrides) -> DeployConfig:
        values = {
            "site_path": tmp_path,
            "invalidation_poll_seconds": 0.0,
            "invalidation_timeout_seconds": 0.05,
        }
        values.update(overrides)
        return DeployConfig(_env_file=None, **values)

    return _factory

