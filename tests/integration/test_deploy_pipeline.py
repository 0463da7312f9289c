"""End-to-end integration tests — a full deploy through every stage.

These tests exercise the SiteDeployer, layouts, PlanBuilder, validator,
Provisioner, AssetSync and InvalidationDriver working together against
the in-memory engine.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from ssrforge.compiler.validator import PlanValidationError
from ssrforge.config import DeployConfig
from ssrforge.core.deployer import SiteDeployer
from ssrforge.layouts import RemixClassicLayout, load_build_metadata
from ssrforge.layouts.base import BuildOutputMissing
from ssrforge.models.plan import CacheBehaviorInjections
from ssrforge.models.site import InvalidationStatus
from ssrforge.models.stages import StageState
from ssrforge.provisioning import InMemoryEngine, ProvisioningError


class TestFullDeploy:
    """Happy path: load -> plan -> validate -> provision -> sync -> invalidate."""

    @pytest.fixture
    def deployer(self, make_config: Callable[..., DeployConfig]) -> SiteDeployer:
        return SiteDeployer(InMemoryEngine(), config=make_config())

    def test_all_stages_pass(self, deployer: SiteDeployer, vite_site: Path):
        result = deployer.deploy(vite_site)
        assert result.succeeded
        assert set(result.stage_states.values()) == {StageState.PASSED}
        assert result.warnings == []

    def test_result_metadata(self, deployer: SiteDeployer, vite_site: Path):
        result = deployer.deploy(vite_site)
        assert result.deploy_id.startswith("deploy-")
        assert result.metadata.mode == "deployed"
        assert result.metadata.url == result.site.url
        assert result.metadata.server_function_arn == result.site.server_function.arn
        assert result.metadata.path == str(vite_site)
        assert result.model_dump(by_alias=True)["_metadata"]["mode"] == "deployed"

    def test_fingerprint_matches_compiled_plan(self, deployer: SiteDeployer, vite_site: Path):
        plan = deployer.compile(vite_site)
        result = deployer.deploy(vite_site)
        assert result.plan_fingerprint == plan.fingerprint()

    def test_assets_uploaded(self, deployer: SiteDeployer, vite_site: Path):
        result = deployer.deploy(vite_site)
        stored = deployer.engine.objects[result.site.asset_bucket.resource_id]
        assert set(stored) == {
            "favicon.ico",
            "assets/entry.client-abc123.js",
            "assets/root-def456.css",
        }
        assert result.sync.non_versioned_count == 3

    def test_server_bundle_written(self, deployer: SiteDeployer, vite_site: Path):
        deployer.deploy(vite_site)
        entry = (vite_site / "build" / "server.mjs").read_text(encoding="utf-8")
        assert 'import * as serverBuild from "./server/index.js";' in entry
        assert (vite_site / "build" / "polyfill.mjs").is_file()

    def test_invalidation_submitted_without_wait(self, deployer: SiteDeployer, vite_site: Path):
        result = deployer.deploy(vite_site)
        assert result.invalidation.status == InvalidationStatus.SUBMITTED
        assert result.invalidation.paths == ["/*"]

    def test_transitions_recorded_in_order(self, deployer: SiteDeployer, vite_site: Path):
        deployer.deploy(vite_site)
        started = [
            t.stage_id for t in deployer.stage_machine.transitions
            if t.to_state == StageState.RUNNING
        ]
        assert started == [
            "load_build",
            "build_plan",
            "validate_plan",
            "provision",
            "sync_assets",
            "invalidate",
        ]
        assert all(t.stage_hash for t in deployer.stage_machine.transitions)


class TestDeployModes:
    def test_edge_deploy(self, make_config: Callable[..., DeployConfig], vite_site: Path):
        engine = InMemoryEngine()
        result = SiteDeployer(engine, config=make_config(edge=True)).deploy(vite_site)
        assert result.succeeded
        assert result.metadata.edge_mode is True
        assert result.site.server_functions == []
        assert "server" in result.site.edge_functions
        entry = (vite_site / "build" / "server.mjs").read_text(encoding="utf-8")
        assert "event.Records[0].cf.request" in entry

    def test_classic_layout(self, make_config: Callable[..., DeployConfig], classic_site: Path):
        result = SiteDeployer(
            config=make_config(layout="remix-classic")
        ).deploy(classic_site)
        assert result.sync.versioned_count == 2
        assert result.sync.non_versioned_count == 2

    def test_custom_domain(self, make_config: Callable[..., DeployConfig], vite_site: Path):
        result = SiteDeployer(config=make_config(domain="my-app.com")).deploy(vite_site)
        assert result.metadata.url == "https://my-app.com"

    def test_dev_mode_placeholder(self, make_config: Callable[..., DeployConfig], tmp_path: Path):
        engine = InMemoryEngine()
        result = SiteDeployer(engine, config=make_config(dev_mode=True)).deploy(tmp_path)
        assert result.metadata.mode == "placeholder"
        assert result.metadata.url is None
        assert result.site is None
        assert result.succeeded
        assert result.stage_states["provision"] == StageState.SKIPPED
        assert engine.calls == []

    def test_injections_reach_distribution(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine()
        injections = CacheBehaviorInjections(server=("// custom",))
        result = SiteDeployer(engine, config=make_config(), injections=injections).deploy(vite_site)
        recorded = engine.distributions[result.site.distribution.resource_id]
        assert "// custom" in recorded["cdn_functions"]["serverCfFunction"].code


    def test_many_static_files(self, make_config: Callable[..., DeployConfig], tmp_path: Path):
        client = tmp_path / "build" / "client"
        client.mkdir(parents=True)
        for i in range(26):
            (client / f"file-{i:02d}.txt").write_text("x", encoding="utf-8")
        result = SiteDeployer(config=make_config()).deploy(tmp_path)
        assert result.succeeded
        assert result.sync.non_versioned_count == 26

    def test_dev_mode_goes_through_layout_loader(
        self,
        make_config: Callable[..., DeployConfig],
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        seen = []

        def _load(output_path, uses_vite=True, *, layout=None, placeholder=False):
            seen.append((output_path, layout, placeholder))
            return load_build_metadata(output_path, layout=layout, placeholder=placeholder)

        monkeypatch.setattr("ssrforge.core.deployer.load_build_metadata", _load)
        layout = RemixClassicLayout()
        deployer = SiteDeployer(config=make_config(dev_mode=True), layout=layout)
        plan = deployer.compile(tmp_path)
        assert seen == [(tmp_path, layout, True)]
        assert plan.server_function is not None


class TestDeployFailures:
    def test_missing_build_blocks_everything(
        self, make_config: Callable[..., DeployConfig], tmp_path: Path
    ):
        engine = InMemoryEngine()
        deployer = SiteDeployer(engine, config=make_config())
        with pytest.raises(BuildOutputMissing):
            deployer.deploy(tmp_path)
        states = deployer.stage_machine.get_all_states()
        assert states["load_build"] == StageState.FAILED
        assert states["provision"] == StageState.BLOCKED
        assert engine.calls == []

    def test_invalid_plan_provisions_nothing(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine()
        injections = CacheBehaviorInjections(static=("// " + "x" * 20000,))
        deployer = SiteDeployer(engine, config=make_config(), injections=injections)
        with pytest.raises(PlanValidationError):
            deployer.deploy(vite_site)
        assert deployer.stage_machine.get_state("validate_plan") == StageState.FAILED
        assert engine.calls == []
        assert not (vite_site / "build" / "server.mjs").exists()

    def test_behavior_quota_provisions_nothing(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine()
        deployer = SiteDeployer(engine, config=make_config(max_cache_behaviors=1))
        with pytest.raises(PlanValidationError, match="at most 1"):
            deployer.deploy(vite_site)
        assert deployer.stage_machine.get_state("provision") == StageState.BLOCKED
        assert engine.calls == []

    def test_provisioning_failure_aborts(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine(reject={"distribution": "certificate not found"})
        deployer = SiteDeployer(engine, config=make_config())
        with pytest.raises(ProvisioningError):
            deployer.deploy(vite_site)
        states = deployer.stage_machine.get_all_states()
        assert states["provision"] == StageState.FAILED
        assert states["sync_assets"] == StageState.BLOCKED
        assert states["invalidate"] == StageState.BLOCKED
        assert engine.objects and all(not objects for objects in engine.objects.values())


class TestInvalidationFailOpen:
    def test_wait_completes(self, make_config: Callable[..., DeployConfig], vite_site: Path):
        engine = InMemoryEngine(polls_until_complete=1)
        result = SiteDeployer(engine, config=make_config(invalidation_wait=True)).deploy(vite_site)
        assert result.invalidation.status == InvalidationStatus.COMPLETED
        assert result.stage_states["invalidate"] == StageState.PASSED

    def test_timeout_is_a_warning(self, make_config: Callable[..., DeployConfig], vite_site: Path):
        engine = InMemoryEngine(polls_until_complete=None)
        result = SiteDeployer(engine, config=make_config(invalidation_wait=True)).deploy(vite_site)
        assert result.invalidation.status == InvalidationStatus.TIMED_OUT
        assert result.stage_states["invalidate"] == StageState.WARNED
        assert result.succeeded
        assert len(result.warnings) == 1
        assert "timed_out" in result.warnings[0]

    def test_cancelled_wait_is_a_warning(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine(polls_until_complete=None)
        event = threading.Event()
        event.set()
        deployer = SiteDeployer(engine, config=make_config(invalidation_wait=True))
        result = deployer.deploy(vite_site, cancel_event=event)
        assert result.invalidation.status == InvalidationStatus.CANCELLED
        assert result.stage_states["invalidate"] == StageState.WARNED
        assert sum(1 for op, _ in engine.calls if op == "invalidate") == 1

    def test_engine_error_is_a_warning(
        self, make_config: Callable[..., DeployConfig], vite_site: Path
    ):
        engine = InMemoryEngine()
        deployer = SiteDeployer(engine, config=make_config())

        def failing_invalidate(distribution, paths):
            raise ConnectionError("throttled")

        engine.invalidate = failing_invalidate
        result = deployer.deploy(vite_site)
        assert result.invalidation is None
        assert result.stage_states["invalidate"] == StageState.WARNED
        assert "throttled" in result.warnings[0]
