"""Site deployer — the central coordinator for one deploy.

Wires the build layout, plan builder, validator, provisioner, asset sync
and invalidation driver into the deploy stage graph:

    load_build -> build_plan -> validate_plan -> provision
        -> sync_assets -> invalidate

Stages up to ``validate_plan`` are pure and fail closed: nothing is
provisioned when they raise.  A provisioning or upload failure aborts the
deploy and blocks every later stage.  Invalidation fails open: a timeout
is recorded as a warning and the deploy still succeeds.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from ssrforge.compiler.builder import PlanBuilder
from ssrforge.compiler.bundle import write_server_bundle
from ssrforge.compiler.validator import validate_plan
from ssrforge.config import DeployConfig
from ssrforge.core.hasher import compute_stage_hash
from ssrforge.core.prerequisite_graph import PrerequisiteGraph
from ssrforge.core.stage_machine import StageMachine
from ssrforge.layouts import get_layout, load_build_metadata
from ssrforge.layouts.base import BuildLayout
from ssrforge.models.build import BuildMetadata
from ssrforge.models.plan import CacheBehaviorInjections, Plan
from ssrforge.models.site import (
    DeployResult,
    InvalidationResult,
    InvalidationStatus,
    ProvisionedSite,
    SiteMetadata,
)
from ssrforge.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState
from ssrforge.provisioning.adapter import Provisioner
from ssrforge.provisioning.engine import InMemoryEngine, ProvisioningEngine
from ssrforge.sync.assets import AssetSync
from ssrforge.sync.invalidation import InvalidationDriver

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SiteDeployer:
    """Compiles and deploys one SSR site.

    Parameters
    ----------
    engine:
        Provisioning backend.  Defaults to ``InMemoryEngine`` (dry run).
    config:
        Deploy configuration.  Uses env-driven defaults if not provided.
    layout:
        Build layout; defaults to ``config.layout``.
    injections:
        Extra CDN request-transform snippets per cache type.
    environment:
        Environment variables for the server function.
    transforms:
        Opaque per-resource overrides passed through to the engine.
    """

    def __init__(
        self,
        engine: ProvisioningEngine | None = None,
        *,
        config: DeployConfig | None = None,
        layout: BuildLayout | None = None,
        injections: CacheBehaviorInjections | None = None,
        environment: dict[str, str] | None = None,
        transforms: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.config = config or DeployConfig()
        self.layout = layout or get_layout(self.config.layout)
        self.engine: ProvisioningEngine = engine or InMemoryEngine()
        self.injections = injections
        self.graph = PrerequisiteGraph(DEFAULT_STAGE_DEFINITIONS)

        self.builder = PlanBuilder(
            self.layout,
            invalidation=self.config.invalidation_policy(),
            assets=self.config.asset_options(),
            environment=environment,
            transforms=transforms,
        )
        self.provisioner = Provisioner(self.engine, domain=self.config.domain)
        self.asset_sync = AssetSync(self.engine, concurrency=self.config.upload_concurrency)
        self.invalidation_driver = InvalidationDriver(
            self.engine,
            timeout_seconds=self.config.invalidation_timeout_seconds,
            poll_seconds=self.config.invalidation_poll_seconds,
        )

        # State of the most recent deploy
        self.stage_machine = StageMachine(self.graph)

    # ------------------------------------------------------------------
    # Plan compilation (pure stages)
    # ------------------------------------------------------------------

    def load_build(self, output_path: Path) -> BuildMetadata:
        return load_build_metadata(
            output_path, layout=self.layout, placeholder=self.config.dev_mode
        )

    def _validate(self, plan: Plan) -> Plan:
        return validate_plan(plan, max_cache_behaviors=self.config.max_cache_behaviors)

    def compile(self, output_path: Path) -> Plan:
        """Load, build and validate without provisioning anything."""
        metadata = self.load_build(output_path)
        plan = self.builder.build(metadata, self.config.edge, self.injections)
        return self._validate(plan)

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def _run_stage(
        self,
        stage_id: str,
        operation: Callable[[], T],
        payload: dict[str, Any] | None = None,
    ) -> T:
        """Run one stage through RUNNING -> PASSED | FAILED."""
        machine = self.stage_machine
        stage_hash = compute_stage_hash(stage_id, payload or {})
        machine.transition(stage_id, StageState.RUNNING, stage_hash=stage_hash)
        try:
            result = operation()
        except Exception as exc:
            machine.transition(stage_id, StageState.FAILED, stage_hash=stage_hash, reason=str(exc))
            logger.error(
                "%s [%s] failed: %s",
                self.graph.get_stage_definition(stage_id).display_name,
                stage_id,
                exc,
            )
            raise
        machine.transition(stage_id, StageState.PASSED, stage_hash=stage_hash)
        return result

    def _skip(self, *stage_ids: str) -> None:
        for stage_id in stage_ids:
            self.stage_machine.transition(stage_id, StageState.SKIPPED, reason="dev mode")

    def deploy(
        self,
        output_path: Path | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> DeployResult:
        """Run every deploy stage in order and return the result.

        Raises the first fatal error (``BuildOutputMissing``,
        ``PlanValidationError``, ``ProvisioningError``, ``AssetUploadError``);
        ``self.stage_machine`` then shows which stages failed or were
        blocked.
        """
        output_path = Path(output_path or self.config.site_path)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        deploy_id = f"deploy-{ts}-{uuid.uuid4().hex[:3]}"
        self.stage_machine = StageMachine(self.graph)
        logger.info("Deploy %s of %s started", deploy_id, output_path)

        metadata = self._run_stage(
            "load_build",
            lambda: self.load_build(output_path),
            {"path": str(output_path), "layout": self.layout.name, "dev": self.config.dev_mode},
        )
        plan = self._run_stage(
            "build_plan",
            lambda: self.builder.build(metadata, self.config.edge, self.injections),
            {"metadata": metadata.model_dump(mode="json"), "edge": self.config.edge},
        )
        fingerprint = plan.fingerprint()
        self._run_stage("validate_plan", lambda: self._validate(plan), {"plan": fingerprint})

        if self.config.dev_mode:
            self._skip("provision", "sync_assets", "invalidate")
            return DeployResult(
                deploy_id=deploy_id,
                plan_fingerprint=fingerprint,
                metadata=SiteMetadata(
                    mode="placeholder",
                    path=str(output_path),
                    edge_mode=plan.edge_mode,
                ),
                stage_states=self.stage_machine.get_all_states(),
            )

        site = self._run_stage(
            "provision",
            lambda: self._provision(plan, output_path),
            {"plan": fingerprint},
        )
        sync = self._run_stage(
            "sync_assets",
            lambda: self.asset_sync.sync(plan, site, output_path),
            {"plan": fingerprint, "bucket": site.asset_bucket.resource_id},
        )
        invalidation, warnings = self._invalidate(plan, site, cancel_event)

        server = site.server_function
        result = DeployResult(
            deploy_id=deploy_id,
            plan_fingerprint=fingerprint,
            site=site,
            sync=sync,
            invalidation=invalidation,
            metadata=SiteMetadata(
                mode="deployed",
                path=str(output_path),
                url=site.url,
                edge_mode=plan.edge_mode,
                server_function_arn=server.arn if server else None,
            ),
            stage_states=self.stage_machine.get_all_states(),
            warnings=warnings,
        )
        logger.info("Deploy %s finished — %s", deploy_id, site.url)
        return result

    def _provision(self, plan: Plan, output_path: Path) -> ProvisionedSite:
        function = plan.server_function
        if function is not None:
            write_server_bundle(function.bundle, output_path)
        return self.provisioner.provision(plan)

    def _invalidate(
        self,
        plan: Plan,
        site: ProvisionedSite,
        cancel_event: threading.Event | None,
    ) -> tuple[InvalidationResult | None, list[str]]:
        """Invalidation fails open when its stage says so: problems become warnings."""
        machine = self.stage_machine
        stage_hash = compute_stage_hash(
            "invalidate", {"paths": plan.invalidation.resolved_paths()}
        )
        machine.transition("invalidate", StageState.RUNNING, stage_hash=stage_hash)
        try:
            result = self.invalidation_driver.run(site, plan.invalidation, cancel_event)
        except Exception as exc:
            if not self.graph.get_stage_definition("invalidate").fail_open:
                machine.transition(
                    "invalidate", StageState.FAILED, stage_hash=stage_hash, reason=str(exc)
                )
                raise
            warning = f"cache invalidation failed: {exc}"
            logger.warning("%s", warning)
            machine.transition("invalidate", StageState.WARNED, stage_hash=stage_hash, reason=warning)
            return None, [warning]

        if result.status in (InvalidationStatus.TIMED_OUT, InvalidationStatus.CANCELLED):
            warning = f"cache invalidation {result.status.value} after {result.waited_seconds:.1f}s"
            machine.transition("invalidate", StageState.WARNED, stage_hash=stage_hash, reason=warning)
            return result, [warning]

        machine.transition("invalidate", StageState.PASSED, stage_hash=stage_hash)
        return result, []
