"""Provisioning adapter — interprets a validated plan against an engine.

The adapter decides nothing about *what* to create; it walks the plan in
dependency order:

    storage origins + server functions  ->  distribution

Behavior order is passed through untouched: it is routing semantics, not
an optimisation target.  Engine failures are wrapped in
``ProvisioningError`` naming the resource and are never retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from ssrforge.core.errors import SsrForgeError
from ssrforge.models.plan import Plan
from ssrforge.models.site import ProvisionedSite, ResourceHandle
from ssrforge.provisioning.engine import ProvisioningEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProvisioningError(SsrForgeError):
    """Raised when the engine rejects an upsert."""

    def __init__(self, resource_kind: str, resource_name: str, cause: Exception) -> None:
        self.resource_kind = resource_kind
        self.resource_name = resource_name
        self.cause = cause
        super().__init__(
            f"Provisioning {resource_kind} {resource_name!r} failed: {cause}"
        )


class Provisioner:
    """Drives resource creation for one plan.

    Parameters
    ----------
    engine:
        The provisioning backend.
    domain:
        Custom domain; when set the site URL uses it instead of the
        distribution's generated URL.
    """

    def __init__(self, engine: ProvisioningEngine, *, domain: str | None = None) -> None:
        self.engine = engine
        self.domain = domain

    def _call(
        self, kind: str, name: str, operation: Callable[[], T]
    ) -> T:
        try:
            return operation()
        except Exception as exc:
            logger.error("Engine rejected %s %r: %s", kind, name, exc)
            raise ProvisioningError(kind, name, exc) from exc

    def provision(self, plan: Plan) -> ProvisionedSite:
        """Create or update every resource in *plan* and return their handles."""
        origin_refs: dict[str, ResourceHandle] = {}
        server_functions: list[ResourceHandle] = []
        edge_functions: dict[str, ResourceHandle] = {}

        # (a) Resources the distribution depends on
        for origin in plan.storage_origins:
            origin_refs[origin.name] = self._call(
                "storage origin",
                origin.name,
                lambda origin=origin: self.engine.upsert_storage_origin(origin),
            )
        for origin in plan.server_origins:
            handle = self._call(
                "function",
                origin.function.name,
                lambda origin=origin: self.engine.upsert_compute_function(
                    origin.function, edge=False
                ),
            )
            origin_refs[origin.name] = handle
            server_functions.append(handle)
        for name, function in plan.edge_functions.items():
            edge_functions[name] = self._call(
                "edge function",
                name,
                lambda function=function: self.engine.upsert_compute_function(
                    function, edge=True
                ),
            )

        # (b) The distribution, with behaviors in plan order
        distribution = self._call(
            "distribution",
            "distribution",
            lambda: self.engine.upsert_distribution(
                origin_refs,
                list(plan.behaviors),
                edge_functions=edge_functions,
                cdn_functions=dict(plan.cdn_functions),
                domain=self.domain,
                transform=plan.distribution_transform,
            ),
        )

        # (c) Handles for the caller
        bucket = next(
            (origin_refs[o.name] for o in plan.storage_origins), None
        )
        if bucket is None:
            raise ProvisioningError(
                "storage origin", "<none>", ValueError("plan has no storage origin")
            )
        url = f"https://{self.domain}" if self.domain else distribution.url
        logger.info(
            "Provisioned distribution %s (%d behaviors) at %s",
            distribution.resource_id,
            len(plan.behaviors),
            url,
        )
        return ProvisionedSite(
            url=url,
            distribution=distribution,
            asset_bucket=bucket,
            server_functions=server_functions,
            edge_functions=edge_functions,
        )
