"""Plan builder — compiles build metadata into a deployment plan.

The builder threads an immutable ``Plan`` through a fixed sequence of
steps.  Each step is a pure function ``(Plan, ...) -> Plan`` so any
intermediate plan can be inspected in isolation:

    select wrapper -> register server -> storage origin
        -> CDN functions -> static behaviors -> catch-all

The catch-all server behavior is appended last, after every static
behavior, regardless of what earlier steps produced.
"""

from __future__ import annotations

import logging
from typing import Any

from ssrforge.layouts.base import BuildLayout
from ssrforge.models.build import AssetOptions, BuildMetadata
from ssrforge.models.plan import (
    SERVER_CDN_FUNCTION,
    SERVER_FUNCTION,
    SERVER_ORIGIN,
    STATIC_CDN_FUNCTION,
    STORAGE_ORIGIN,
    AssetCopy,
    Behavior,
    CacheBehaviorInjections,
    CacheType,
    CdnFunction,
    InvalidationPolicy,
    Plan,
    ServerBundle,
    ServerFunction,
    ServerOrigin,
    StorageOrigin,
    WrapperVariant,
)

logger = logging.getLogger(__name__)

# Filenames may contain reserved characters such as "+" (flat-routes style
# file names); each path segment must be percent-encoded before the
# storage lookup.
URL_ENCODE_INJECTION = (
    "request.uri = request.uri.split('/').map(encodeURIComponent).join('/');"
)

# The server sees the distribution's host otherwise.
HOST_HEADER_INJECTION = (
    'request.headers["x-forwarded-host"] = request.headers.host;'
)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def select_server_function(
    layout: BuildLayout,
    edge_mode: bool,
    *,
    environment: dict[str, str] | None = None,
    transform: dict[str, Any] | None = None,
) -> ServerFunction:
    """Bundle the framework server build with the wrapper for *edge_mode*."""
    wrapper = WrapperVariant.EDGE if edge_mode else WrapperVariant.REGIONAL
    bundle = ServerBundle(entry_import=layout.entry_import, wrapper=wrapper)
    return ServerFunction(
        name=SERVER_FUNCTION,
        wrapper=wrapper,
        bundle=bundle,
        environment=dict(environment or {}),
        transform=dict(transform or {}),
    )


def with_server(plan: Plan, function: ServerFunction) -> Plan:
    """Register the server function as an edge function or a regional origin."""
    if plan.edge_mode:
        return plan.model_copy(
            update={"edge_functions": {**plan.edge_functions, function.name: function}}
        )
    origin = ServerOrigin(name=SERVER_ORIGIN, function=function)
    return plan.model_copy(update={"origins": {**plan.origins, origin.name: origin}})


def with_storage_origin(
    plan: Plan,
    metadata: BuildMetadata,
    *,
    transform: dict[str, Any] | None = None,
) -> Plan:
    origin = StorageOrigin(
        name=STORAGE_ORIGIN,
        copy_specs=(
            AssetCopy(
                from_path=metadata.assets_path,
                to="",
                cached=True,
                versioned_sub_dir=metadata.assets_versioned_sub_dir,
            ),
        ),
        transform=dict(transform or {}),
    )
    return plan.model_copy(update={"origins": {**plan.origins, origin.name: origin}})


def with_cdn_functions(
    plan: Plan, injections: CacheBehaviorInjections | None = None
) -> Plan:
    """Attach the server and static request-transform functions.

    Required injections come first; user injections follow in the order
    given.
    """
    injections = injections or CacheBehaviorInjections()
    functions = {
        SERVER_CDN_FUNCTION: CdnFunction(
            name=SERVER_CDN_FUNCTION,
            injections=(HOST_HEADER_INJECTION, *injections.server),
        ),
        STATIC_CDN_FUNCTION: CdnFunction(
            name=STATIC_CDN_FUNCTION,
            injections=(URL_ENCODE_INJECTION, *injections.static),
        ),
    }
    return plan.model_copy(update={"cdn_functions": {**plan.cdn_functions, **functions}})


def with_static_behaviors(plan: Plan, metadata: BuildMetadata) -> Plan:
    """One static behavior per static route, in enumeration order."""
    static = tuple(
        Behavior(
            cache_type=CacheType.STATIC,
            pattern=route,
            origin=STORAGE_ORIGIN,
            cdn_function=STATIC_CDN_FUNCTION,
        )
        for route in metadata.static_routes
    )
    return plan.model_copy(update={"behaviors": plan.behaviors + static})


def with_catch_all(plan: Plan) -> Plan:
    if plan.edge_mode:
        catch_all = Behavior(
            cache_type=CacheType.SERVER,
            pattern=None,
            origin=STORAGE_ORIGIN,
            edge_function=SERVER_FUNCTION,
            cdn_function=SERVER_CDN_FUNCTION,
        )
    else:
        catch_all = Behavior(
            cache_type=CacheType.SERVER,
            pattern=None,
            origin=SERVER_ORIGIN,
            cdn_function=SERVER_CDN_FUNCTION,
        )
    return plan.model_copy(update={"behaviors": plan.behaviors + (catch_all,)})


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class PlanBuilder:
    """Builds plans for one build layout.

    Parameters
    ----------
    layout:
        The framework layout the server bundle is taken from.
    invalidation:
        Post-deploy invalidation policy recorded on the plan.
    assets:
        Upload options recorded on the plan.
    environment:
        Environment variables for the server function.
    transforms:
        Opaque pass-through values keyed by ``"server"``, ``"assets"``
        and ``"distribution"``.
    """

    def __init__(
        self,
        layout: BuildLayout,
        *,
        invalidation: InvalidationPolicy | None = None,
        assets: AssetOptions | None = None,
        environment: dict[str, str] | None = None,
        transforms: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.layout = layout
        self.invalidation = invalidation or InvalidationPolicy()
        self.assets = assets or AssetOptions()
        self.environment = environment or {}
        self.transforms = transforms or {}

    def build(
        self,
        metadata: BuildMetadata,
        edge_mode: bool,
        injections: CacheBehaviorInjections | None = None,
    ) -> Plan:
        """Compile *metadata* into a plan.  Total: never returns a partial plan."""
        plan = Plan(
            edge_mode=edge_mode,
            invalidation=self.invalidation,
            assets=self.assets,
            distribution_transform=dict(self.transforms.get("distribution", {})),
        )
        function = select_server_function(
            self.layout,
            edge_mode,
            environment=self.environment,
            transform=self.transforms.get("server"),
        )
        plan = with_server(plan, function)
        plan = with_storage_origin(plan, metadata, transform=self.transforms.get("assets"))
        plan = with_cdn_functions(plan, injections)
        plan = with_static_behaviors(plan, metadata)
        plan = with_catch_all(plan)

        logger.info(
            "Built %s plan: %d static behaviors + catch-all (%s)",
            "edge" if edge_mode else "regional",
            len(plan.static_behaviors),
            plan.fingerprint()[:19],
        )
        return plan


def build_plan(
    metadata: BuildMetadata,
    edge_mode: bool,
    injections: CacheBehaviorInjections | None = None,
    *,
    layout: BuildLayout,
    **builder_options: Any,
) -> Plan:
    """Convenience wrapper: ``PlanBuilder(layout, **options).build(...)``."""
    return PlanBuilder(layout, **builder_options).build(metadata, edge_mode, injections)
