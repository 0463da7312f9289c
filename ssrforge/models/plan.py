"""Deployment plan models — the framework-agnostic vocabulary of a site.

A ``Plan`` names the origins a CDN can route to, the server function that
renders pages, the CDN request-transform functions, and the *ordered*
list of cache behaviors.  Behaviors are evaluated first-match-wins, so the
tuple order is part of the plan's meaning and is never re-sorted.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ssrforge.core.hasher import content_address
from ssrforge.models.build import AssetOptions

# Reserved names used by the builder.
STORAGE_ORIGIN = "s3"
SERVER_ORIGIN = "server"
SERVER_FUNCTION = "server"
STATIC_CDN_FUNCTION = "staticCfFunction"
SERVER_CDN_FUNCTION = "serverCfFunction"

CATCH_ALL_PATTERNS: frozenset[str | None] = frozenset({None, "*"})


class CacheType(str, Enum):
    """Cache policy classification of a behavior."""

    STATIC = "static"
    SERVER = "server"


class WrapperVariant(str, Enum):
    """Runtime wrapper bundled around the server entry point."""

    EDGE = "edge"
    REGIONAL = "regional"

    @property
    def wrapper_file(self) -> str:
        return f"{self.value}-server.mjs"


class ServerBundle(BaseModel):
    """Describes the server artifact: framework build + runtime wrapper."""

    model_config = ConfigDict(frozen=True)

    build_dir: str = "build"
    entry_import: str  # import statement pulling in the framework server build
    wrapper: WrapperVariant
    handler: str = "build/server.handler"
    inject: tuple[str, ...] = ("build/polyfill.mjs",)


class ServerFunction(BaseModel):
    """The single server-rendering function of a site."""

    model_config = ConfigDict(frozen=True)

    name: str = SERVER_FUNCTION
    wrapper: WrapperVariant
    bundle: ServerBundle
    environment: dict[str, str] = {}
    transform: dict[str, Any] = {}


class AssetCopy(BaseModel):
    """One directory copied into the storage origin."""

    model_config = ConfigDict(frozen=True)

    from_path: str
    to: str = ""
    cached: bool = True
    versioned_sub_dir: str | None = None


class StorageOrigin(BaseModel):
    """Asset bucket origin."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["storage"] = "storage"
    name: str = STORAGE_ORIGIN
    copy_specs: tuple[AssetCopy, ...] = ()
    transform: dict[str, Any] = {}


class ServerOrigin(BaseModel):
    """Regional server function addressed as an origin."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["function"] = "function"
    name: str = SERVER_ORIGIN
    function: ServerFunction
    transform: dict[str, Any] = {}


Origin = Annotated[Union[StorageOrigin, ServerOrigin], Field(discriminator="kind")]


class CdnFunction(BaseModel):
    """Viewer-request function run at the CDN edge before origin selection."""

    model_config = ConfigDict(frozen=True)

    name: str
    injections: tuple[str, ...] = ()

    @property
    def code(self) -> str:
        body = "\n".join(self.injections)
        return f"function handler(event) {{\n  var request = event.request;\n{body}\n  return request;\n}}"


class CacheBehaviorInjections(BaseModel):
    """Extra viewer-request snippets appended after the required ones."""

    model_config = ConfigDict(frozen=True)

    static: tuple[str, ...] = ()
    server: tuple[str, ...] = ()


class Behavior(BaseModel):
    """An ordered rule mapping a URL pattern to an origin and cache policy."""

    model_config = ConfigDict(frozen=True)

    cache_type: CacheType
    pattern: str | None = None
    origin: str
    cdn_function: str
    edge_function: str | None = None

    @property
    def is_catch_all(self) -> bool:
        return self.cache_type == CacheType.SERVER and self.pattern in CATCH_ALL_PATTERNS

    @property
    def label(self) -> str:
        return f"{self.cache_type.value}:{self.pattern or '*'}"


class InvalidationPolicy(BaseModel):
    """Which paths to invalidate after deploy, and whether to wait."""

    model_config = ConfigDict(frozen=True)

    paths: Literal["all"] | tuple[str, ...] = "all"
    wait: bool = False

    @field_validator("paths")
    @classmethod
    def _at_least_one_path(cls, value: Literal["all"] | tuple[str, ...]):
        if value != "all" and not value:
            raise ValueError("invalidation needs at least one path, or \"all\"")
        return value

    def resolved_paths(self) -> list[str]:
        if self.paths == "all":
            return ["/*"]
        return list(self.paths)


class Plan(BaseModel):
    """The complete, declarative deployment plan of one site."""

    model_config = ConfigDict(frozen=True)

    edge_mode: bool = False
    origins: dict[str, Origin] = {}
    edge_functions: dict[str, ServerFunction] = {}
    cdn_functions: dict[str, CdnFunction] = {}
    behaviors: tuple[Behavior, ...] = ()
    invalidation: InvalidationPolicy = InvalidationPolicy()
    assets: AssetOptions = AssetOptions()
    distribution_transform: dict[str, Any] = {}

    @property
    def static_behaviors(self) -> list[Behavior]:
        return [b for b in self.behaviors if b.cache_type == CacheType.STATIC]

    @property
    def catch_all(self) -> Behavior | None:
        for behavior in self.behaviors:
            if behavior.is_catch_all:
                return behavior
        return None

    @property
    def storage_origins(self) -> list[StorageOrigin]:
        return [o for o in self.origins.values() if isinstance(o, StorageOrigin)]

    @property
    def server_origins(self) -> list[ServerOrigin]:
        return [o for o in self.origins.values() if isinstance(o, ServerOrigin)]

    @property
    def server_function(self) -> ServerFunction | None:
        """The site's server function, wherever it is registered."""
        for origin in self.server_origins:
            return origin.function
        return next(iter(self.edge_functions.values()), None)

    def fingerprint(self) -> str:
        """Content address of the canonical plan, ``"sha256:<hex>"``."""
        return content_address(self.model_dump(mode="json"))
