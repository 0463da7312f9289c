"""ssrforge data models — all Pydantic v2, all frozen (immutable)."""

from ssrforge.models.build import AssetOptions, BuildMetadata
from ssrforge.models.plan import (
    AssetCopy,
    Behavior,
    CacheBehaviorInjections,
    CacheType,
    CdnFunction,
    InvalidationPolicy,
    Origin,
    Plan,
    ServerBundle,
    ServerFunction,
    ServerOrigin,
    StorageOrigin,
    WrapperVariant,
)
from ssrforge.models.site import (
    DeployResult,
    InvalidationResult,
    InvalidationStatus,
    InvalidationTicket,
    ProvisionedSite,
    ResourceHandle,
    SiteMetadata,
    SyncReport,
    UploadReceipt,
)
from ssrforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    VALID_TRANSITIONS,
    StageDefinition,
    StageState,
    StageTransition,
)

__all__ = [
    # build
    "AssetOptions",
    "BuildMetadata",
    # plan
    "AssetCopy",
    "Behavior",
    "CacheBehaviorInjections",
    "CacheType",
    "CdnFunction",
    "InvalidationPolicy",
    "Origin",
    "Plan",
    "ServerBundle",
    "ServerFunction",
    "ServerOrigin",
    "StorageOrigin",
    "WrapperVariant",
    # site
    "DeployResult",
    "InvalidationResult",
    "InvalidationStatus",
    "InvalidationTicket",
    "ProvisionedSite",
    "ResourceHandle",
    "SiteMetadata",
    "SyncReport",
    "UploadReceipt",
    # stages
    "DEFAULT_STAGE_DEFINITIONS",
    "VALID_TRANSITIONS",
    "StageDefinition",
    "StageState",
    "StageTransition",
]
