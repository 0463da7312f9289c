"""Models describing provisioned resources and deploy outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ssrforge.models.stages import StageState


class ResourceHandle(BaseModel):
    """Opaque reference to a resource owned by the provisioning engine."""

    model_config = ConfigDict(frozen=True)

    kind: str  # "storage" | "function" | "distribution"
    name: str
    resource_id: str
    arn: str = ""
    url: str = ""
    attributes: dict[str, Any] = {}


class ProvisionedSite(BaseModel):
    """Handles returned to the deploy orchestrator after provisioning."""

    model_config = ConfigDict(frozen=True)

    url: str
    distribution: ResourceHandle
    asset_bucket: ResourceHandle
    server_functions: list[ResourceHandle] = []  # regional
    edge_functions: dict[str, ResourceHandle] = {}

    @property
    def server_function(self) -> ResourceHandle | None:
        if self.server_functions:
            return self.server_functions[0]
        return next(iter(self.edge_functions.values()), None)


class SiteMetadata(BaseModel):
    """Introspection record for downstream tooling."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["placeholder", "deployed"]
    path: str
    url: str | None = None
    edge_mode: bool = False
    server_function_arn: str | None = None


class InvalidationTicket(BaseModel):
    """An invalidation request accepted by the CDN."""

    model_config = ConfigDict(frozen=True)

    ticket_id: str
    distribution_id: str
    paths: list[str]


class InvalidationStatus(str, Enum):
    """Outcome of the post-deploy invalidation step."""

    SKIPPED = "skipped"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class InvalidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: InvalidationStatus
    ticket: InvalidationTicket | None = None
    paths: list[str] = []
    waited_seconds: float = 0.0


class UploadReceipt(BaseModel):
    """One uploaded static file."""

    model_config = ConfigDict(frozen=True)

    key: str
    cache_control: str
    content_type: str
    versioned: bool
    content_address: str
    size_bytes: int


class SyncReport(BaseModel):
    """Result of uploading a site's static assets."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    uploads: list[UploadReceipt] = []

    @property
    def versioned_count(self) -> int:
        return sum(1 for u in self.uploads if u.versioned)

    @property
    def non_versioned_count(self) -> int:
        return len(self.uploads) - self.versioned_count


class DeployResult(BaseModel):
    """Everything one deploy produced, in stage order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    deploy_id: str
    plan_fingerprint: str | None = None
    site: ProvisionedSite | None = None
    sync: SyncReport | None = None
    invalidation: InvalidationResult | None = None
    metadata: SiteMetadata = Field(alias="_metadata")
    stage_states: dict[str, StageState] = {}
    warnings: list[str] = []

    @property
    def succeeded(self) -> bool:
        return all(
            state in (StageState.PASSED, StageState.SKIPPED, StageState.WARNED)
            for state in self.stage_states.values()
        )
