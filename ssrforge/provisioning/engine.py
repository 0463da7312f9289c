"""Provisioning engine protocol and the in-memory default backend.

The ``ProvisioningEngine`` Protocol is the whole surface the deploy
pipeline needs from the infrastructure layer.  Real backends own
idempotent upserts, state tracking and retries; the pipeline only
interprets a validated plan against this interface.

``InMemoryEngine`` records every call and keeps uploaded objects in
memory.  It backs dry runs and tests; production should provide a real
engine.
"""

from __future__ import annotations

import threading
import uuid
from typing import Any, Protocol, runtime_checkable

from ssrforge.models.plan import Behavior, CdnFunction, ServerFunction, StorageOrigin
from ssrforge.models.site import InvalidationTicket, ResourceHandle

INVALIDATION_IN_PROGRESS = "InProgress"
INVALIDATION_COMPLETED = "Completed"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ProvisioningEngine(Protocol):
    """Protocol for infrastructure backends."""

    def upsert_storage_origin(self, spec: StorageOrigin) -> ResourceHandle:
        """Create or update the asset bucket behind a storage origin."""
        ...

    def upsert_compute_function(self, spec: ServerFunction, *, edge: bool) -> ResourceHandle:
        """Create or update a server function (edge-replicated if *edge*)."""
        ...

    def upsert_distribution(
        self,
        origins: dict[str, ResourceHandle],
        behaviors: list[Behavior],
        *,
        edge_functions: dict[str, ResourceHandle],
        cdn_functions: dict[str, CdnFunction],
        domain: str | None = None,
        transform: dict[str, Any] | None = None,
    ) -> ResourceHandle:
        """Create or update the CDN distribution.

        *behaviors* is in evaluation order and must be applied as given.
        """
        ...

    def upload_object(
        self,
        bucket: ResourceHandle,
        key: str,
        body: bytes,
        *,
        cache_control: str,
        content_type: str,
    ) -> None:
        ...

    def invalidate(self, distribution: ResourceHandle, paths: list[str]) -> InvalidationTicket:
        """Submit an invalidation and return without waiting for it."""
        ...

    def get_invalidation_status(self, distribution: ResourceHandle, ticket_id: str) -> str:
        """Return ``"InProgress"`` or ``"Completed"``."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class EngineRejection(RuntimeError):
    """Raised by ``InMemoryEngine`` for resources configured to fail."""


class InMemoryEngine:
    """Recording engine for dry runs and tests.

    Parameters
    ----------
    reject:
        Resource names mapped to a rejection reason; upserting one of
        them raises ``EngineRejection``.
    polls_until_complete:
        How many status polls an invalidation stays ``"InProgress"``.
        ``None`` keeps it in progress forever.
    """

    def __init__(
        self,
        *,
        reject: dict[str, str] | None = None,
        polls_until_complete: int | None = 0,
    ) -> None:
        self.reject = dict(reject or {})
        self.polls_until_complete = polls_until_complete
        self.calls: list[tuple[str, str]] = []
        self.objects: dict[str, dict[str, dict[str, Any]]] = {}
        self.distributions: dict[str, dict[str, Any]] = {}
        self.invalidations: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _record(self, operation: str, name: str) -> None:
        with self._lock:
            self.calls.append((operation, name))
        if name in self.reject:
            raise EngineRejection(self.reject[name])

    @staticmethod
    def _new_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"

    def upsert_storage_origin(self, spec: StorageOrigin) -> ResourceHandle:
        self._record("upsert_storage_origin", spec.name)
        bucket_id = self._new_id("bucket")
        with self._lock:
            self.objects.setdefault(bucket_id, {})
        return ResourceHandle(
            kind="storage",
            name=spec.name,
            resource_id=bucket_id,
            arn=f"arn:aws:s3:::{bucket_id}",
        )

    def upsert_compute_function(self, spec: ServerFunction, *, edge: bool) -> ResourceHandle:
        self._record("upsert_compute_function", spec.name)
        function_id = self._new_id("edge-fn" if edge else "fn")
        region = "us-east-1"
        return ResourceHandle(
            kind="function",
            name=spec.name,
            resource_id=function_id,
            arn=f"arn:aws:lambda:{region}:000000000000:function:{function_id}",
            url="" if edge else f"https://{function_id}.lambda-url.{region}.on.aws",
            attributes={"edge": edge, "wrapper": spec.wrapper.value},
        )

    def upsert_distribution(
        self,
        origins: dict[str, ResourceHandle],
        behaviors: list[Behavior],
        *,
        edge_functions: dict[str, ResourceHandle],
        cdn_functions: dict[str, CdnFunction],
        domain: str | None = None,
        transform: dict[str, Any] | None = None,
    ) -> ResourceHandle:
        self._record("upsert_distribution", "distribution")
        distribution_id = self._new_id("dist")
        with self._lock:
            self.distributions[distribution_id] = {
                "origins": dict(origins),
                "behaviors": list(behaviors),
                "edge_functions": dict(edge_functions),
                "cdn_functions": dict(cdn_functions),
                "domain": domain,
                "transform": dict(transform or {}),
            }
        return ResourceHandle(
            kind="distribution",
            name="distribution",
            resource_id=distribution_id,
            url=f"https://{distribution_id}.cloudfront.net",
        )

    def upload_object(
        self,
        bucket: ResourceHandle,
        key: str,
        body: bytes,
        *,
        cache_control: str,
        content_type: str,
    ) -> None:
        with self._lock:
            self.objects.setdefault(bucket.resource_id, {})[key] = {
                "body": body,
                "cache_control": cache_control,
                "content_type": content_type,
            }

    def invalidate(self, distribution: ResourceHandle, paths: list[str]) -> InvalidationTicket:
        self._record("invalidate", distribution.name)
        ticket = InvalidationTicket(
            ticket_id=self._new_id("inv"),
            distribution_id=distribution.resource_id,
            paths=list(paths),
        )
        with self._lock:
            self.invalidations[ticket.ticket_id] = {"ticket": ticket, "polls": 0}
        return ticket

    def get_invalidation_status(self, distribution: ResourceHandle, ticket_id: str) -> str:
        with self._lock:
            record = self.invalidations[ticket_id]
            record["polls"] += 1
            polls = record["polls"]
        if self.polls_until_complete is not None and polls > self.polls_until_complete:
            return INVALIDATION_COMPLETED
        return INVALIDATION_IN_PROGRESS
