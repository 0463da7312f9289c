"""Post-deploy CDN cache invalidation.

One invalidation request is submitted per deploy.  Waiting for it is the
only blocking point of the pipeline: the wait polls the engine, honours a
cancel event between polls, and never resubmits.  A timeout is a warning,
not a deploy failure — the site is already live.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from ssrforge.core.errors import SsrForgeError
from ssrforge.models.plan import InvalidationPolicy
from ssrforge.models.site import (
    InvalidationResult,
    InvalidationStatus,
    InvalidationTicket,
    ProvisionedSite,
)
from ssrforge.provisioning.engine import INVALIDATION_COMPLETED, ProvisioningEngine

logger = logging.getLogger(__name__)


class InvalidationTimeout(SsrForgeError):
    """Raised when the CDN does not confirm an invalidation in time."""

    def __init__(self, ticket: InvalidationTicket, waited_seconds: float) -> None:
        self.ticket = ticket
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Invalidation {ticket.ticket_id} on {ticket.distribution_id} not "
            f"confirmed after {waited_seconds:.1f}s"
        )


class InvalidationDriver:
    """Submits and optionally waits for a distribution invalidation.

    Parameters
    ----------
    engine:
        Backend that owns the distribution.
    timeout_seconds:
        How long ``wait=True`` blocks before giving up.
    poll_seconds:
        Interval between status polls.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        engine: ProvisioningEngine,
        *,
        timeout_seconds: float = 600.0,
        poll_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.timeout_seconds = timeout_seconds
        self.poll_seconds = poll_seconds
        self._clock = clock

    def submit(self, site: ProvisionedSite, policy: InvalidationPolicy) -> InvalidationTicket:
        paths = policy.resolved_paths()
        ticket = self.engine.invalidate(site.distribution, paths)
        logger.info(
            "Submitted invalidation %s for %s on %s",
            ticket.ticket_id,
            ", ".join(paths),
            site.distribution.resource_id,
        )
        return ticket

    def wait_for_completion(
        self,
        site: ProvisionedSite,
        ticket: InvalidationTicket,
        cancel_event: threading.Event | None = None,
    ) -> InvalidationStatus:
        """Block until the invalidation completes or the wait is cancelled.

        Returns ``COMPLETED`` or ``CANCELLED``; raises
        ``InvalidationTimeout`` when the deadline passes.
        """
        cancel_event = cancel_event or threading.Event()
        started = self._clock()
        deadline = started + self.timeout_seconds
        while True:
            if cancel_event.is_set():
                logger.warning("Invalidation wait for %s cancelled", ticket.ticket_id)
                return InvalidationStatus.CANCELLED
            status = self.engine.get_invalidation_status(site.distribution, ticket.ticket_id)
            if status == INVALIDATION_COMPLETED:
                logger.info(
                    "Invalidation %s completed after %.1fs",
                    ticket.ticket_id,
                    self._clock() - started,
                )
                return InvalidationStatus.COMPLETED
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise InvalidationTimeout(ticket, self._clock() - started)
            cancel_event.wait(min(self.poll_seconds, remaining))

    def run(
        self,
        site: ProvisionedSite,
        policy: InvalidationPolicy,
        cancel_event: threading.Event | None = None,
    ) -> InvalidationResult:
        """Apply *policy*: submit, then wait only if ``policy.wait``."""
        ticket = self.submit(site, policy)
        if not policy.wait:
            return InvalidationResult(
                status=InvalidationStatus.SUBMITTED, ticket=ticket, paths=ticket.paths
            )

        started = self._clock()
        try:
            status = self.wait_for_completion(site, ticket, cancel_event)
        except InvalidationTimeout as exc:
            logger.warning("%s", exc)
            status = InvalidationStatus.TIMED_OUT
        return InvalidationResult(
            status=status,
            ticket=ticket,
            paths=ticket.paths,
            waited_seconds=self._clock() - started,
        )
