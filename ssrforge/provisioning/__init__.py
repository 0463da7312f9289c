"""Provisioning: engine protocol, in-memory engine, plan interpreter."""

from ssrforge.provisioning.adapter import ProvisioningError, Provisioner
from ssrforge.provisioning.engine import EngineRejection, InMemoryEngine, ProvisioningEngine

__all__ = [
    "EngineRejection",
    "InMemoryEngine",
    "ProvisioningEngine",
    "ProvisioningError",
    "Provisioner",
]
