"""Common exception base for deploy failures.

Concrete errors live beside the code that raises them:

- ``BuildOutputMissing``   — ``ssrforge.layouts.base``
- ``PlanValidationError``  — ``ssrforge.compiler.validator``
- ``ProvisioningError``    — ``ssrforge.provisioning.adapter``
- ``InvalidationTimeout``  — ``ssrforge.sync.invalidation``
"""

from __future__ import annotations


class SsrForgeError(RuntimeError):
    """Base class for every error a deploy can surface."""
