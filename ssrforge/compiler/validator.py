"""Plan validator — structural invariants checked before provisioning.

Validation is non-mutating: a valid plan is returned unchanged, an
invalid one raises ``PlanValidationError`` carrying *every* violation
found, so one failed deploy reports all structural problems at once.

Checks run in this order:

1. Reference integrity (origins, edge functions, CDN functions).
2. Exactly one catch-all server behavior, positioned last.
3. No duplicate static patterns.
4. Edge mode vs regional server origin are mutually exclusive.
5. Required fields per cache type.
6. Function associations (every behavior carries the CDN function of
   its cache type) and function size.
7. No static pattern shadowed by an earlier, broader one.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from functools import lru_cache

from ssrforge.core.errors import SsrForgeError
from ssrforge.models.plan import (
    SERVER_CDN_FUNCTION,
    STATIC_CDN_FUNCTION,
    CacheType,
    Plan,
)

logger = logging.getLogger(__name__)

# Hard limit of the target CDN. The behavior-count quota is per account,
# so it is only checked when the caller passes one.
MAX_CDN_FUNCTION_BYTES = 10 * 1024

# The request-transform function attached to a behavior depends only on
# its cache type.
CDN_FUNCTION_BY_CACHE_TYPE: dict[CacheType, str] = {
    CacheType.STATIC: STATIC_CDN_FUNCTION,
    CacheType.SERVER: SERVER_CDN_FUNCTION,
}


class PlanValidationError(SsrForgeError):
    """Raised when a plan violates one or more structural invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(
            f"Plan validation failed with {len(self.violations)} violation(s).\n"
            + "\n".join(f"  - {v}" for v in self.violations)
        )


# ---------------------------------------------------------------------------
# Pattern helpers
# ---------------------------------------------------------------------------


def _normalize(pattern: str) -> str:
    return pattern.lstrip("/")


def _has_wildcard(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


@lru_cache(maxsize=512)
def _pattern_regex(pattern: str) -> re.Pattern[str]:
    """CDN path patterns: ``*`` matches any run of characters, ``?`` one."""
    parts = []
    for char in _normalize(pattern):
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def pattern_covers(broad: str, narrow: str) -> bool:
    """Return ``True`` if every path matched by *narrow* is matched by *broad*."""
    broad, narrow = _normalize(broad), _normalize(narrow)
    if not _has_wildcard(narrow):
        return _pattern_regex(broad).fullmatch(narrow) is not None
    if broad.endswith("*") and not _has_wildcard(broad[:-1]):
        return narrow.startswith(broad[:-1])
    return False


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_references(plan: Plan) -> list[str]:
    violations = []
    for index, behavior in enumerate(plan.behaviors):
        if behavior.origin not in plan.origins:
            violations.append(
                f"behavior #{index} ({behavior.label}) references unknown origin "
                f"{behavior.origin!r}"
            )
        if behavior.edge_function and behavior.edge_function not in plan.edge_functions:
            violations.append(
                f"behavior #{index} ({behavior.label}) references unknown edge function "
                f"{behavior.edge_function!r}"
            )
        if behavior.cdn_function and behavior.cdn_function not in plan.cdn_functions:
            violations.append(
                f"behavior #{index} ({behavior.label}) references unknown CDN function "
                f"{behavior.cdn_function!r}"
            )
    return violations


def _check_catch_all(plan: Plan) -> list[str]:
    positions = [i for i, b in enumerate(plan.behaviors) if b.is_catch_all]
    if not positions:
        return ["plan has no catch-all server behavior"]
    if len(positions) > 1:
        return [
            f"plan has {len(positions)} catch-all server behaviors "
            f"(at positions {positions}); exactly one is allowed"
        ]
    if positions[0] != len(plan.behaviors) - 1:
        return [
            f"catch-all server behavior is at position {positions[0]} "
            f"but must be last (position {len(plan.behaviors) - 1})"
        ]
    return []


def _check_duplicate_patterns(plan: Plan) -> list[str]:
    counts = Counter(
        _normalize(b.pattern) for b in plan.static_behaviors if b.pattern
    )
    return [
        f"duplicate static pattern {pattern!r} appears {count} times"
        for pattern, count in counts.items()
        if count > 1
    ]


def _check_mode(plan: Plan) -> list[str]:
    violations = []
    if plan.edge_mode and plan.server_origins:
        names = ", ".join(o.name for o in plan.server_origins)
        violations.append(
            f"edge mode plan must not contain a regional server origin (found: {names})"
        )
    if not plan.edge_mode and plan.edge_functions:
        names = ", ".join(plan.edge_functions)
        violations.append(
            f"regional plan must not contain edge functions (found: {names})"
        )
    server_functions = len(plan.server_origins) + len(plan.edge_functions)
    if server_functions != 1:
        violations.append(
            f"plan must contain exactly one server function, found {server_functions}"
        )
    return violations


def _check_required_fields(plan: Plan) -> list[str]:
    violations = []
    for index, behavior in enumerate(plan.behaviors):
        if behavior.cache_type == CacheType.STATIC:
            if not behavior.pattern or _normalize(behavior.pattern) in ("", "*"):
                violations.append(
                    f"static behavior #{index} must have a concrete path pattern"
                )
        elif not behavior.is_catch_all:
            violations.append(
                f"server behavior #{index} ({behavior.label}) must be the catch-all "
                "(no pattern or '*')"
            )
    return violations


def _check_function_associations(plan: Plan) -> list[str]:
    violations = []
    for index, behavior in enumerate(plan.behaviors):
        if behavior.edge_function and behavior.cache_type != CacheType.SERVER:
            violations.append(
                f"behavior #{index} ({behavior.label}) carries edge function "
                f"{behavior.edge_function!r}; only the server behavior may"
            )
        expected = CDN_FUNCTION_BY_CACHE_TYPE[behavior.cache_type]
        if not behavior.cdn_function:
            violations.append(
                f"behavior #{index} ({behavior.label}) has no CDN function; "
                f"{behavior.cache_type.value} behaviors use {expected!r}"
            )
        elif behavior.cdn_function != expected:
            violations.append(
                f"behavior #{index} ({behavior.label}) uses CDN function "
                f"{behavior.cdn_function!r}; {behavior.cache_type.value} behaviors use "
                f"{expected!r}"
            )
    for name, function in plan.cdn_functions.items():
        size = len(function.code.encode("utf-8"))
        if size > MAX_CDN_FUNCTION_BYTES:
            violations.append(
                f"CDN function {name!r} is {size} bytes; the limit is "
                f"{MAX_CDN_FUNCTION_BYTES}"
            )
    return violations


def _check_shadowing(plan: Plan) -> list[str]:
    violations = []
    patterns = [b.pattern for b in plan.static_behaviors if b.pattern]
    for i, earlier in enumerate(patterns):
        for later in patterns[i + 1:]:
            if _normalize(earlier) == _normalize(later):
                continue  # reported as a duplicate
            if pattern_covers(earlier, later):
                violations.append(
                    f"static pattern {later!r} is unreachable: {earlier!r} is "
                    "evaluated first and matches every path it does"
                )
    return violations


_CHECKS = (
    _check_references,
    _check_catch_all,
    _check_duplicate_patterns,
    _check_mode,
    _check_required_fields,
    _check_function_associations,
    _check_shadowing,
)


def _check_behavior_quota(plan: Plan, limit: int) -> list[str]:
    ordered = len(plan.behaviors) - 1 if plan.behaviors else 0
    if ordered > limit:
        return [
            f"plan has {ordered} ordered cache behaviors; the distribution allows "
            f"at most {limit}"
        ]
    return []


def collect_violations(plan: Plan, *, max_cache_behaviors: int | None = None) -> list[str]:
    """Run every check and return all violations, in check order.

    *max_cache_behaviors* is the account's quota of ordered behaviors
    (the default behavior excluded); ``None`` skips the count.
    """
    violations: list[str] = []
    for check in _CHECKS:
        violations.extend(check(plan))
    if max_cache_behaviors is not None:
        violations.extend(_check_behavior_quota(plan, max_cache_behaviors))
    return violations


def validate_plan(plan: Plan, *, max_cache_behaviors: int | None = None) -> Plan:
    """Return *plan* unchanged if valid, else raise ``PlanValidationError``."""
    violations = collect_violations(plan, max_cache_behaviors=max_cache_behaviors)
    if violations:
        error = PlanValidationError(violations)
        logger.error("%s", error)
        raise error
    logger.info("Plan validation passed (%d behaviors).", len(plan.behaviors))
    return plan
