"""Plan compiler: build metadata -> validated deployment plan."""

from ssrforge.compiler.builder import PlanBuilder, build_plan
from ssrforge.compiler.validator import PlanValidationError, validate_plan

__all__ = ["PlanBuilder", "PlanValidationError", "build_plan", "validate_plan"]
