"""Terminal rendering of plans and deploy results."""

from ssrforge.monitor.renderer import PlanRenderer

__all__ = ["PlanRenderer"]
