"""
Handles driving trace and step lifecycles.
"""

from .step_handle import StepHandle
from .trace_handle import TraceHandle

__all__ = ["StepHandle", "TraceHandle"]
