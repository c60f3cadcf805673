"""
Pure domain layer.

Value objects and time abstractions with NO dependencies on the ORM,
the database or I/O.
"""

from hris_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from hris_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Guard",
    "Transition",
    "Workflow",
]
