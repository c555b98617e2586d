# greencart/exceptions.py
"""
Exception hierarchy for the GreenCart delivery simulation.

Callers can catch GreenCartError for everything raised by this package,
or the specific subclasses to map each failure to a distinct response:

- ValidationError: a simulation parameter is out of range
- PreconditionError: nothing to simulate (no drivers / no pending orders)
- SimulationInProgressError: another run holds the simulation lock
- SimulationError: unexpected failure while a run was executing
- InvalidTransitionError: illegal order lifecycle change
"""

from __future__ import annotations


class GreenCartError(Exception):
    """Base class for all errors raised by greencart."""


class ValidationError(GreenCartError, ValueError):
    """A parameter is outside its allowed range."""


class PreconditionError(GreenCartError):
    """The inputs are valid but there is nothing to simulate."""


class NoDriversAvailableError(PreconditionError):
    def __init__(self, message: str = "No active drivers available for simulation") -> None:
        super().__init__(message)


class NoPendingOrdersError(PreconditionError):
    def __init__(self, message: str = "No pending orders available for simulation") -> None:
        super().__init__(message)


class SimulationInProgressError(GreenCartError):
    def __init__(
        self,
        message: str = "Simulation is already in progress. Please wait for it to complete.",
    ) -> None:
        super().__init__(message)


class SimulationError(GreenCartError):
    """A run failed after it started. The original error is chained as __cause__."""


class InvalidTransitionError(GreenCartError, ValueError):
    """An order cannot move from its current status to the requested one."""

    def __init__(self, order_id: str, current: str, target: str) -> None:
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(f"Order {order_id} cannot move from '{current}' to '{target}'")
