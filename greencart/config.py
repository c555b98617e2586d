# greencart/config.py
"""
Configuration parameters for the GreenCart delivery simulation.

This module centralizes all tunable parameters, making it easy to:
- Adjust the fatigue and traffic models
- Tune the driver suitability score
- Change the economics (commission, bonuses, penalties)

Values marked Final are fixed by the business rules and are relied upon
by tests and by the dashboard; the rest may be tweaked for experiments.
"""

from typing import Dict, Final, Tuple

# =============================================================================
# FATIGUE MODEL
# =============================================================================
# Step function over hours already worked in the current shift.
# Upper bounds are inclusive: exactly 4.0h is still "fresh".

FATIGUE_STEPS: Final[Tuple[Tuple[float, float], ...]] = (
    (4.0, 1.0),
    (8.0, 1.1),
    (12.0, 1.3),
)
"""(max_hours_inclusive, factor) pairs, checked in order."""

FATIGUE_MAX_FACTOR: Final[float] = 1.5
"""Factor applied once a driver is past the last threshold (>12h)."""

# =============================================================================
# ROUTE MODEL
# =============================================================================

TRAFFIC_MULTIPLIERS: Final[Dict[str, float]] = {
    "Low": 1.0,
    "Medium": 1.2,
    "High": 1.5,
}
"""Base-time multiplier per traffic level."""

DEFAULT_TRAFFIC_MULTIPLIER: Final[float] = 1.0
"""Used when a route carries an unrecognized traffic level."""

DEFAULT_FUEL_COST_PER_KM: float = 8.5
"""Fuel cost per km in Rs when a route does not specify one."""

# =============================================================================
# ORDER ECONOMICS
# =============================================================================

HIGH_VALUE_THRESHOLD: Final[float] = 10000.0
"""Orders with value_rs >= this are high-value."""

HIGH_VALUE_BONUS_RATE: Final[float] = 0.02
"""High-value orders earn 2% of their value as a bonus."""

ON_TIME_BONUS: Final[float] = 100.0
"""Flat bonus for an order delivered on or before its scheduled time."""

LATE_PENALTY_PER_HOUR: Final[float] = 50.0
"""Penalty per started hour of lateness."""

MIN_DELIVERY_BONUS: Final[float] = -500.0
"""Floor for the combined bonus/penalty. There is no upper cap."""

COMMISSION_RATE: Final[float] = 0.1
"""Revenue is a flat 10% commission on order value."""

# =============================================================================
# ORDER PRIORITY
# =============================================================================

PRIORITY_WEIGHTS: Final[Dict[str, int]] = {
    "urgent": 4,
    "high": 3,
    "medium": 2,
    "low": 1,
}
"""Queue ordering weight. Higher is dispatched first."""

DEFAULT_PRIORITY_WEIGHT: Final[int] = 2
"""Unrecognized priorities are treated as 'medium'."""

# =============================================================================
# DRIVER SUITABILITY SCORE
# =============================================================================
# Higher score = better fit. Purely comparative, no normalization.

W_RATING: float = 20.0
"""Points per rating star."""

W_FATIGUE: float = 30.0
"""Penalty per unit of fatigue above 1.0."""

WORKLOAD_REFERENCE_HOURS: float = 8.0
"""Drivers below this many hours get a workload bonus (negative above it)."""

W_WORKLOAD: float = 5.0
"""Points per hour below WORKLOAD_REFERENCE_HOURS."""

W_FAMILIARITY: float = 0.1
"""Points per past completion of the route."""

MAX_FAMILIARITY_BONUS: float = 10.0
"""Cap on the route familiarity term."""

HIGH_VALUE_MIN_RATING: float = 4.5
"""Drivers rated below this are penalized on high-value orders."""

HIGH_VALUE_LOW_RATING_PENALTY: float = 20.0
"""Penalty applied when a low-rated driver is scored for a high-value order."""

MIN_WINNING_SCORE: Final[float] = -1.0
"""A driver must score strictly above this to win an order. Orders whose
best candidate scores -1 or lower are left unassigned."""

# =============================================================================
# SIMULATION PARAMETERS
# =============================================================================

MIN_DRIVERS: Final[int] = 1
MAX_DRIVERS: Final[int] = 50
"""Allowed range for the numberOfDrivers parameter."""

MIN_HOURS_PER_DRIVER: Final[float] = 1
MAX_HOURS_PER_DRIVER: Final[float] = 24
"""Allowed range for the maxHoursPerDriver parameter."""

DEFAULT_NUMBER_OF_DRIVERS: int = 5
DEFAULT_MAX_HOURS_PER_DRIVER: float = 8
"""Defaults used by the CLI and the dashboard."""

# Efficiency score = completion*0.4 + on_time*0.4 + utilization*0.2
W_COMPLETION_RATE: Final[float] = 0.4
W_ON_TIME_RATE: Final[float] = 0.4
W_UTILIZATION_RATE: Final[float] = 0.2

# =============================================================================
# DASHBOARD KPIs
# =============================================================================

DASHBOARD_W_ON_TIME: Final[float] = 0.6
DASHBOARD_W_COMPLETION: Final[float] = 0.4
"""Historical efficiency score weights (differs from the simulation blend)."""

DASHBOARD_HOURLY_RATE: float = 150.0
"""Assumed average hourly rate when costing historical deliveries."""

TIME_RANGES_HOURS: Final[Dict[str, int]] = {
    "24h": 24,
    "7d": 7 * 24,
    "30d": 30 * 24,
}
"""Supported dashboard windows."""

DEFAULT_TIME_RANGE: Final[str] = "7d"

TOP_FUEL_ROUTES: int = 10
"""Number of routes shown in the fuel cost chart."""

STATUS_COLORS: Dict[str, str] = {
    "delivered": "#22c55e",
    "late": "#ef4444",
    "in-progress": "#f59e0b",
    "pending": "#6b7280",
    "cancelled": "#dc2626",
}
"""Chart colour per delivery status."""

DEFAULT_STATUS_COLOR: str = "#6b7280"
