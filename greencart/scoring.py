# greencart/scoring.py
"""
Scoring functions for the GreenCart delivery simulation.

Three groups of pure functions live here:

1. Route/driver primitives: fatigue factor, traffic multiplier, fuel cost
   and estimated traversal time.
2. Order economics: lateness and the delivery bonus/penalty.
3. The driver suitability score the dispatcher uses to pick a driver
   for an order (higher score = better fit).

Nothing in this module mutates its arguments.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from . import config, utils

if TYPE_CHECKING:
    from .dispatch import DriverState
    from .models import Order, Route


# =============================================================================
# ROUTE / DRIVER PRIMITIVES
# =============================================================================

def fatigue_factor(current_shift_hours: float) -> float:
    """
    Get the delivery-time multiplier for a driver's tiredness.

    Step function with inclusive upper bounds:
        <= 4h  -> 1.0
        <= 8h  -> 1.1
        <= 12h -> 1.3
        else   -> 1.5

    Args:
        current_shift_hours: Hours already worked in the current shift

    Returns:
        Fatigue multiplier (>= 1.0)
    """
    for max_hours, factor in config.FATIGUE_STEPS:
        if current_shift_hours <= max_hours:
            return factor
    return config.FATIGUE_MAX_FACTOR


def traffic_multiplier(traffic_level: Optional[str]) -> float:
    """Low=1.0, Medium=1.2, High=1.5. Unknown levels count as 1.0."""
    return config.TRAFFIC_MULTIPLIERS.get(traffic_level, config.DEFAULT_TRAFFIC_MULTIPLIER)


def fuel_cost(route: Route) -> float:
    """Fuel plus tolls for one traversal: distance * cost_per_km + tolls."""
    return route.distance_km * route.fuel_cost_per_km + route.toll_charges


def estimated_time_minutes(route: Route, fatigue: float = 1.0) -> int:
    """
    Estimate minutes to traverse a route.

    Args:
        route: The route to traverse
        fatigue: Driver fatigue factor (see fatigue_factor)

    Returns:
        round(base_time * traffic_multiplier * fatigue), halves rounded up

    Example:
        >>> estimated_time_minutes(Route("RT1", 15.5, "High", 45), 1.0)
        68
    """
    raw = route.base_time_minutes * traffic_multiplier(route.traffic_level) * fatigue
    return utils.round_int(raw)


# =============================================================================
# ORDER ECONOMICS
# =============================================================================

def is_late(delivery_timestamp: Optional[datetime],
            scheduled_delivery_time: Optional[datetime]) -> bool:
    """A delivery is late if it happened strictly after the scheduled time."""
    if delivery_timestamp is None or scheduled_delivery_time is None:
        return False
    return delivery_timestamp > scheduled_delivery_time


def delivery_bonus(order: Order) -> float:
    """
    Calculate the bonus (or penalty) earned by an order.

    - High-value orders earn 2% of their value.
    - Delivered on time: +100.
    - Delivered late: -50 per started hour late.

    The result is floored at -500. There is deliberately no upper cap.

    Args:
        order: The order, as it currently stands (status and timestamps)

    Returns:
        Bonus in Rs (may be negative)
    """
    # models imports this module
    from .models import OrderStatus

    bonus = 0.0

    if order.is_high_value:
        bonus += order.value_rs * config.HIGH_VALUE_BONUS_RATE

    if order.status == OrderStatus.DELIVERED.value:
        if is_late(order.delivery_timestamp, order.scheduled_delivery_time):
            hours_late = math.ceil(
                utils.hours_between(order.delivery_timestamp, order.scheduled_delivery_time)
            )
            bonus -= hours_late * config.LATE_PENALTY_PER_HOUR
        else:
            bonus += config.ON_TIME_BONUS

    return max(bonus, config.MIN_DELIVERY_BONUS)


def priority_weight(priority: Optional[str]) -> int:
    """urgent=4, high=3, medium=2, low=1. Anything else is treated as medium."""
    return config.PRIORITY_WEIGHTS.get(priority, config.DEFAULT_PRIORITY_WEIGHT)


# =============================================================================
# DRIVER SUITABILITY
# =============================================================================

def calculate_driver_score(state: DriverState, order: Order, route: Route) -> float:
    """
    Score how well a driver fits an order, given the driver's simulated state.

    score = rating * 20
            - (fatigue - 1) * 30
            + (8 - hours_worked) * 5
            + min(route completions * 0.1, 10)
            - 20 if the order is high-value and rating < 4.5

    The score is only meaningful relative to other drivers' scores for
    the same order.

    Args:
        state: The driver's running state in this simulation
        order: Candidate order
        route: The order's route

    Returns:
        Suitability score (higher is better)
    """
    driver = state.driver
    fatigue = fatigue_factor(state.current_hours)

    score = driver.rating * config.W_RATING
    score -= (fatigue - 1) * config.W_FATIGUE
    score += (config.WORKLOAD_REFERENCE_HOURS - state.current_hours) * config.W_WORKLOAD
    score += min(route.total_completions * config.W_FAMILIARITY, config.MAX_FAMILIARITY_BONUS)

    if order.is_high_value and driver.rating < config.HIGH_VALUE_MIN_RATING:
        score -= config.HIGH_VALUE_LOW_RATING_PENALTY

    return score
