# greencart/dispatch.py
"""
Dispatch Engine for the GreenCart delivery simulation.

This module implements the greedy order-to-driver assignment:

1. The order queue is sorted by priority (urgent > high > medium > low),
   then by value, highest first. The sort is stable.
2. For each order, every driver that can absorb the delivery without
   exceeding the hour budget is scored (see scoring.calculate_driver_score).
   The strictly highest score wins; on a tie the driver listed first wins.
3. The delivery is simulated immediately and the winner's running state
   (hours, clock, earnings, distance) is advanced.

There is no backtracking. Once an order is given to a driver the choice
is final, and orders no driver can take are dropped from the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import config, scoring, utils
from .exceptions import SimulationError
from .models import Driver, Order

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """
    Outcome of one simulated delivery.

    Money and time values are kept at full precision so totals can be
    accumulated without compounding rounding error; to_dict() rounds them
    for presentation.
    """
    order_id: str
    driver_id: str
    driver_name: str
    route_id: str
    distance: float
    time_spent: int
    fuel_cost: float
    driver_earnings: float
    delivery_bonus: float
    revenue: float
    profit: float
    is_on_time: bool
    scheduled_time: datetime
    actual_delivery_time: datetime
    fatigue_factor: float
    traffic_multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase, whole-Rs money)."""
        return {
            "orderId": self.order_id,
            "driverId": self.driver_id,
            "driverName": self.driver_name,
            "routeId": self.route_id,
            "distance": self.distance,
            "timeSpent": self.time_spent,
            "fuelCost": utils.round_int(self.fuel_cost),
            "driverEarnings": utils.round_int(self.driver_earnings),
            "deliveryBonus": utils.round_int(self.delivery_bonus),
            "profit": utils.round_int(self.profit),
            "isOnTime": self.is_on_time,
            "scheduledTime": self.scheduled_time.isoformat(),
            "actualDeliveryTime": self.actual_delivery_time.isoformat(),
            "fatigueFactor": utils.round_half_up(self.fatigue_factor, 2),
            "trafficMultiplier": utils.round_half_up(self.traffic_multiplier, 2),
        }


@dataclass
class DriverState:
    """
    A driver's running state within one simulation.

    Created from a Driver snapshot at the start of a run. The Driver record
    itself is never modified; only this state advances.

    Attributes:
        driver: The driver snapshot
        current_hours: Hours worked so far, starting at driver.current_shift_hours
        current_time: The driver's clock; each delivery starts when the previous ended
        assigned_orders: Results of deliveries given to this driver, in order
        total_earnings: Sum of driver pay across assigned deliveries
        total_distance: Sum of route distances across assigned deliveries
    """
    driver: Driver
    current_hours: float
    current_time: datetime
    assigned_orders: List[DeliveryResult] = field(default_factory=list)
    total_earnings: float = 0.0
    total_distance: float = 0.0

    @classmethod
    def from_driver(cls, driver: Driver, start_time: datetime) -> DriverState:
        return cls(driver=driver, current_hours=driver.current_shift_hours, current_time=start_time)

    @property
    def is_used(self) -> bool:
        return len(self.assigned_orders) > 0

    def apply(self, result: DeliveryResult) -> None:
        """Advance this driver's state past a completed delivery."""
        self.assigned_orders.append(result)
        self.total_earnings += result.driver_earnings
        self.total_distance += result.distance
        self.current_hours += result.time_spent / 60
        self.current_time = utils.add_minutes(self.current_time, result.time_spent)

    def __repr__(self) -> str:
        return (f"DriverState({self.driver.driver_id}, {self.current_hours:.2f}h, "
                f"orders={len(self.assigned_orders)})")


def sort_orders(orders: Sequence[Order]) -> List[Order]:
    """
    Order the dispatch queue: priority weight descending, then value descending.

    Python's sort is stable, so orders with equal priority and value keep
    their input order.
    """
    return sorted(
        orders,
        key=lambda o: (-scoring.priority_weight(o.priority), -o.value_rs),
    )


def simulate_delivery(
    state: DriverState,
    order: Order,
    start_time: Optional[datetime] = None,
) -> DeliveryResult:
    """
    Simulate one driver completing one order.

    Delivery time is the route's base time scaled by traffic and by the
    driver's current fatigue. The driver's clock decides on-time status.

    Args:
        state: The driver's current running state (not modified)
        order: The order, with its route populated
        start_time: Clock to use if the driver state has none yet

    Returns:
        DeliveryResult with full-precision money values

    Raises:
        ValueError: If the order has no route
    """
    route = order.route
    if route is None:
        raise ValueError(f"Order {order.order_id} has no route to simulate")

    driver = state.driver
    fatigue = scoring.fatigue_factor(state.current_hours)
    traffic = scoring.traffic_multiplier(route.traffic_level)
    actual_time = utils.round_int(route.base_time_minutes * traffic * fatigue)

    fuel_cost_value = scoring.fuel_cost(route)
    driver_earnings = (actual_time / 60) * driver.hourly_rate
    bonus = scoring.delivery_bonus(order)

    clock = state.current_time if state.current_time is not None else start_time
    delivery_time = utils.add_minutes(clock, actual_time)
    is_on_time = delivery_time <= order.scheduled_delivery_time

    revenue = order.value_rs * config.COMMISSION_RATE
    profit = revenue - (fuel_cost_value + driver_earnings) + bonus

    return DeliveryResult(
        order_id=order.order_id,
        driver_id=driver.driver_id,
        driver_name=driver.name,
        route_id=route.route_id,
        distance=route.distance_km,
        time_spent=actual_time,
        fuel_cost=fuel_cost_value,
        driver_earnings=driver_earnings,
        delivery_bonus=bonus,
        revenue=revenue,
        profit=profit,
        is_on_time=is_on_time,
        scheduled_time=order.scheduled_delivery_time,
        actual_delivery_time=delivery_time,
        fatigue_factor=fatigue,
        traffic_multiplier=traffic,
    )


class DispatchEngine:
    """
    Greedy, non-backtracking order-to-driver assignment.

    Attributes:
        max_hours_per_driver: Hour budget no driver may exceed
    """

    def __init__(self, max_hours_per_driver: float) -> None:
        self.max_hours_per_driver = max_hours_per_driver

    def can_take(self, state: DriverState, order: Order) -> bool:
        """True if the driver can finish the order within the hour budget."""
        fatigue = scoring.fatigue_factor(state.current_hours)
        estimated_hours = scoring.estimated_time_minutes(order.route, fatigue) / 60
        return state.current_hours + estimated_hours <= self.max_hours_per_driver

    def find_optimal_driver(
        self,
        driver_states: Sequence[DriverState],
        order: Order,
    ) -> Optional[DriverState]:
        """
        Pick the best driver for an order.

        Drivers that would exceed the hour budget are skipped. Among the
        rest, the strictly highest score wins, so the first driver scanned
        wins a tie. A winner must also score above config.MIN_WINNING_SCORE.

        Returns:
            The winning DriverState, or None if the order has no route or
            no driver can take it
        """
        route = order.route
        if route is None:
            return None

        best_state: Optional[DriverState] = None
        best_score = config.MIN_WINNING_SCORE

        for state in driver_states:
            if not self.can_take(state, order):
                continue

            score = scoring.calculate_driver_score(state, order, route)
            if score > best_score:
                best_score = score
                best_state = state

        return best_state

    def _check_hours(self, state: DriverState) -> None:
        # Guarded by can_take(); a breach here means the time model changed under us.
        if state.current_hours > self.max_hours_per_driver:
            raise SimulationError(
                f"Driver {state.driver.driver_id} exceeded {self.max_hours_per_driver}h "
                f"({state.current_hours:.2f}h)"
            )

    def run_greedy(
        self,
        drivers: Sequence[Driver],
        orders: Sequence[Order],
        start_time: datetime,
    ) -> Tuple[List[DriverState], List[DeliveryResult]]:
        """
        Assign and simulate every order that some driver can take.

        Args:
            drivers: Candidate drivers, in tie-break order
            orders: Orders to dispatch (any order; they are sorted here)
            start_time: Simulation clock start for every driver

        Returns:
            Tuple of (driver_states, order_results). order_results is in
            dispatch order; skipped orders do not appear.
        """
        driver_states = [DriverState.from_driver(d, start_time) for d in drivers]
        order_results: List[DeliveryResult] = []

        for order in sort_orders(orders):
            if order.route is None:
                logger.warning("Skipping order %s: no assigned route", order.order_id)
                continue

            best_state = self.find_optimal_driver(driver_states, order)
            if best_state is None:
                logger.debug("No eligible driver for order %s (max %sh, min score %s)",
                             order.order_id, self.max_hours_per_driver,
                             config.MIN_WINNING_SCORE)
                continue

            result = simulate_delivery(best_state, order, start_time)
            best_state.apply(result)
            self._check_hours(best_state)
            order_results.append(result)

            logger.debug("Order %s -> driver %s (%d min, on_time=%s)",
                         order.order_id, best_state.driver.driver_id,
                         result.time_spent, result.is_on_time)

        return driver_states, order_results
