# greencart/simulation.py
"""
Simulation Engine for the GreenCart delivery simulation.

This module turns the dispatch engine into a complete, guarded run:
- Data loading (CSV scenarios) and selection of eligible drivers/orders
- One Simulation per run, working on private copies of its inputs
- Aggregation of delivery results into per-driver and fleet KPIs
- SimulationService, which allows at most one run at a time and keeps
  the last completed result for status queries

KEY METRIC: Efficiency Score = completion*0.4 + on-time*0.4 + utilization*0.2
"""

from __future__ import annotations

import copy
import csv
import logging
import math
import os
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import config, utils
from .dispatch import DeliveryResult, DispatchEngine, DriverState
from .exceptions import (
    NoDriversAvailableError,
    NoPendingOrdersError,
    SimulationError,
    SimulationInProgressError,
    ValidationError,
)
from .models import Driver, Order, OrderStatus, Route

logger = logging.getLogger(__name__)


@dataclass
class DriverPerformance:
    """Per-driver summary for drivers that received at least one order."""
    driver_id: str
    driver_name: str
    orders_completed: int
    total_earnings: int
    total_distance: float
    hours_worked: float
    efficiency: float
    on_time_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "driverId": self.driver_id,
            "driverName": self.driver_name,
            "ordersCompleted": self.orders_completed,
            "totalEarnings": self.total_earnings,
            "totalDistance": self.total_distance,
            "hoursWorked": self.hours_worked,
            "efficiency": self.efficiency,
            "onTimeRate": self.on_time_rate,
        }


@dataclass
class SimulationResults:
    """
    Container for simulation results and KPIs.

    Totals are rounded once, here, from full-precision sums.
    """
    total_profit: int
    total_fuel_cost: int
    total_orders: int
    on_time_deliveries: int
    late_deliveries: int
    drivers_used: int
    efficiency_score: float
    completion_rate: float
    on_time_rate: float
    utilization_rate: float
    total_distance: float
    total_time: int
    driver_performance: List[DriverPerformance] = field(default_factory=list)
    order_results: List[DeliveryResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape exposed to callers."""
        return {
            "totalProfit": self.total_profit,
            "totalFuelCost": self.total_fuel_cost,
            "totalOrders": self.total_orders,
            "onTimeDeliveries": self.on_time_deliveries,
            "lateDeliveries": self.late_deliveries,
            "driversUsed": self.drivers_used,
            "efficiencyScore": self.efficiency_score,
            "driverPerformance": [p.to_dict() for p in self.driver_performance],
            "orderResults": [r.to_dict() for r in self.order_results],
            "optimizationDetails": {
                "totalDistance": self.total_distance,
                "totalTime": self.total_time,
                "averageUtilization": self.utilization_rate,
            },
        }


# =============================================================================
# AGGREGATION
# =============================================================================

def driver_efficiency(state: DriverState) -> float:
    """Profit per hour worked, 0 when the driver has no orders or no hours."""
    if not state.assigned_orders:
        return 0.0
    total_profit = sum(r.profit for r in state.assigned_orders)
    if state.current_hours <= 0:
        return 0.0
    return utils.round_half_up(total_profit / state.current_hours, 2)


def build_driver_performance(state: DriverState) -> DriverPerformance:
    completed = len(state.assigned_orders)
    on_time = sum(1 for r in state.assigned_orders if r.is_on_time)
    return DriverPerformance(
        driver_id=state.driver.driver_id,
        driver_name=state.driver.name,
        orders_completed=completed,
        total_earnings=utils.round_int(state.total_earnings),
        total_distance=utils.round_half_up(state.total_distance, 2),
        hours_worked=utils.round_half_up(state.current_hours, 2),
        efficiency=driver_efficiency(state),
        on_time_rate=utils.safe_percentage(on_time, completed),
    )


def aggregate_results(
    driver_states: Sequence[DriverState],
    order_results: Sequence[DeliveryResult],
    total_input_orders: int,
    max_hours_per_driver: float,
) -> SimulationResults:
    """
    Roll delivery results up into fleet-wide KPIs.

    Args:
        driver_states: Final state of every driver in the run
        order_results: Every simulated delivery, in dispatch order
        total_input_orders: Orders offered to the run, including dropped ones
        max_hours_per_driver: The run's hour budget (for utilization)

    Returns:
        SimulationResults
    """
    total_orders = len(order_results)
    on_time = sum(1 for r in order_results if r.is_on_time)
    total_profit = sum(r.profit for r in order_results)
    total_fuel = sum(r.fuel_cost for r in order_results)
    total_distance = sum(r.distance for r in order_results)
    total_time = sum(r.time_spent for r in order_results)

    used_states = [s for s in driver_states if s.is_used]
    drivers_used = len(used_states)

    completion_rate = utils.safe_percentage(total_orders, total_input_orders)
    on_time_rate = utils.safe_percentage(on_time, total_orders)
    utilization_rate = utils.safe_percentage(
        total_time, drivers_used * max_hours_per_driver * 60
    )

    efficiency_score = (
        completion_rate * config.W_COMPLETION_RATE
        + on_time_rate * config.W_ON_TIME_RATE
        + utilization_rate * config.W_UTILIZATION_RATE
    )

    return SimulationResults(
        total_profit=utils.round_int(total_profit),
        total_fuel_cost=utils.round_int(total_fuel),
        total_orders=total_orders,
        on_time_deliveries=on_time,
        late_deliveries=total_orders - on_time,
        drivers_used=drivers_used,
        efficiency_score=utils.round_half_up(efficiency_score, 2),
        completion_rate=utils.round_half_up(completion_rate, 2),
        on_time_rate=utils.round_half_up(on_time_rate, 2),
        utilization_rate=utils.round_half_up(utilization_rate, 2),
        total_distance=utils.round_half_up(total_distance, 2),
        total_time=total_time,
        driver_performance=[build_driver_performance(s) for s in used_states],
        order_results=list(order_results),
    )


# =============================================================================
# INPUT SELECTION
# =============================================================================

def validate_parameters(number_of_drivers: int, max_hours_per_driver: float) -> None:
    """
    Check run parameters before anything else happens.

    The driver count must be a whole number; the hour budget must be a
    finite number.

    Raises:
        ValidationError: If either parameter is missing, of the wrong type
            or out of range
    """
    if (isinstance(number_of_drivers, bool)
            or not isinstance(number_of_drivers, int)
            or number_of_drivers < config.MIN_DRIVERS
            or number_of_drivers > config.MAX_DRIVERS):
        raise ValidationError(
            f"Number of drivers must be between {config.MIN_DRIVERS} and {config.MAX_DRIVERS}"
        )
    if (isinstance(max_hours_per_driver, bool)
            or not isinstance(max_hours_per_driver, (int, float))
            or not math.isfinite(max_hours_per_driver)
            or max_hours_per_driver < config.MIN_HOURS_PER_DRIVER
            or max_hours_per_driver > config.MAX_HOURS_PER_DRIVER):
        raise ValidationError(
            f"Max hours per driver must be between {config.MIN_HOURS_PER_DRIVER} "
            f"and {config.MAX_HOURS_PER_DRIVER}"
        )


def select_available_drivers(drivers: Iterable[Driver], limit: int) -> List[Driver]:
    """
    Active drivers, least-worked first, then highest rated, at most ``limit``.

    The result order is the dispatcher's tie-break order.
    """
    active = [d for d in drivers if d.is_active]
    active.sort(key=lambda d: (d.current_shift_hours, -d.rating))
    return active[:limit]


def select_pending_orders(
    orders: Iterable[Order],
    routes: Optional[Mapping[str, Route]] = None,
) -> List[Order]:
    """
    Pending orders with their route resolved.

    Orders whose route is missing are kept; the dispatcher skips them.
    Orders that need their route filled in are returned as copies.
    """
    pending: List[Order] = []
    for order in orders:
        if order.status != OrderStatus.PENDING.value:
            continue
        if order.route is None and routes is not None and order.route_id:
            order = replace(order, route=routes.get(order.route_id))
        pending.append(order)
    return pending


# =============================================================================
# SIMULATION
# =============================================================================

class Simulation:
    """
    One greedy assignment-and-delivery run.

    The drivers and orders are deep-copied on construction, so nothing the
    run does is visible on the caller's records.

    Attributes:
        drivers: Private copies of the candidate drivers, in tie-break order
        orders: Private copies of the orders to dispatch
        max_hours_per_driver: Hour budget per driver
        start_time: Clock start for every driver
    """

    def __init__(
        self,
        drivers: Sequence[Driver],
        orders: Sequence[Order],
        max_hours_per_driver: float,
        start_time: Optional[datetime] = None,
    ) -> None:
        # Copied together so orders sharing a Route still share one copy.
        self.drivers, self.orders = copy.deepcopy((list(drivers), list(orders)))
        self.max_hours_per_driver = max_hours_per_driver
        self.start_time: datetime = utils.to_naive_utc(start_time) if start_time else datetime.now()
        self.dispatch_engine = DispatchEngine(max_hours_per_driver)

    @staticmethod
    def load_data(
        drivers_file: str,
        routes_file: str,
        orders_file: str,
    ) -> Tuple[List[Driver], Dict[str, Route], List[Order]]:
        """
        Load a scenario from CSV files.

        Args:
            drivers_file: Path to drivers CSV
            routes_file: Path to routes CSV
            orders_file: Path to orders CSV

        Returns:
            Tuple of (drivers, routes_by_id, orders). Orders have their
            route populated when the route id is known.

        Raises:
            FileNotFoundError: If a file doesn't exist
            ValueError: If a file's format is invalid
        """
        for path in (drivers_file, routes_file, orders_file):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Data file not found: {path}")

        drivers: List[Driver] = []
        with open(drivers_file, "r", newline="") as f:
            for row in csv.DictReader(f):
                try:
                    drivers.append(Driver(
                        driver_id=row["driver_id"],
                        name=row["name"],
                        hourly_rate=float(row["hourly_rate"]),
                        rating=float(row.get("rating") or 5.0),
                        current_shift_hours=float(row.get("current_shift_hours") or 0),
                        status=row.get("status") or "active",
                        employee_id=row.get("employee_id") or None,
                        past_7_day_hours=float(row.get("past_7_day_hours") or 0),
                    ))
                except (KeyError, ValueError) as e:
                    raise ValueError(f"Invalid driver data in {drivers_file}: {e}")

        routes: Dict[str, Route] = {}
        with open(routes_file, "r", newline="") as f:
            for row in csv.DictReader(f):
                try:
                    route = Route(
                        route_id=row["route_id"],
                        name=row.get("name") or "",
                        distance_km=float(row["distance_km"]),
                        traffic_level=row["traffic_level"],
                        base_time_minutes=float(row["base_time_minutes"]),
                        fuel_cost_per_km=float(
                            row.get("fuel_cost_per_km") or config.DEFAULT_FUEL_COST_PER_KM
                        ),
                        toll_charges=float(row.get("toll_charges") or 0),
                        total_completions=int(row.get("total_completions") or 0),
                    )
                except (KeyError, ValueError) as e:
                    raise ValueError(f"Invalid route data in {routes_file}: {e}")
                routes[route.route_id] = route

        orders: List[Order] = []
        with open(orders_file, "r", newline="") as f:
            for row in csv.DictReader(f):
                try:
                    route_id = row.get("route_id") or None
                    delivered_at = row.get("delivery_timestamp")
                    actual_minutes = row.get("actual_delivery_time")
                    created_at = row.get("created_at")
                    orders.append(Order(
                        order_id=row["order_id"],
                        value_rs=float(row["value_rs"]),
                        route_id=route_id,
                        route=routes.get(route_id) if route_id else None,
                        scheduled_delivery_time=utils.parse_datetime(row["scheduled_delivery_time"]),
                        priority=row.get("priority") or "medium",
                        status=row.get("status") or "pending",
                        customer_name=row.get("customer_name") or "",
                        delivery_timestamp=utils.parse_datetime(delivered_at) if delivered_at else None,
                        actual_delivery_time=float(actual_minutes) if actual_minutes else None,
                        created_at=utils.parse_datetime(created_at) if created_at else None,
                    ))
                except (KeyError, ValueError) as e:
                    raise ValueError(f"Invalid order data in {orders_file}: {e}")

        return drivers, routes, orders

    def run(self) -> SimulationResults:
        """
        Run the full simulation.

        Returns:
            SimulationResults for this run
        """
        logger.info("Starting simulation: %d drivers, %d orders, max %sh/driver",
                    len(self.drivers), len(self.orders), self.max_hours_per_driver)

        driver_states, order_results = self.dispatch_engine.run_greedy(
            self.drivers, self.orders, self.start_time
        )

        dropped = len(self.orders) - len(order_results)
        if dropped:
            logger.info("%d order(s) could not be assigned", dropped)

        return aggregate_results(
            driver_states, order_results, len(self.orders), self.max_hours_per_driver
        )


# =============================================================================
# SERVICE
# =============================================================================

class SimulationService:
    """
    Runs simulations one at a time and remembers the last result.

    A second request while a run is executing is rejected immediately with
    SimulationInProgressError; it is never queued. The lock is released on
    every exit path.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.last_results: Optional[Dict[str, Any]] = None

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def run_simulation(
        self,
        drivers: Iterable[Driver],
        orders: Iterable[Order],
        number_of_drivers: int,
        max_hours_per_driver: float,
        start_time: Optional[datetime] = None,
        routes: Optional[Mapping[str, Route]] = None,
    ) -> Dict[str, Any]:
        """
        Validate, select inputs, run, and cache the result.

        Args:
            drivers: Driver pool; inactive drivers are filtered out here
            orders: Order pool; only pending orders are simulated
            number_of_drivers: How many drivers to use (1 - 50)
            max_hours_per_driver: Hour budget per driver (1 - 24)
            start_time: Simulation clock start, defaults to now
            routes: Optional route lookup for orders without a populated route

        Returns:
            The result dictionary, with 'timestamp' and 'parameters' added

        Raises:
            ValidationError: Parameters out of range
            SimulationInProgressError: Another run is executing
            NoDriversAvailableError: No active drivers
            NoPendingOrdersError: No pending orders
            SimulationError: The run failed; previous results are kept
        """
        validate_parameters(number_of_drivers, max_hours_per_driver)

        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected simulation request: a run is already in progress")
            raise SimulationInProgressError()

        try:
            available = select_available_drivers(drivers, number_of_drivers)
            if not available:
                raise NoDriversAvailableError()

            pending = select_pending_orders(orders, routes)
            if not pending:
                raise NoPendingOrdersError()

            try:
                results = Simulation(available, pending, max_hours_per_driver, start_time).run()
            except SimulationError:
                logger.exception("Simulation error")
                raise
            except Exception as exc:
                logger.exception("Simulation error")
                raise SimulationError("Simulation failed") from exc

            payload = results.to_dict()
            payload["timestamp"] = datetime.now().isoformat()
            payload["parameters"] = {
                "numberOfDrivers": number_of_drivers,
                "startTime": start_time.isoformat() if start_time else None,
                "maxHoursPerDriver": max_hours_per_driver,
            }
            self.last_results = payload

            logger.info("Simulation completed with %d orders and %d drivers",
                        results.total_orders, results.drivers_used)
            return payload
        finally:
            self._lock.release()

    def get_status(self) -> Dict[str, Any]:
        return {
            "inProgress": self.in_progress,
            "lastResults": self.last_results,
        }


# Process-wide instance used by the CLI and the dashboard.
default_service = SimulationService()


def run_simulation(*args: Any, **kwargs: Any) -> Dict[str, Any]:
    """Run on the process-wide service. See SimulationService.run_simulation."""
    return default_service.run_simulation(*args, **kwargs)


def get_simulation_status() -> Dict[str, Any]:
    return default_service.get_status()
