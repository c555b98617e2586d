# greencart/models.py
"""
Core domain models for the GreenCart delivery simulation.

This module defines the fundamental data structures used throughout the system:
- Driver: A courier with a rating, pay rate and hours worked today
- Route: A delivery lane with distance, traffic and cost characteristics
- Order: A delivery request bound to a route, optionally assigned to a driver

Records are plain dataclasses. Derived values (fatigue, traffic, fuel cost,
bonus) are computed by greencart.scoring; the methods here are thin
conveniences over those functions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from . import config, scoring, utils
from .exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class DriverStatus(str, Enum):
    """Employment state of a driver. Only ACTIVE drivers are dispatched."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on-leave"


class OrderStatus(str, Enum):
    """Lifecycle states for an order in the delivery system."""
    PENDING = "pending"          # Created, awaiting assignment
    ASSIGNED = "assigned"        # Driver chosen, not yet on the road
    IN_PROGRESS = "in-progress"  # Out for delivery
    DELIVERED = "delivered"      # Handed over to the customer
    LATE = "late"                # Flagged late by operations
    CANCELLED = "cancelled"


class TrafficLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def _plain(value: Any) -> Any:
    """Store enum members as their wire string so dict lookups keep working."""
    return value.value if isinstance(value, Enum) else value


def _check_range(name: str, value: float, low: float, high: Optional[float] = None) -> None:
    if value < low or (high is not None and value > high):
        bound = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise ValueError(f"{name} must be {bound} (got {value})")


@dataclass
class Driver:
    """
    Represents a driver in the delivery fleet.

    Attributes:
        driver_id: Unique identifier
        name: Display name
        hourly_rate: Pay in Rs per hour worked
        rating: Customer rating, 1.0 - 5.0
        current_shift_hours: Hours already worked today (0 - 24)
        status: One of DriverStatus values

    Bookkeeping (not used by the simulation):
        employee_id, past_7_day_hours, max_hours_per_day, total_deliveries
    """
    driver_id: str
    name: str
    hourly_rate: float
    rating: float = 5.0
    current_shift_hours: float = 0.0
    status: str = DriverStatus.ACTIVE.value

    employee_id: Optional[str] = None
    past_7_day_hours: float = 0.0
    max_hours_per_day: float = 8.0
    total_deliveries: int = 0

    def __post_init__(self) -> None:
        self.status = _plain(self.status)
        if self.status not in {s.value for s in DriverStatus}:
            raise ValueError(f"Unknown driver status: {self.status!r}")
        _check_range("rating", self.rating, 1.0, 5.0)
        _check_range("hourly_rate", self.hourly_rate, 0.0)
        _check_range("current_shift_hours", self.current_shift_hours, 0.0, 24.0)
        _check_range("past_7_day_hours", self.past_7_day_hours, 0.0, 168.0)
        _check_range("max_hours_per_day", self.max_hours_per_day, 1.0, 24.0)

    @property
    def is_active(self) -> bool:
        return self.status == DriverStatus.ACTIVE.value

    def fatigue_factor(self) -> float:
        """Fatigue multiplier for the hours already worked this shift."""
        return scoring.fatigue_factor(self.current_shift_hours)

    def can_work_more_hours(self, additional_hours: float = 0.0) -> bool:
        """True if the driver stays within max_hours_per_day after additional_hours."""
        return self.current_shift_hours + additional_hours <= self.max_hours_per_day

    def reset_shift_hours(self) -> None:
        """Start a new day."""
        self.current_shift_hours = 0.0

    def __repr__(self) -> str:
        return f"Driver({self.driver_id}, {self.status}, {self.current_shift_hours}h)"


@dataclass
class Route:
    """
    Represents a delivery route.

    Attributes:
        route_id: Unique identifier
        distance_km: Length of the route (0.1 - 1000)
        traffic_level: 'Low', 'Medium' or 'High'
        base_time_minutes: Traversal time with no traffic or fatigue (1 - 1440)
        fuel_cost_per_km: Rs per km
        toll_charges: Flat tolls in Rs
        total_completions: Real (non-simulated) deliveries completed on this route
        average_completion_time: Running mean of actual minutes, defaults to base time
    """
    route_id: str
    distance_km: float
    traffic_level: str
    base_time_minutes: float
    fuel_cost_per_km: float = config.DEFAULT_FUEL_COST_PER_KM
    toll_charges: float = 0.0
    total_completions: int = 0
    average_completion_time: Optional[float] = None

    name: str = ""
    difficulty: str = "Medium"
    is_active: bool = True

    def __post_init__(self) -> None:
        self.traffic_level = _plain(self.traffic_level)
        _check_range("distance_km", self.distance_km, 0.1, 1000.0)
        _check_range("base_time_minutes", self.base_time_minutes, 1.0, 1440.0)
        _check_range("fuel_cost_per_km", self.fuel_cost_per_km, 0.0)
        _check_range("toll_charges", self.toll_charges, 0.0)
        _check_range("total_completions", self.total_completions, 0)
        if self.average_completion_time is None:
            self.average_completion_time = self.base_time_minutes

    def traffic_multiplier(self) -> float:
        return scoring.traffic_multiplier(self.traffic_level)

    def fuel_cost(self) -> float:
        return scoring.fuel_cost(self)

    def estimated_time(self, fatigue: float = 1.0) -> int:
        """Minutes to traverse the route for a driver with the given fatigue factor."""
        return scoring.estimated_time_minutes(self, fatigue)

    def update_average_time(self, actual_minutes: float) -> None:
        """
        Fold one real delivery into the running average.

        new_avg = round((avg * count + actual) / (count + 1)); count += 1
        """
        total = self.average_completion_time * self.total_completions + actual_minutes
        self.total_completions += 1
        self.average_completion_time = utils.round_int(total / self.total_completions)

    def __repr__(self) -> str:
        return f"Route({self.route_id}, {self.distance_km}km, {self.traffic_level})"


@dataclass
class Order:
    """
    Represents a delivery order.

    Attributes:
        order_id: Unique identifier
        value_rs: Order value in Rs (1 - 1,000,000)
        route_id: Identifier of the assigned route (required by the business)
        scheduled_delivery_time: Promised delivery timestamp
        priority: 'low', 'medium', 'high' or 'urgent'
        status: Current lifecycle state
        route: The resolved Route, populated by the loader. Orders without
            one are skipped by the dispatcher.
        assigned_driver_id: Driver the order is assigned to, if any
        is_high_value: Computed from value_rs at creation, never re-evaluated

    Completion data:
        delivery_timestamp: When the order was delivered
        actual_delivery_time: Minutes the delivery took
    """
    order_id: str
    value_rs: float
    route_id: Optional[str]
    scheduled_delivery_time: datetime
    priority: str = Priority.MEDIUM.value
    status: str = OrderStatus.PENDING.value
    route: Optional[Route] = None
    assigned_driver_id: Optional[str] = None
    is_high_value: Optional[bool] = None

    delivery_timestamp: Optional[datetime] = None
    actual_delivery_time: Optional[float] = None

    customer_name: str = ""
    delivery_attempts: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.priority = _plain(self.priority)
        self.status = _plain(self.status)
        if self.status not in {s.value for s in OrderStatus}:
            raise ValueError(f"Unknown order status: {self.status!r}")
        _check_range("value_rs", self.value_rs, 1.0, 1_000_000.0)
        self.scheduled_delivery_time = utils.to_naive_utc(self.scheduled_delivery_time)
        if self.delivery_timestamp is not None:
            self.delivery_timestamp = utils.to_naive_utc(self.delivery_timestamp)
        if self.created_at is not None:
            self.created_at = utils.to_naive_utc(self.created_at)
        if self.is_high_value is None:
            self.is_high_value = self.value_rs >= config.HIGH_VALUE_THRESHOLD
        if self.route is not None and self.route_id is None:
            self.route_id = self.route.route_id

    def is_late(self) -> bool:
        return scoring.is_late(self.delivery_timestamp, self.scheduled_delivery_time)

    def delivery_bonus(self) -> float:
        return scoring.delivery_bonus(self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _transition(self, expected: OrderStatus, target: OrderStatus) -> None:
        if self.status != expected.value:
            raise InvalidTransitionError(self.order_id, self.status, target.value)
        self.status = target.value

    def assign_to(self, driver_id: str) -> None:
        self._transition(OrderStatus.PENDING, OrderStatus.ASSIGNED)
        self.assigned_driver_id = driver_id

    def start_delivery(self) -> None:
        self._transition(OrderStatus.ASSIGNED, OrderStatus.IN_PROGRESS)
        self.delivery_attempts += 1

    def mark_as_delivered(self, actual_minutes: Optional[float] = None,
                          delivered_at: Optional[datetime] = None) -> None:
        """
        Complete the delivery. Only orders in progress can be delivered.

        Also folds actual_minutes into the route's running average when
        the route is populated.

        Raises:
            InvalidTransitionError: If the order is not in progress
        """
        self._transition(OrderStatus.IN_PROGRESS, OrderStatus.DELIVERED)
        self.delivery_timestamp = utils.to_naive_utc(delivered_at) if delivered_at else datetime.now()
        self.actual_delivery_time = actual_minutes
        if self.route is not None and actual_minutes:
            self.route.update_average_time(actual_minutes)
        logger.info("Order marked as delivered: %s", self.order_id)

    def __repr__(self) -> str:
        return f"Order({self.order_id}, {self.status}, Rs {self.value_rs})"
