# greencart/__init__.py

from .models import Driver, Route, Order, DriverStatus, OrderStatus, TrafficLevel, Priority
from .dispatch import DispatchEngine, DriverState, DeliveryResult, simulate_delivery, sort_orders
from .simulation import (
    Simulation,
    SimulationResults,
    SimulationService,
    aggregate_results,
    get_simulation_status,
    run_simulation,
)
from .scoring import (
    calculate_driver_score,
    delivery_bonus,
    estimated_time_minutes,
    fatigue_factor,
    fuel_cost,
    is_late,
    traffic_multiplier,
)
from .dashboard import calculate_chart_data, calculate_dashboard_kpis
from .exceptions import (
    GreenCartError,
    ValidationError,
    PreconditionError,
    NoDriversAvailableError,
    NoPendingOrdersError,
    SimulationInProgressError,
    SimulationError,
    InvalidTransitionError,
)

__version__ = "1.0.0"
__author__ = "GreenCart Logistics Team"

__all__ = [
    # Models
    "Driver",
    "Route",
    "Order",
    "DriverStatus",
    "OrderStatus",
    "TrafficLevel",
    "Priority",
    # Core
    "DispatchEngine",
    "DriverState",
    "DeliveryResult",
    "Simulation",
    "SimulationResults",
    "SimulationService",
    # Functions
    "simulate_delivery",
    "sort_orders",
    "aggregate_results",
    "run_simulation",
    "get_simulation_status",
    "calculate_driver_score",
    "delivery_bonus",
    "estimated_time_minutes",
    "fatigue_factor",
    "fuel_cost",
    "is_late",
    "traffic_multiplier",
    "calculate_dashboard_kpis",
    "calculate_chart_data",
    # Errors
    "GreenCartError",
    "ValidationError",
    "PreconditionError",
    "NoDriversAvailableError",
    "NoPendingOrdersError",
    "SimulationInProgressError",
    "SimulationError",
    "InvalidTransitionError",
]
