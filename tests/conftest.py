"""Shared fixtures for the GreenCart tests."""

from datetime import datetime
from pathlib import Path

import pytest

from greencart.dispatch import DriverState
from greencart.models import Driver, Order, Route

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def start_time():
    return datetime(2025, 1, 15, 9, 0)


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def highway():
    """Mumbai Central to Andheri: 15.5 km, High traffic, 45 min, Rs 25 toll."""
    return Route(
        route_id="RT001",
        distance_km=15.5,
        traffic_level="High",
        base_time_minutes=45,
        fuel_cost_per_km=8.5,
        toll_charges=25,
        total_completions=156,
    )


@pytest.fixture
def short_route():
    """10 km, Low traffic, 30 min, no tolls: Rs 85 fuel, 30 min per trip."""
    return Route(route_id="RT-S", distance_km=10, traffic_level="Low", base_time_minutes=30)


@pytest.fixture
def make_driver():
    def _make(driver_id="D1", **kwargs):
        fields = {"name": f"Driver {driver_id}", "hourly_rate": 150, "rating": 5.0}
        fields.update(kwargs)
        return Driver(driver_id=driver_id, **fields)
    return _make


@pytest.fixture
def make_order(start_time):
    def _make(order_id="O1", route=None, **kwargs):
        fields = {
            "value_rs": 1000,
            "scheduled_delivery_time": start_time.replace(hour=12),
            "priority": "medium",
        }
        fields.update(kwargs)
        return Order(
            order_id=order_id,
            route_id=route.route_id if route is not None else None,
            route=route,
            **fields,
        )
    return _make


@pytest.fixture
def make_state(start_time):
    def _make(driver, hours=None):
        state = DriverState.from_driver(driver, start_time)
        if hours is not None:
            state.current_hours = hours
        return state
    return _make
