# greencart/dashboard.py
"""
Historical KPIs and chart data for the GreenCart dashboard.

Unlike the simulation, these figures are computed from real order records
over a time window ('24h', '7d' or '30d'). KPIs are compared with the
preceding window of the same length to produce trends.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from . import config, scoring, utils
from .models import Order, OrderStatus, Route

logger = logging.getLogger(__name__)


def resolve_window(time_range: str, now: datetime) -> Tuple[str, datetime]:
    """Return (effective_range, window_start). Unknown ranges fall back to 7d."""
    if time_range not in config.TIME_RANGES_HOURS:
        logger.debug("Unknown time range %r, using %s", time_range, config.DEFAULT_TIME_RANGE)
        time_range = config.DEFAULT_TIME_RANGE
    hours = config.TIME_RANGES_HOURS[time_range]
    return time_range, now - timedelta(hours=hours)


def _in_window(orders: Iterable[Order], start: datetime, end: Optional[datetime] = None) -> List[Order]:
    return [
        o for o in orders
        if o.created_at is not None
        and o.created_at >= start
        and (end is None or o.created_at < end)
    ]


def _route_of(order: Order, routes: Optional[Mapping[str, Route]]) -> Optional[Route]:
    if order.route is not None:
        return order.route
    if routes is not None and order.route_id:
        return routes.get(order.route_id)
    return None


def order_profit(order: Order, routes: Optional[Mapping[str, Route]] = None) -> Tuple[float, float]:
    """
    Realized (profit, fuel_cost) of a delivered order.

    Driver cost uses the fleet's assumed average hourly rate since the
    historical record does not carry the driver's own rate. Orders with
    no known route contribute no fuel cost.
    """
    route = _route_of(order, routes)

    revenue = order.value_rs * config.COMMISSION_RATE
    fuel = scoring.fuel_cost(route) if route is not None else 0.0
    driver_cost = 0.0
    if order.actual_delivery_time:
        driver_cost = (order.actual_delivery_time / 60) * config.DASHBOARD_HOURLY_RATE
    profit = revenue - fuel - driver_cost + scoring.delivery_bonus(order)
    return profit, fuel


def _totals(delivered: Iterable[Order],
            routes: Optional[Mapping[str, Route]]) -> Tuple[float, float]:
    total_profit = 0.0
    total_fuel = 0.0
    for order in delivered:
        profit, fuel = order_profit(order, routes)
        total_profit += profit
        total_fuel += fuel
    return total_profit, total_fuel


def _trend(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return ((current - previous) / previous) * 100


def calculate_dashboard_kpis(
    orders: Iterable[Order],
    routes: Optional[Mapping[str, Route]] = None,
    now: Optional[datetime] = None,
    time_range: str = config.DEFAULT_TIME_RANGE,
) -> Dict[str, Any]:
    """
    Calculate the dashboard KPIs for orders created in the window.

    Args:
        orders: All known orders
        routes: Route lookup for orders whose route is not populated
        now: End of the window, defaults to the current time
        time_range: '24h', '7d' or '30d'

    Returns:
        Dictionary with 'kpis', 'timeRange' and 'summary' keys
    """
    now = utils.to_naive_utc(now) if now else datetime.now()
    orders = list(orders)
    time_range, start = resolve_window(time_range, now)

    current = _in_window(orders, start)
    total_orders = len(current)
    delivered = [o for o in current if o.status == OrderStatus.DELIVERED.value]
    late = [o for o in current if o.status == OrderStatus.LATE.value or o.is_late()]
    on_time = [o for o in delivered if not o.is_late()]

    total_profit, total_fuel = _totals(delivered, routes)

    on_time_rate = utils.safe_percentage(len(on_time), total_orders)
    completion_rate = utils.safe_percentage(len(delivered), total_orders)
    efficiency_score = (on_time_rate * config.DASHBOARD_W_ON_TIME
                        + completion_rate * config.DASHBOARD_W_COMPLETION)

    # Previous window of equal length, for trends
    prev_start = start - (now - start)
    previous = _in_window(orders, prev_start, start)
    prev_delivered = [o for o in previous if o.status == OrderStatus.DELIVERED.value]
    prev_profit, _ = _totals(prev_delivered, routes)
    prev_not_late = sum(1 for o in previous if not o.is_late())
    prev_late = len(previous) - prev_not_late
    prev_on_time_rate = utils.safe_percentage(prev_not_late, len(previous))

    kpis = {
        "totalProfit": {
            "value": utils.round_int(total_profit),
            "trend": utils.round_half_up(_trend(total_profit, prev_profit), 2),
            "label": "Total Profit",
            "format": "currency",
        },
        "efficiencyScore": {
            "value": utils.round_half_up(efficiency_score, 2),
            "trend": utils.round_half_up(_trend(on_time_rate, prev_on_time_rate), 2),
            "label": "Efficiency Score",
            "format": "percentage",
        },
        "onTimeDeliveries": {
            "value": len(on_time),
            "trend": len(on_time) - prev_not_late,
            "label": "On-time Deliveries",
            "format": "number",
        },
        "lateDeliveries": {
            "value": len(late),
            "trend": len(late) - prev_late,
            "label": "Late Deliveries",
            "format": "number",
        },
    }

    return {
        "kpis": kpis,
        "timeRange": time_range,
        "summary": {
            "totalOrders": total_orders,
            "deliveredOrders": len(delivered),
            "onTimeRate": utils.round_half_up(on_time_rate, 2),
            "totalFuelCost": utils.round_int(total_fuel),
        },
    }


# =============================================================================
# CHART DATA
# =============================================================================

def delivery_status_breakdown(orders: Iterable[Order]) -> List[Dict[str, Any]]:
    """
    Order counts per delivery status, for the status chart.

    'Delivered' counts only on-time deliveries; late deliveries and orders
    flagged late are counted under 'Late'. Statuses with no orders are
    left out.
    """
    orders = list(orders)
    counts = {
        OrderStatus.DELIVERED.value: sum(
            1 for o in orders if o.status == OrderStatus.DELIVERED.value and not o.is_late()
        ),
        OrderStatus.LATE.value: sum(
            1 for o in orders if o.status == OrderStatus.LATE.value or o.is_late()
        ),
        OrderStatus.IN_PROGRESS.value: sum(
            1 for o in orders if o.status == OrderStatus.IN_PROGRESS.value
        ),
        OrderStatus.PENDING.value: sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
        OrderStatus.CANCELLED.value: sum(
            1 for o in orders if o.status == OrderStatus.CANCELLED.value
        ),
    }
    return [
        {
            "name": status[0].upper() + status[1:],
            "value": count,
            "fill": config.STATUS_COLORS.get(status, config.DEFAULT_STATUS_COLOR),
        }
        for status, count in counts.items()
        if count > 0
    ]


def fuel_cost_by_route(
    orders: Iterable[Order],
    routes: Optional[Mapping[str, Route]] = None,
) -> List[Dict[str, Any]]:
    """Fuel cost of delivered orders grouped by route, most expensive first."""
    totals: Dict[str, Dict[str, float]] = {}
    for order in orders:
        if order.status != OrderStatus.DELIVERED.value:
            continue
        route = _route_of(order, routes)
        if route is None:
            continue
        entry = totals.setdefault(route.route_id, {"cost": 0.0, "orders": 0})
        entry["cost"] += scoring.fuel_cost(route)
        entry["orders"] += 1

    ranked = sorted(totals.items(), key=lambda item: -item[1]["cost"])
    return [
        {
            "route": route_id,
            "cost": utils.round_int(entry["cost"]),
            "orders": int(entry["orders"]),
            "avgCost": utils.round_int(entry["cost"] / entry["orders"]),
        }
        for route_id, entry in ranked[:config.TOP_FUEL_ROUTES]
    ]


def daily_performance(orders: Iterable[Order], start: datetime, now: datetime) -> List[Dict[str, Any]]:
    """
    Delivered, late and revenue per calendar day of order creation.

    Days run from the window start's date for as many days as the window
    spans (rounded up). Only delivered orders are counted.
    """
    days = math.ceil((now - start) / timedelta(days=1))
    daily: Dict[str, Dict[str, Any]] = {}
    for i in range(days):
        day = (start + timedelta(days=i)).date().isoformat()
        daily[day] = {"date": day, "delivered": 0, "late": 0, "revenue": 0.0}

    for order in orders:
        if order.created_at is None or order.status != OrderStatus.DELIVERED.value:
            continue
        entry = daily.get(order.created_at.date().isoformat())
        if entry is None:
            continue
        if order.is_late():
            entry["late"] += 1
        else:
            entry["delivered"] += 1
        entry["revenue"] += order.value_rs * config.COMMISSION_RATE

    return [dict(entry, revenue=utils.round_int(entry["revenue"])) for entry in daily.values()]


def calculate_chart_data(
    orders: Iterable[Order],
    routes: Optional[Mapping[str, Route]] = None,
    now: Optional[datetime] = None,
    time_range: str = config.DEFAULT_TIME_RANGE,
) -> Dict[str, Any]:
    """
    Chart series for orders created in the window.

    Returns:
        Dictionary with 'deliveryStatus', 'fuelCosts', 'dailyPerformance'
        and 'timeRange' keys
    """
    now = utils.to_naive_utc(now) if now else datetime.now()
    time_range, start = resolve_window(time_range, now)
    current = _in_window(orders, start)

    return {
        "deliveryStatus": delivery_status_breakdown(current),
        "fuelCosts": fuel_cost_by_route(current, routes),
        "dailyPerformance": daily_performance(current, start, now),
        "timeRange": time_range,
    }
