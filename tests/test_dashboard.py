from datetime import datetime, timezone

import pytest

from greencart.dashboard import calculate_chart_data, calculate_dashboard_kpis, order_profit
from greencart.models import Route
from greencart.utils import parse_datetime

NOW = datetime(2025, 1, 15, 9, 0)


@pytest.fixture
def history(make_order, short_route):
    """Two deliveries and a pending order this week, one delivery the week before."""
    return [
        # On time: 500 - 85 - 75 + 100 = 440
        make_order("A", route=short_route, value_rs=5000, status="delivered",
                   created_at=datetime(2025, 1, 13, 9), actual_delivery_time=30,
                   scheduled_delivery_time=datetime(2025, 1, 13, 12),
                   delivery_timestamp=datetime(2025, 1, 13, 11)),
        # 1.5h late: 200 - 85 - 150 - 100 = -135
        make_order("B", route=short_route, value_rs=2000, status="delivered",
                   created_at=datetime(2025, 1, 12, 9), actual_delivery_time=60,
                   scheduled_delivery_time=datetime(2025, 1, 12, 12),
                   delivery_timestamp=datetime(2025, 1, 12, 13, 30)),
        make_order("C", route=short_route, created_at=datetime(2025, 1, 14, 18)),
        make_order("D", route=short_route, value_rs=5000, status="delivered",
                   created_at=datetime(2025, 1, 3, 9), actual_delivery_time=30,
                   scheduled_delivery_time=datetime(2025, 1, 3, 12),
                   delivery_timestamp=datetime(2025, 1, 3, 11)),
        make_order("no-date", route=short_route, status="delivered"),
    ]


def test_order_profit(history):
    profit, fuel = order_profit(history[0])
    assert profit == pytest.approx(440)
    assert fuel == pytest.approx(85)


def test_order_profit_resolves_route_by_id(make_order, short_route):
    order = make_order("A", value_rs=5000, status="delivered", actual_delivery_time=30,
                       delivery_timestamp=datetime(2025, 1, 15, 11))
    order.route_id = short_route.route_id

    assert order_profit(order)[1] == 0
    profit, fuel = order_profit(order, {short_route.route_id: short_route})
    assert fuel == pytest.approx(85)
    assert profit == pytest.approx(440)


def test_weekly_kpis(history):
    data = calculate_dashboard_kpis(history, now=NOW, time_range="7d")
    kpis = data["kpis"]

    assert data["timeRange"] == "7d"
    assert data["summary"] == {
        "totalOrders": 3,
        "deliveredOrders": 2,
        "onTimeRate": 33.33,
        "totalFuelCost": 170,
    }
    assert kpis["totalProfit"]["value"] == 305
    # (305 - 440) / 440
    assert kpis["totalProfit"]["trend"] == -30.68
    # 33.33 * 0.6 + 66.67 * 0.4
    assert kpis["efficiencyScore"]["value"] == 46.67
    assert kpis["onTimeDeliveries"]["value"] == 1
    assert kpis["onTimeDeliveries"]["trend"] == 0
    assert kpis["lateDeliveries"]["value"] == 1
    assert kpis["lateDeliveries"]["trend"] == 1


def test_short_window(history):
    data = calculate_dashboard_kpis(history, now=NOW, time_range="24h")
    assert data["summary"]["totalOrders"] == 1
    assert data["kpis"]["totalProfit"]["value"] == 0


def test_unknown_range_falls_back_to_week(history):
    assert calculate_dashboard_kpis(history, now=NOW, time_range="1y")["timeRange"] == "7d"


def test_empty_history():
    data = calculate_dashboard_kpis([], now=NOW)
    assert data["summary"]["totalOrders"] == 0
    assert data["kpis"]["efficiencyScore"]["value"] == 0
    assert data["kpis"]["totalProfit"]["trend"] == 0


class TestChartData:

    def test_status_breakdown_skips_empty_statuses(self, history):
        charts = calculate_chart_data(history, now=NOW, time_range="7d")
        assert charts["timeRange"] == "7d"
        assert charts["deliveryStatus"] == [
            {"name": "Delivered", "value": 1, "fill": "#22c55e"},
            {"name": "Late", "value": 1, "fill": "#ef4444"},
            {"name": "Pending", "value": 1, "fill": "#6b7280"},
        ]

    def test_in_progress_label(self, make_order, short_route):
        orders = [make_order("X", route=short_route, status="in-progress",
                             created_at=datetime(2025, 1, 14, 10))]
        status = calculate_chart_data(orders, now=NOW)["deliveryStatus"]
        assert status == [{"name": "In-progress", "value": 1, "fill": "#f59e0b"}]

    def test_fuel_cost_by_route(self, history):
        charts = calculate_chart_data(history, now=NOW)
        assert charts["fuelCosts"] == [{"route": "RT-S", "cost": 170, "orders": 2, "avgCost": 85}]

    def test_fuel_costs_top_routes_by_cost(self, make_order):
        routes = {
            f"R{i:02d}": Route(f"R{i:02d}", distance_km=i + 1, traffic_level="Low",
                               base_time_minutes=20)
            for i in range(12)
        }
        orders = []
        for route_id in routes:
            order = make_order(f"O-{route_id}", status="delivered",
                               created_at=datetime(2025, 1, 14, 10),
                               delivery_timestamp=datetime(2025, 1, 14, 11))
            order.route_id = route_id
            orders.append(order)

        fuel = calculate_chart_data(orders, routes, now=NOW)["fuelCosts"]

        assert len(fuel) == 10
        assert fuel[0] == {"route": "R11", "cost": 102, "orders": 1, "avgCost": 102}
        assert fuel[-1]["route"] == "R02"

    def test_daily_performance(self, history):
        daily = calculate_chart_data(history, now=NOW)["dailyPerformance"]

        assert [d["date"] for d in daily] == [
            "2025-01-08", "2025-01-09", "2025-01-10", "2025-01-11",
            "2025-01-12", "2025-01-13", "2025-01-14",
        ]
        by_date = {d["date"]: d for d in daily}
        assert by_date["2025-01-12"] == {"date": "2025-01-12", "delivered": 0, "late": 1, "revenue": 200}
        assert by_date["2025-01-13"] == {"date": "2025-01-13", "delivered": 1, "late": 0, "revenue": 500}
        assert by_date["2025-01-14"]["revenue"] == 0

    def test_empty_window(self):
        charts = calculate_chart_data([], now=NOW, time_range="24h")
        assert charts["deliveryStatus"] == []
        assert charts["fuelCosts"] == []
        assert charts["dailyPerformance"] == [
            {"date": "2025-01-14", "delivered": 0, "late": 0, "revenue": 0},
        ]


def test_aware_history_timestamps(make_order, short_route):
    order = make_order("Z", route=short_route, status="delivered",
                       created_at=datetime(2025, 1, 14, 10, tzinfo=timezone.utc),
                       delivery_timestamp=parse_datetime("2025-01-15T11:00:00Z"))
    aware_now = datetime(2025, 1, 15, 9, tzinfo=timezone.utc)

    data = calculate_dashboard_kpis([order], now=aware_now, time_range="24h")
    charts = calculate_chart_data([order], now=aware_now, time_range="24h")

    assert data["summary"]["totalOrders"] == 1
    assert data["kpis"]["onTimeDeliveries"]["value"] == 1
    assert charts["dailyPerformance"][0]["delivered"] == 1
