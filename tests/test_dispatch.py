import logging
from datetime import datetime

import pytest

from greencart.dispatch import DispatchEngine, simulate_delivery, sort_orders


def test_sort_orders_priority_then_value(make_order):
    orders = [
        make_order("low", priority="low", value_rs=50000),
        make_order("med-small", priority="medium", value_rs=500),
        make_order("urgent", priority="urgent", value_rs=100),
        make_order("med-big", priority="medium", value_rs=9000),
        make_order("odd", priority="whenever", value_rs=700),
    ]
    ids = [o.order_id for o in sort_orders(orders)]
    assert ids == ["urgent", "med-big", "odd", "med-small", "low"]


def test_sort_orders_is_stable(make_order):
    orders = [make_order(f"O{i}") for i in range(5)]
    assert [o.order_id for o in sort_orders(orders)] == ["O0", "O1", "O2", "O3", "O4"]


class TestSimulateDelivery:

    def test_worked_example(self, make_driver, make_state, make_order, highway, start_time):
        state = make_state(make_driver(hourly_rate=150))
        order = make_order(value_rs=15000, route=highway,
                           scheduled_delivery_time=start_time.replace(hour=11))

        result = simulate_delivery(state, order)

        assert result.time_spent == 68
        assert result.fuel_cost == pytest.approx(156.75)
        assert result.driver_earnings == pytest.approx(170)
        assert result.delivery_bonus == pytest.approx(300)
        assert result.revenue == pytest.approx(1500)
        assert result.profit == pytest.approx(1473.25)
        assert result.actual_delivery_time == datetime(2025, 1, 15, 10, 8)
        assert result.is_on_time is True

        data = result.to_dict()
        assert data["profit"] == 1473
        assert data["fuelCost"] == 157
        assert data["driverEarnings"] == 170
        assert data["actualDeliveryTime"] == "2025-01-15T10:08:00"
        assert data["trafficMultiplier"] == 1.5

    def test_arriving_exactly_on_schedule_is_on_time(self, make_driver, make_state, make_order,
                                                     highway, start_time):
        order = make_order(route=highway,
                           scheduled_delivery_time=start_time.replace(hour=10, minute=8))
        assert simulate_delivery(make_state(make_driver()), order).is_on_time is True

    def test_late_arrival(self, make_driver, make_state, make_order, highway, start_time):
        order = make_order(route=highway, scheduled_delivery_time=start_time.replace(hour=10))
        assert simulate_delivery(make_state(make_driver()), order).is_on_time is False

    def test_fatigue_slows_delivery(self, make_driver, make_state, make_order, highway):
        state = make_state(make_driver(), hours=9)
        result = simulate_delivery(state, make_order(route=highway))
        # 45 * 1.5 * 1.3 = 87.75
        assert result.time_spent == 88
        assert result.fatigue_factor == 1.3

    def test_state_not_modified(self, make_driver, make_state, make_order, highway, start_time):
        state = make_state(make_driver())
        simulate_delivery(state, make_order(route=highway))
        assert state.current_hours == 0
        assert state.current_time == start_time
        assert state.assigned_orders == []

    def test_requires_route(self, make_driver, make_state, make_order):
        with pytest.raises(ValueError):
            simulate_delivery(make_state(make_driver()), make_order())


def test_apply_advances_state(make_driver, make_state, make_order, highway, start_time):
    state = make_state(make_driver())
    result = simulate_delivery(state, make_order(route=highway))
    state.apply(result)

    assert state.is_used
    assert state.current_hours == pytest.approx(68 / 60)
    assert state.current_time == datetime(2025, 1, 15, 10, 8)
    assert state.total_distance == pytest.approx(15.5)
    assert state.total_earnings == pytest.approx(170)


class TestFindOptimalDriver:

    def test_tie_goes_to_first_driver(self, make_driver, make_state, make_order, highway):
        states = [make_state(make_driver("A")), make_state(make_driver("B"))]
        best = DispatchEngine(8).find_optimal_driver(states, make_order(route=highway))
        assert best.driver.driver_id == "A"

    def test_highest_score_wins(self, make_driver, make_state, make_order, highway):
        states = [make_state(make_driver("A", rating=4.2)), make_state(make_driver("B", rating=4.9))]
        best = DispatchEngine(8).find_optimal_driver(states, make_order(route=highway))
        assert best.driver.driver_id == "B"

    def test_driver_over_budget_is_skipped(self, make_driver, make_state, make_order, highway):
        tired = make_state(make_driver("A", rating=5.0), hours=7.5)
        fresh = make_state(make_driver("B", rating=3.0))
        best = DispatchEngine(8).find_optimal_driver([tired, fresh], make_order(route=highway))
        assert best is fresh

    def test_none_when_nobody_fits(self, make_driver, make_state, make_order, highway):
        tired = make_state(make_driver("A"), hours=7.5)
        assert DispatchEngine(8).find_optimal_driver([tired], make_order(route=highway)) is None

    def test_score_at_or_below_floor_never_wins(self, make_driver, make_state, make_order,
                                                short_route):
        # 1.0 * 20 - 0.5 * 30 + (8 - 20) * 5 = -55
        state = make_state(make_driver(rating=1.0, current_shift_hours=20))
        assert DispatchEngine(24).find_optimal_driver([state], make_order(route=short_route)) is None

    def test_none_without_route(self, make_driver, make_state, make_order):
        assert DispatchEngine(8).find_optimal_driver([make_state(make_driver())], make_order()) is None


class TestRunGreedy:

    def test_urgent_order_dispatched_first(self, make_driver, make_order, short_route, start_time):
        orders = [
            make_order("O1", route=short_route),
            make_order("O2", route=short_route, priority="urgent"),
        ]
        _, results = DispatchEngine(8).run_greedy([make_driver()], orders, start_time)
        assert [r.order_id for r in results] == ["O2", "O1"]

    def test_deliveries_are_sequential(self, make_driver, make_order, short_route, start_time):
        orders = [make_order("O1", route=short_route), make_order("O2", route=short_route)]
        states, results = DispatchEngine(8).run_greedy([make_driver()], orders, start_time)

        assert results[0].actual_delivery_time == datetime(2025, 1, 15, 9, 30)
        assert results[1].actual_delivery_time == datetime(2025, 1, 15, 10, 0)
        assert states[0].current_hours == pytest.approx(1.0)

    def test_routeless_order_skipped_with_warning(self, make_driver, make_order, short_route,
                                                  start_time, caplog):
        orders = [make_order("NO-ROUTE"), make_order("O1", route=short_route)]
        with caplog.at_level(logging.WARNING, logger="greencart.dispatch"):
            _, results = DispatchEngine(8).run_greedy([make_driver()], orders, start_time)

        assert [r.order_id for r in results] == ["O1"]
        assert "NO-ROUTE" in caplog.text

    def test_hour_budget_never_exceeded(self, make_driver, make_order, highway, short_route,
                                        start_time):
        drivers = [make_driver("A", current_shift_hours=3), make_driver("B", rating=4.6)]
        orders = [make_order(f"O{i}", route=highway if i % 2 else short_route) for i in range(20)]

        states, results = DispatchEngine(4).run_greedy(drivers, orders, start_time)

        assert 0 < len(results) < 20
        assert all(s.current_hours <= 4 for s in states)

    def test_low_scoring_driver_leaves_order_unassigned(self, make_driver, make_order,
                                                        short_route, start_time):
        driver = make_driver(rating=1.0, current_shift_hours=20)
        states, results = DispatchEngine(24).run_greedy(
            [driver], [make_order(route=short_route)], start_time)

        assert results == []
        assert not states[0].is_used

    def test_input_drivers_untouched(self, make_driver, make_order, short_route, start_time):
        driver = make_driver(current_shift_hours=1)
        DispatchEngine(8).run_greedy([driver], [make_order(route=short_route)], start_time)
        assert driver.current_shift_hours == 1
