import pytest

from greencart.exceptions import InvalidTransitionError
from greencart.models import Driver, DriverStatus, Order, OrderStatus, Route, TrafficLevel


class TestDriver:

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError):
            Driver("D1", "Asha", 150, rating=5.5)

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            Driver("D1", "Asha", 150, status="retired")

    def test_enum_status_stored_as_string(self):
        driver = Driver("D1", "Asha", 150, status=DriverStatus.ON_LEAVE)
        assert driver.status == "on-leave"
        assert not driver.is_active

    def test_can_work_more_hours(self):
        driver = Driver("D1", "Asha", 150, current_shift_hours=6)
        assert driver.can_work_more_hours(2)
        assert not driver.can_work_more_hours(2.5)

    def test_reset_shift_hours(self):
        driver = Driver("D1", "Asha", 150, current_shift_hours=9)
        assert driver.fatigue_factor() == 1.3
        driver.reset_shift_hours()
        assert driver.current_shift_hours == 0
        assert driver.fatigue_factor() == 1.0


class TestRoute:

    def test_average_defaults_to_base_time(self):
        assert Route("R1", 5, "Low", 20).average_completion_time == 20

    def test_enum_traffic_level(self):
        route = Route("R1", 10, TrafficLevel.HIGH, 40)
        assert route.traffic_level == "High"
        assert route.traffic_multiplier() == 1.5
        assert route.estimated_time(1.1) == 66
        assert route.fuel_cost() == pytest.approx(85)

    @pytest.mark.parametrize("kwargs", [
        {"distance_km": 0},
        {"base_time_minutes": 0.5},
        {"base_time_minutes": 2000},
        {"toll_charges": -1},
    ])
    def test_invalid_values(self, kwargs):
        fields = {"distance_km": 5, "traffic_level": "Low", "base_time_minutes": 20}
        fields.update(kwargs)
        with pytest.raises(ValueError):
            Route("R1", **fields)

    def test_update_average_time(self):
        route = Route("R1", 5, "Low", 45, total_completions=3, average_completion_time=50)
        route.update_average_time(60)
        # (50 * 3 + 60) / 4 = 52.5
        assert route.average_completion_time == 53
        assert route.total_completions == 4


class TestOrder:

    def test_high_value_threshold(self, make_order):
        assert make_order(value_rs=10000).is_high_value is True
        assert make_order(value_rs=9999).is_high_value is False

    def test_high_value_flag_not_reevaluated(self, make_order):
        order = make_order(value_rs=12000)
        order.value_rs = 500
        assert order.is_high_value is True

    def test_value_out_of_range(self, make_order):
        with pytest.raises(ValueError):
            make_order(value_rs=0)

    def test_route_fills_route_id(self, highway, start_time):
        order = Order("O1", 1000, None, start_time, route=highway)
        assert order.route_id == "RT001"

    def test_lifecycle(self, make_order, highway, start_time):
        order = make_order(route=highway)
        order.assign_to("D1")
        assert order.status == OrderStatus.ASSIGNED.value
        assert order.assigned_driver_id == "D1"

        order.start_delivery()
        assert order.status == "in-progress"
        assert order.delivery_attempts == 1

        delivered_at = start_time.replace(hour=10)
        order.mark_as_delivered(actual_minutes=70, delivered_at=delivered_at)
        assert order.status == "delivered"
        assert order.delivery_timestamp == delivered_at
        assert order.actual_delivery_time == 70
        assert highway.total_completions == 157
        assert not order.is_late()

    def test_cannot_deliver_pending_order(self, make_order):
        order = make_order()
        with pytest.raises(InvalidTransitionError) as exc_info:
            order.mark_as_delivered(30)
        assert exc_info.value.current == "pending"
        assert order.status == "pending"

    def test_cannot_reassign_delivered_order(self, make_order):
        order = make_order(status="delivered")
        with pytest.raises(ValueError):
            order.assign_to("D2")
