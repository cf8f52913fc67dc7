"""End-to-end tests for checkout_client.session."""

from __future__ import annotations

from decimal import Decimal

from checkout_client.data_types import AdjustmentStatus
from checkout_client.instructions import (
    MSG_ALL_CONFIRMED,
    MSG_PLACE_ITEMS,
    MSG_SCANNING,
    MSG_UNSTABLE_ITEM,
)
from checkout_client.session import CheckoutSession, FpsCounter

from tests.helpers import make_object, make_payload


def priced(name, price):
    return {name: {"unit_price": price, "image_path": f"Assets/{name}.jpg"}}


class TestScenarios:
    def test_empty_frame(self, session, announcer):
        view = session.handle_detection_results(make_payload([], is_empty=True))

        assert view.instruction == MSG_PLACE_ITEMS
        assert view.cart == {}
        assert view.total_price == Decimal("0")
        assert session.tracker.scan_start is None
        assert announcer.announcements == [MSG_PLACE_ITEMS]

    def test_two_confirmed_apples(self, session):
        session.handle_detection_results(make_payload([make_object(1, "apple")]))
        view = session.handle_detection_results(make_payload([make_object(1, "apple")]))

        assert view.cart["apple"].quantity == 2
        assert view.instruction == MSG_ALL_CONFIRMED

    def test_adjust_then_escalate(self, session):
        seeds = priced("apple", "1.00")
        session.handle_detection_results(make_payload([make_object(1, "apple")], confirmed_objects=seeds))
        session.handle_detection_results(make_payload([make_object(1, "apple")], confirmed_objects=seeds))

        result = session.adjust_quantity("apple", 1)

        assert result.status is AdjustmentStatus.APPLIED
        assert session.view.cart["apple"].quantity == 1
        assert session.view.cart["apple"].previous_quantity == 2
        assert session.view.total_price == Decimal("1.00")

    def test_expensive_decrease_is_refused(self, session):
        seeds = priced("apple", "10.00")
        session.handle_detection_results(make_payload([make_object(1, "apple")], confirmed_objects=seeds))
        session.handle_detection_results(make_payload([make_object(1, "apple")], confirmed_objects=seeds))

        result = session.adjust_quantity("apple", 0)

        assert result.status is AdjustmentStatus.ESCALATED
        assert result.escalation.decrease_amount == Decimal("20.00")
        assert session.view.cart["apple"].quantity == 2

    def test_adjusting_missing_item(self, session):
        result = session.adjust_quantity("apple", 1)
        assert result.status is AdjustmentStatus.NOT_FOUND


class TestIdempotence:
    def test_same_state_same_instruction_single_announcement(self, session, announcer):
        payload = make_payload([make_object(1, "apple"), make_object(2, "pear", status="undetermined")])

        first = session.handle_detection_results(payload).instruction
        second = session.handle_detection_results(payload).instruction

        assert first == second == MSG_SCANNING
        assert announcer.announcements == [MSG_SCANNING]


class TestZoneFlow:
    def test_ignore_requires_ack(self, session, emitted):
        payload = make_payload([make_object(1)], unstable_zones=[{"zone_key": "z1", "classes": {"apple": 1}}])
        view = session.handle_detection_results(payload)

        assert view.instruction == MSG_UNSTABLE_ITEM
        assert [z.zone_key for z in view.open_zones] == ["z1"]

        session.request_ignore("z1")
        assert emitted == [{"zone_key": "z1"}]
        assert [z.zone_key for z in session.view.open_zones] == ["z1"]

        assert session.handle_ignore_ack({"status": "success", "zone_key": "z1"}) is True
        assert session.view.open_zones == ()

        view = session.handle_detection_results(payload)
        assert view.open_zones == ()
        assert view.instruction == MSG_ALL_CONFIRMED


class TestDerivedState:
    def test_checkout_blocked_while_items_undetermined(self, session):
        view = session.handle_detection_results(
            make_payload([make_object(1, "apple"), make_object(2, "pear", status="undetermined")])
        )
        assert view.checkout_enabled is False

        view = session.handle_detection_results(make_payload([make_object(1, "apple")]))
        assert view.checkout_enabled is True

    def test_checkout_blocked_with_empty_cart(self, session):
        assert session.handle_detection_results(make_payload([])).checkout_enabled is False

    def test_view_is_not_mutated_later(self, session):
        view = session.handle_detection_results(make_payload([make_object(1, "apple")]))
        session.handle_detection_results(make_payload([make_object(1, "apple")]))

        assert view.cart["apple"].quantity == 1

    def test_asset_url(self, session):
        session.config.connection.backend_url = "http://backend:5000/"

        assert session.asset_url("/srv/app/Assets/apple.jpg") == "http://backend:5000/Assets/apple.jpg"

    def test_fps_counter_uses_event_rate(self, session, clock):
        for _ in range(5):
            session.handle_detection_results(make_payload([]))
            clock.advance(0.25)

        assert session.view.fps == 5

    def test_reset_starts_a_new_session(self, session, announcer):
        session.handle_detection_results(make_payload([make_object(1, "apple")]))
        session.reset()

        assert session.view.cart == {}
        assert session.cart.lines == {}
        view = session.handle_detection_results(make_payload([]))
        assert view.instruction == MSG_PLACE_ITEMS


class TestFpsCounter:
    def test_publishes_once_per_second(self):
        fps = FpsCounter()
        for t in (0.0, 0.3, 0.6, 0.9):
            fps.tick(t)
        assert fps.fps == 0

        fps.tick(1.0)
        assert fps.fps == 5

        fps.tick(1.5)
        assert fps.fps == 5


def test_default_session_uses_default_config():
    session = CheckoutSession()

    assert session.cart.escalation_threshold == Decimal("5.0")
    assert session.view.instruction == ""
