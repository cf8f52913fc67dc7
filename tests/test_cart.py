"""Tests for checkout_client.cart and checkout_client.escalation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_client.cart import CartReconciler
from checkout_client.data_types import AdjustmentStatus
from checkout_client.escalation import evaluate_decrease
from checkout_client.normalizer import normalize_snapshot

from tests.helpers import make_object, make_payload


def snap(*objects, **extra):
    return normalize_snapshot(make_payload(list(objects), **extra))


def priced(name, price):
    return {name: {"unit_price": price, "image_path": f"/srv/Assets/{name}.png"}}


@pytest.fixture
def cart():
    return CartReconciler()


class TestAutomaticCounting:
    def test_two_frames_with_one_apple(self, cart):
        cart.update(snap(make_object(1, "apple")))
        cart.update(snap(make_object(1, "apple")))

        assert cart.lines["apple"].quantity == 2

    def test_new_line_defaults(self, cart):
        cart.update(snap(make_object(1, "apple")))

        line = cart.lines["apple"]
        assert line.quantity == 1
        assert line.unit_price == Decimal("0")
        assert line.image_path == ""
        assert not line.manually_adjusted

    def test_undetermined_objects_do_not_count(self, cart):
        cart.update(snap(make_object(1, "apple", status="undetermined")))

        assert cart.lines == {}

    def test_lines_survive_items_leaving_frame(self, cart):
        cart.update(snap(make_object(1, "apple")))
        cart.update(snap())

        assert cart.lines["apple"].quantity == 1

    def test_seed_enriches_price_and_image(self, cart):
        cart.update(snap(make_object(1, "apple"), confirmed_objects=priced("apple", 1.5)))

        line = cart.lines["apple"]
        assert line.unit_price == Decimal("1.5")
        assert line.image_path == "/srv/Assets/apple.png"
        assert line.quantity == 1

    def test_seed_does_not_create_lines(self, cart):
        cart.update(snap(confirmed_objects=priced("pear", 2)))

        assert "pear" not in cart.lines

    def test_total_price(self, cart):
        seeds = {**priced("apple", "1.25"), **priced("milk", "2.10")}
        cart.update(snap(make_object(1, "apple"), make_object(2, "milk"), confirmed_objects=seeds))
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))

        assert cart.total_price == Decimal("4.60")

    def test_unknown_price_counts_as_zero(self, cart):
        cart.update(snap(make_object(1, "apple")))
        cart.lines["apple"].unit_price = None

        assert cart.recompute_total() == Decimal("0")


class TestManualAdjustment:
    def test_small_decrease_is_applied(self, cart):
        seeds = priced("apple", "1.00")
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))

        result = cart.adjust_quantity("apple", 1)

        assert result.status is AdjustmentStatus.APPLIED
        assert cart.lines["apple"].quantity == 1
        assert cart.lines["apple"].previous_quantity == 2
        assert cart.lines["apple"].manually_adjusted
        assert cart.total_price == Decimal("1.00")

    def test_large_decrease_is_escalated(self, cart):
        seeds = priced("apple", "10.00")
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))

        result = cart.adjust_quantity("apple", 0)

        assert result.status is AdjustmentStatus.ESCALATED
        assert result.escalation.decrease_amount == Decimal("20.00")
        assert result.escalation.current_quantity == 2
        assert result.escalation.requested_quantity == 0
        assert result.escalation.threshold_exceeded is True
        assert cart.lines["apple"].quantity == 2
        assert not cart.lines["apple"].manually_adjusted
        assert not cart.has_override("apple")

    @pytest.mark.parametrize(
        "price, expected",
        [("2.50", AdjustmentStatus.APPLIED), ("5.01", AdjustmentStatus.ESCALATED)],
    )
    def test_threshold_boundary(self, cart, price, expected):
        seeds = priced("apple", price)
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))
        cart.update(snap(make_object(1, "apple"), confirmed_objects=seeds))

        # 2 -> 0 at 2.50 removes exactly 5.00; 2 -> 1 at 5.01 removes 5.01
        requested = 0 if price == "2.50" else 1
        result = cart.adjust_quantity("apple", requested)

        assert result.status is expected
        if expected is AdjustmentStatus.APPLIED:
            assert cart.lines["apple"].quantity == requested
        else:
            assert cart.lines["apple"].quantity == 2

    def test_increase_is_never_escalated(self, cart):
        cart.update(snap(make_object(1, "tv"), confirmed_objects=priced("tv", 500)))

        result = cart.adjust_quantity("tv", 3)

        assert result.applied
        assert cart.lines["tv"].quantity == 3

    def test_undoing_own_increase_is_not_escalated(self, cart):
        cart.update(snap(make_object(1, "tv"), confirmed_objects=priced("tv", 500)))
        cart.adjust_quantity("tv", 3)

        result = cart.adjust_quantity("tv", 1)

        assert result.applied
        assert cart.lines["tv"].previous_quantity == 3

    def test_unknown_item_is_not_found(self, cart):
        result = cart.adjust_quantity("ghost", 1)

        assert result.status is AdjustmentStatus.NOT_FOUND
        assert cart.lines == {}

    def test_negative_quantity_is_invalid(self, cart):
        cart.update(snap(make_object(1, "apple")))

        result = cart.adjust_quantity("apple", -1)

        assert result.status is AdjustmentStatus.INVALID
        assert cart.lines["apple"].quantity == 1


class TestOverridePrecedence:
    def test_override_suppresses_automatic_counts(self, cart):
        cart.update(snap(make_object(1, "apple")))
        cart.adjust_quantity("apple", 5)

        for _ in range(3):
            cart.update(snap(make_object(1, "apple")))

        assert cart.lines["apple"].quantity == 5

    def test_reset_resumes_from_override_value(self, cart):
        cart.update(snap(make_object(1, "apple")))
        cart.adjust_quantity("apple", 5)
        cart.update(snap(make_object(1, "apple")))

        assert cart.reset_override("apple") is True
        cart.update(snap(make_object(1, "apple")))

        assert cart.lines["apple"].quantity == 6
        assert not cart.lines["apple"].manually_adjusted

    def test_reset_without_override(self, cart):
        assert cart.reset_override("apple") is False

    def test_other_classes_keep_counting(self, cart):
        cart.update(snap(make_object(1, "apple"), make_object(2, "pear")))
        cart.adjust_quantity("apple", 4)
        cart.update(snap(make_object(1, "apple"), make_object(2, "pear")))

        assert cart.lines["apple"].quantity == 4
        assert cart.lines["pear"].quantity == 2

    def test_returned_line_is_a_copy(self, cart):
        cart.update(snap(make_object(1, "apple")))
        result = cart.adjust_quantity("apple", 3)
        result.line.quantity = 99

        assert cart.lines["apple"].quantity == 3


class TestEvaluateDecrease:
    def test_exactly_threshold_is_not_escalated(self):
        assert evaluate_decrease("apple", 3, 1, 2.5) is None

    def test_just_above_threshold_is_escalated(self):
        record = evaluate_decrease("apple", 2, 1, 5.01)

        assert record is not None
        assert record.decrease_amount == Decimal("5.01")

    def test_unknown_price_never_escalates(self):
        assert evaluate_decrease("apple", 10, 0, None) is None

    def test_increase_never_escalates(self):
        assert evaluate_decrease("apple", 1, 4, 100) is None

    def test_custom_threshold(self):
        assert evaluate_decrease("apple", 2, 1, 3, threshold=2) is not None
