"""
Tests for snapshot diffing and seen-id tracking.
"""
from dataclasses import replace

from kitchen.diff import DiffEngine, needs_replace
from kitchen.models import Order
from support import order_record


def _order(order_id, status="received", **extra):
    return Order.from_api(order_record(order_id, status, **extra))


class TestNeedsReplace:
    """Tests for the render-equality check."""

    def test_identical_snapshots_do_not_replace(self):
        """Equal content position by position keeps the current list."""
        previous = [_order(1), _order(2)]
        fresh = [_order(1), _order(2)]
        assert needs_replace(previous, fresh) is False

    def test_length_change_replaces(self):
        assert needs_replace([_order(1)], [_order(1), _order(2)]) is True

    def test_reordering_replaces(self):
        """The same orders in another order is a different rendering."""
        assert needs_replace([_order(1), _order(2)], [_order(2), _order(1)]) is True

    def test_rendered_field_change_replaces(self):
        previous = [_order(1)]
        fresh = [replace(previous[0], payment_status="paid")]
        assert needs_replace(previous, fresh) is True

    def test_ingredient_count_change_replaces(self):
        previous = [_order(1)]
        fresh = [_order(1, ingredients=["lettuce", "tomato", "onion"])]
        assert needs_replace(previous, fresh) is True

    def test_unrendered_field_change_keeps_list(self):
        """Fields outside the card do not force a re-render."""
        previous = [_order(1)]
        fresh = [replace(previous[0], customer_name="Someone else")]
        assert needs_replace(previous, fresh) is False


class TestDiffEngine:
    """Tests for DiffEngine.diff."""

    def setup_method(self):
        self.engine = DiffEngine()

    def test_new_order_reported_once(self):
        """An unseen id is new on the first diff and never again."""
        first = self.engine.diff([], [_order(1)])
        assert [o.id for o in first.new_orders] == [1]

        second = self.engine.diff([_order(1)], [_order(1)])
        assert second.new_orders == []
        assert second.replace is False

    def test_same_snapshot_twice_is_quiet(self):
        """Diffing a snapshot against itself reports nothing."""
        snapshot = [_order(1), _order(2)]
        self.engine.prime(snapshot)
        result = self.engine.diff(snapshot, list(snapshot))
        assert result.replace is False
        assert result.new_orders == []
        assert result.changed_orders == []

    def test_order_returning_after_dropping_out_is_not_new(self):
        """Seen ids survive an order vanishing from one listing."""
        self.engine.diff([], [_order(1), _order(2)])
        self.engine.diff([_order(1), _order(2)], [_order(2)])

        result = self.engine.diff([_order(2)], [_order(1), _order(2)])
        assert result.new_orders == []
        assert result.replace is True

    def test_status_change_reported(self):
        self.engine.prime([_order(1)])
        result = self.engine.diff([_order(1)], [_order(1, status="preparing")])
        assert [o.status for o in result.changed_orders] == ["preparing"]
        assert result.new_orders == []
        assert result.replace is True

    def test_duplicate_ids_in_listing_count_once(self):
        result = self.engine.diff([], [_order(7), _order(7)])
        assert len(result.new_orders) == 1

    def test_multiple_new_orders_in_one_diff(self):
        self.engine.prime([_order(1)])
        result = self.engine.diff([_order(1)], [_order(4), _order(3), _order(2), _order(1)])
        assert [o.id for o in result.new_orders] == [4, 3, 2]

    def test_prime_marks_seen_without_reporting(self):
        self.engine.prime([_order(1), _order(2)])
        assert self.engine.seen_ids == frozenset({1, 2})
        result = self.engine.diff([], [_order(1), _order(2)])
        assert result.new_orders == []

    def test_reset_forgets_seen_ids(self):
        """A new session starts with an empty seen set."""
        self.engine.prime([_order(1)])
        self.engine.reset()
        assert self.engine.seen_ids == frozenset()
        result = self.engine.diff([], [_order(1)])
        assert [o.id for o in result.new_orders] == [1]
