"""
Tests for parsing backend records into domain models.
"""
from datetime import datetime, timezone

import pytest

from kitchen.models import Message, NotificationSettings, Order, parse_timestamp
from support import order_record


class TestOrderFromApi:
    def test_maps_backend_field_names(self):
        order = Order.from_api(order_record(5, " Preparing ", payment_status="paid"))
        assert order.id == 5
        assert order.status == "preparing"
        assert order.total_amount == 12.5
        assert order.source == "whatsapp"
        assert order.customer_name == "Customer 5"
        assert order.ingredients == ("lettuce", "tomato")
        assert order.payment_status == "paid"

    def test_string_id_is_accepted(self):
        assert Order.from_api(order_record("12")).id == 12

    @pytest.mark.parametrize("bad_id", [None, True, "abc"])
    def test_unusable_id_raises(self, bad_id):
        with pytest.raises(ValueError):
            Order.from_api(order_record(1, id=bad_id))

    def test_ingredients_as_json_or_comma_string(self):
        assert Order.from_api(order_record(1, ingredients='["a", "b"]')).ingredients == ("a", "b")
        assert Order.from_api(order_record(1, ingredients="a, b,")).ingredients == ("a", "b")

    def test_structured_items_are_serialised(self):
        order = Order.from_api(order_record(1, items=[{"name": "Wrap"}]))
        assert order.items == '[{"name": "Wrap"}]'
        assert order.has_items is True

    @pytest.mark.parametrize("items", [None, "", "null", "undefined"])
    def test_empty_items_payload(self, items):
        assert Order.from_api(order_record(1, items=items)).has_items is False

    def test_terminal_orders_are_inactive(self):
        assert Order.from_api(order_record(1, "delivered")).is_active is False
        assert Order.from_api(order_record(1, "ready")).is_active is True


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-05-01T12:00:00").tzinfo is timezone.utc

    def test_garbage_sorts_as_epoch(self):
        assert parse_timestamp("yesterday").year == 1970
        assert parse_timestamp(None).year == 1970


class TestSmallModels:
    def test_settings_clamp_volume(self):
        assert NotificationSettings(True, 250).volume == 100

    def test_message_direction(self):
        assert Message.from_api({"id": 1}).is_inbound is True
        assert Message.from_api({"id": 2, "direction": "outbound"}).is_inbound is False
        with pytest.raises(ValueError):
            Message.from_api({"body": "hi"})
