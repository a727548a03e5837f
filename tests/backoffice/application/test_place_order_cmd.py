"""Application tests for order placement via domain.process()."""

import json

import pytest
from backoffice.ordering.order import Order, OrderStatus
from backoffice.ordering.placement import PlaceOrder
from protean import current_domain
from protean.exceptions import ValidationError


def _place(items=None, **overrides):
    defaults = {
        "customer_id": "acc-001",
        "items": json.dumps(items or [{"id": "prod-001", "selectedColor": "Red", "selectedSize": "M", "qty": 2, "price": 50000}]),
    }
    defaults.update(overrides)
    return current_domain.process(PlaceOrder(**defaults), asynchronous=False)


class TestPlaceOrder:
    def test_returns_order_id(self):
        order_id = _place()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value

    def test_items_are_normalized(self):
        order = current_domain.repository_for(Order).get(_place())
        item = order.items[0]
        assert item.product_id == "prod-001"
        assert (item.color, item.size, item.quantity, item.unit_price) == ("Red", "M", 2, 50000.0)

    def test_total_is_computed_when_missing(self):
        order = current_domain.repository_for(Order).get(_place())
        assert order.total == 100000.0

    def test_currency_defaults_from_config(self):
        order = current_domain.repository_for(Order).get(_place())
        assert order.currency == "UZS"

    def test_saved_at_first_version(self):
        order = current_domain.repository_for(Order).get(_place())
        assert order._version == 0

    def test_bad_item_is_rejected(self):
        with pytest.raises(ValidationError):
            _place(items=[{"qty": 1}])

    @pytest.mark.parametrize("items", [["prod-001"], [{"id": "prod-001", "qty": 1.5}]])
    def test_malformed_items_are_rejected(self, items):
        with pytest.raises(ValidationError):
            _place(items=items)
        assert current_domain.repository_for(Order)._dao.query.all().items == []
