"""Order placement — ingests checkout orders into the engine."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.ordering.line_items import normalize_line_items
from backoffice.ordering.order import Order
from backoffice.settings.settings import load_engine_config


@backoffice.command(part_of="Order")
class PlaceOrder:
    """Record a pending order coming from checkout."""

    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of raw line items, any known shape
    total = Float(min_value=0.0)
    currency = String(max_length=3)


@backoffice.command_handler(part_of=Order)
class OrderPlacementHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        raw_items = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.place(
            customer_id=command.customer_id,
            items=normalize_line_items(raw_items),
            total=command.total,
            currency=command.currency or load_engine_config().currency,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
