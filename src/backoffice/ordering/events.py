"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from backoffice.domain import backoffice


@backoffice.event(part_of="Order")
class OrderPlaced:
    """An order arrived from checkout and waits for review."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON-serialized line items
    total = Float()
    placed_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderApproved:
    """An administrator approved the order; stock and bonuses were settled."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Float()
    item_count = Integer()
    awarded_bonus = Integer()
    referrer_id = Identifier()
    referral_commission = Integer()
    approved_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderRejected:
    """The order was rejected; anything approval had applied was reversed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    bonus_reversed = Integer()
    commission_reversed = Integer()
    reason = String()
    rejected_at = DateTime(required=True)


@backoffice.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along the shipping path (shipped, delivered)."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)

