"""Notifies buyers when their order changes status.

Runs after the order operation has committed. Delivery problems are
logged and never surface to the caller of the order operation.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from backoffice.domain import backoffice
from backoffice.notifications.gateway import get_gateway
from backoffice.ordering.events import OrderApproved, OrderRejected, OrderStatusChanged
from backoffice.ordering.order import Order

logger = structlog.get_logger(__name__)


def _notify(order_id, status: str) -> None:
    try:
        order = current_domain.repository_for(Order).get_or_none(order_id)
        if order is None:
            logger.warning("Order vanished before notification", order_id=str(order_id), status=status)
            return
        get_gateway().notify_order_status(order, status)
    except Exception as exc:
        logger.error(
            "Order status notification failed",
            order_id=str(order_id),
            status=status,
            error=str(exc),
        )


@backoffice.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderApproved)
    def on_order_approved(self, event: OrderApproved) -> None:
        _notify(event.order_id, "approved")

    @handle(OrderRejected)
    def on_order_rejected(self, event: OrderRejected) -> None:
        _notify(event.order_id, "rejected")

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        _notify(event.order_id, event.new_status)
