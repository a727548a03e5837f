"""Stock alert notifications.

Every ``StockAlertRaised`` goes to the administrators. A ``backInStock``
alert additionally notifies the customers waiting for that product or
variant, each of them once.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from backoffice.domain import backoffice
from backoffice.inventory.alerts import StockAlert
from backoffice.inventory.events import StockAlertRaised
from backoffice.inventory.product import Product
from backoffice.inventory.subscription import StockSubscription, pending_subscriptions
from backoffice.loyalty.account import Account
from backoffice.notifications.gateway import get_gateway

logger = structlog.get_logger(__name__)


@backoffice.event_handler(part_of=Product)
class StockAlertNotificationHandler:
    @handle(StockAlertRaised)
    def on_stock_alert_raised(self, event: StockAlertRaised) -> None:
        try:
            product = current_domain.repository_for(Product).get(event.product_id)
        except Exception as exc:
            logger.error("Failed to load product for stock alert", product_id=str(event.product_id), error=str(exc))
            return

        try:
            get_gateway().notify_low_stock(product, event.classification, event.variant_label)
        except Exception as exc:
            logger.error(
                "Stock alert notification failed",
                product_id=str(event.product_id),
                classification=event.classification,
                error=str(exc),
            )

        if event.classification == StockAlert.BACK_IN_STOCK.value:
            _notify_subscribers(product, event)


def _notify_subscribers(product: Product, event: StockAlertRaised) -> None:
    subscription_repo = current_domain.repository_for(StockSubscription)
    account_repo = current_domain.repository_for(Account)

    for subscription in pending_subscriptions(product.id, event.color, event.size):
        try:
            subscriber = account_repo.get(subscription.account_id)
            get_gateway().notify_back_in_stock(subscriber, product, event.variant_label)
        except Exception as exc:
            # Left pending, so the next restock tries again
            logger.error(
                "Back-in-stock notification failed",
                subscription_id=str(subscription.id),
                account_id=str(subscription.account_id),
                error=str(exc),
            )
            continue

        subscription.mark_notified()
        subscription_repo.add(subscription)
        logger.info("Subscriber notified of restock", subscription_id=str(subscription.id))
