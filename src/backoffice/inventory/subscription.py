"""Back-in-stock subscriptions.

Customers ask to be told when an out-of-stock product (or one variant of
it) becomes available again. A subscription is notified once and then
kept for history.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.inventory.product import Product
from backoffice.inventory.variants import VariantKey


@backoffice.aggregate
class StockSubscription:
    product_id = Identifier(required=True)
    account_id = Identifier(required=True)
    color = String(max_length=50)
    size = String(max_length=20)
    notified = Boolean(default=False)
    created_at = DateTime()
    notified_at = DateTime()

    @classmethod
    def create(cls, product_id, account_id, color=None, size=None):
        return cls(
            product_id=product_id,
            account_id=account_id,
            color=color,
            size=size,
            created_at=datetime.now(UTC),
        )

    def matches(self, color=None, size=None) -> bool:
        """A product-level subscription matches any variant; a variant one only its own pair."""
        wanted = VariantKey.of(self.color, self.size)
        if wanted is None:
            return True
        return wanted == VariantKey.of(color, size)

    def mark_notified(self):
        if self.notified:
            raise ValidationError({"notified": ["Subscription was already notified"]})
        self.notified = True
        self.notified_at = datetime.now(UTC)


def pending_subscriptions(product_id, color=None, size=None) -> list[StockSubscription]:
    repo = current_domain.repository_for(StockSubscription)
    subscriptions = repo._dao.query.filter(product_id=str(product_id), notified=False).limit(None).all().items
    return [s for s in subscriptions if s.matches(color, size)]


@backoffice.command(part_of="StockSubscription")
class SubscribeToRestock:
    """Ask to be notified when a product or variant is back in stock."""

    product_id = Identifier(required=True)
    account_id = Identifier(required=True)
    color = String(max_length=50)
    size = String(max_length=20)


@backoffice.command_handler(part_of=StockSubscription)
class StockSubscriptionHandler:
    @handle(SubscribeToRestock)
    def subscribe(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if command.color or command.size:
            if product.find_variant(command.color, command.size) is None:
                raise ValidationError({"variant": ["Product has no such color/size"]})

        existing = [
            s
            for s in pending_subscriptions(command.product_id, command.color, command.size)
            if str(s.account_id) == str(command.account_id)
            and VariantKey.of(s.color, s.size) == VariantKey.of(command.color, command.size)
        ]
        if existing:
            return str(existing[0].id)

        subscription = StockSubscription.create(
            product_id=command.product_id,
            account_id=command.account_id,
            color=command.color,
            size=command.size,
        )
        current_domain.repository_for(StockSubscription).add(subscription)
        return str(subscription.id)
