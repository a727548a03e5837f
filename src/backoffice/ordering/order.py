"""Order aggregate — the state machine at the center of fulfillment.

State Machine:
    PENDING → APPROVED → SHIPPED → DELIVERED
    PENDING → REJECTED
    APPROVED → REJECTED   (approval reversal, only when enabled in settings)

DELIVERED and REJECTED are terminal. Only terminal orders may be deleted.

Besides its status the order remembers what approval actually did
(bonus credited, commission paid, stock deducted) so that a reversal
undoes exactly that, whatever the rates are by then.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from backoffice.domain import backoffice
from backoffice.exceptions import InvalidTransition, StaleOrderVersion
from backoffice.inventory.variants import format_variant_name
from backoffice.ordering.events import (
    OrderApproved,
    OrderPlaced,
    OrderRejected,
    OrderStatusChanged,
)


class OrderStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    REJECTED = "rejected"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.APPROVED, OrderStatus.REJECTED},
    OrderStatus.APPROVED: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.REJECTED: set(),  # Terminal
}

# Extra edges unlocked by the allow_approval_reversal setting
_REVERSAL_TRANSITIONS = {
    OrderStatus.APPROVED: {OrderStatus.REJECTED},
}

_DELETABLE_STATES = {OrderStatus.DELIVERED, OrderStatus.REJECTED}


@backoffice.entity(part_of="Order")
class OrderItem:
    """A purchased product, with the variant and price captured at checkout."""

    product_id = Identifier(required=True)
    color = String(max_length=50)
    size = String(max_length=20)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(default=0.0, min_value=0.0)
    deducted_quantity = Integer(default=0, min_value=0)

    def label(self) -> str:
        return format_variant_name(self.color, self.size)


@backoffice.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="UZS")
    awarded_bonus = Integer(default=0, min_value=0)
    referrer_id = Identifier()
    referral_commission = Integer(default=0, min_value=0)
    stock_deducted = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, customer_id, items, total=None, currency="UZS"):
        """Create a pending order from already-normalized line items.

        The total defaults to the sum of quantity x unit price.
        """
        if not items:
            raise ValidationError({"items": ["An order needs at least one line item"]})

        now = datetime.now(UTC)
        if total is None:
            total = sum(item["quantity"] * item["unit_price"] for item in items)

        order = cls(
            customer_id=customer_id,
            total=total,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(OrderItem(**item))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps(items),
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def can_transition_to(self, target: OrderStatus, allow_reversal: bool = False) -> bool:
        current = self.current_status()
        allowed = set(_VALID_TRANSITIONS.get(current, set()))
        if allow_reversal:
            allowed |= _REVERSAL_TRANSITIONS.get(current, set())
        return target in allowed

    def _assert_can_transition(self, target: OrderStatus, allow_reversal: bool = False) -> None:
        if not self.can_transition_to(target, allow_reversal):
            raise InvalidTransition(self.status, target.value)

    def assert_can_approve(self) -> None:
        self._assert_can_transition(OrderStatus.APPROVED)

    def assert_can_reject(self, allow_reversal: bool = False) -> None:
        self._assert_can_transition(OrderStatus.REJECTED, allow_reversal)

    def check_version(self, expected_version) -> None:
        """Refuse to act on an order that changed since the caller last read it."""
        if expected_version is not None and expected_version != self._version:
            raise StaleOrderVersion(str(self.id), expected_version, self._version)

    def ensure_deletable(self) -> None:
        if self.current_status() not in _DELETABLE_STATES:
            raise ValidationError({"status": [f"Order in status {self.status} cannot be deleted"]})

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def record_stock_deduction(self, applied_items):
        """Remember, per item, the quantity the ledger took out of stock.

        Items skipped at approval (unknown product or variant) keep 0 and are
        left alone on reversal.
        """
        applied_ids = {str(item.id) for item in applied_items}
        for item in self.items:
            if str(item.id) in applied_ids:
                item.deducted_quantity = item.quantity
        self.stock_deducted = True

    def approve(self, awarded_bonus=0, referrer_id=None, referral_commission=0):
        """Record the approval and what it credited."""
        self.assert_can_approve()

        now = datetime.now(UTC)
        self.status = OrderStatus.APPROVED.value
        self.awarded_bonus = awarded_bonus
        self.referrer_id = referrer_id
        self.referral_commission = referral_commission
        self.updated_at = now

        self.raise_(
            OrderApproved(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                total=self.total,
                item_count=len(self.items),
                awarded_bonus=awarded_bonus,
                referrer_id=referrer_id,
                referral_commission=referral_commission,
                approved_at=now,
            )
        )

    def reject(self, allow_reversal=False, reason=None):
        """Reject the order and clear what approval had recorded.

        Callers reverse the stored amounts before calling this, since they are
        cleared here.
        """
        self.assert_can_reject(allow_reversal)

        now = datetime.now(UTC)
        previous = self.status
        bonus_reversed = self.awarded_bonus or 0
        commission_reversed = self.referral_commission or 0

        self.status = OrderStatus.REJECTED.value
        self.awarded_bonus = 0
        self.referrer_id = None
        self.referral_commission = 0
        self.stock_deducted = False
        for item in self.items:
            item.deducted_quantity = 0
        self.updated_at = now

        self.raise_(
            OrderRejected(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous,
                bonus_reversed=bonus_reversed,
                commission_reversed=commission_reversed,
                reason=reason,
                rejected_at=now,
            )
        )

    def _advance(self, target: OrderStatus):
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        previous = self.status
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def ship(self):
        self._advance(OrderStatus.SHIPPED)

    def deliver(self):
        self._advance(OrderStatus.DELIVERED)
