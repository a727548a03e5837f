"""Backoffice error taxonomy.

Only ``InvalidTransition`` and ``StaleOrderVersion`` abort an order
operation. The others are raised by individual sub-steps (stock, referral,
notification) and are collected as warnings by the order lifecycle handler.
"""

from protean.exceptions import InvalidStateError, ProteanException, ValidationError


class InvalidTransition(ValidationError):
    """Requested status change is not an edge of the order state machine."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class StaleOrderVersion(InvalidStateError):
    """The caller acted on an outdated copy of the order."""

    def __init__(self, order_id: str, expected: int, actual: int) -> None:
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Order {order_id} is at version {actual}, expected {expected}")


class VariantNotFound(ProteanException):
    """A line item points at a color/size pair the product does not carry."""

    def __init__(self, product_id: str, label: str | None) -> None:
        self.product_id = product_id
        self.label = label
        if label:
            message = f"Product {product_id} has no variant {label}"
        else:
            message = f"Product {product_id} tracks variants but no color/size was given"
        super().__init__(message)


class ReferrerNotFound(ProteanException):
    """The buyer's referral code does not resolve to another account."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"No referrer found for code {code}")


class NotificationFailed(ProteanException):
    """The notification gateway could not deliver a message."""


class RecordStoreError(ProteanException):
    """A read or write against the record store failed."""
