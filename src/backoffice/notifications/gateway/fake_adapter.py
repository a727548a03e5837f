"""Configurable fake notification gateway for development and testing.

Records every call instead of sending anything. It can be configured at
runtime to fail, which is how tests check that a broken channel never
undoes a committed order operation.
"""

from backoffice.exceptions import NotificationFailed
from backoffice.notifications.gateway.port import NotificationGateway


class FakeNotificationGateway(NotificationGateway):
    """Configurable fake notification gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Channel unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Channel unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def reset(self) -> None:
        self.should_succeed = True
        self.failure_reason = "Channel unavailable"
        self.calls = []

    def _record(self, call: dict) -> bool:
        self.calls.append(call)
        if not self.should_succeed:
            raise NotificationFailed(self.failure_reason)
        return True

    def calls_for(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def notify_order_status(self, order, status: str) -> bool:
        return self._record(
            {
                "method": "notify_order_status",
                "order_id": str(order.id),
                "customer_id": str(order.customer_id),
                "status": status,
            }
        )

    def notify_referral_reward(self, referrer, amount: int, total_referrals: int) -> bool:
        return self._record(
            {
                "method": "notify_referral_reward",
                "referrer_id": str(referrer.id),
                "amount": amount,
                "total_referrals": total_referrals,
            }
        )

    def notify_low_stock(self, product, classification: str, variant_label: str | None) -> bool:
        return self._record(
            {
                "method": "notify_low_stock",
                "product_id": str(product.id),
                "classification": classification,
                "variant_label": variant_label,
            }
        )

    def notify_back_in_stock(self, subscriber, product, variant_label: str | None) -> bool:
        return self._record(
            {
                "method": "notify_back_in_stock",
                "account_id": str(subscriber.id),
                "product_id": str(product.id),
                "variant_label": variant_label,
            }
        )
