"""Notification gateway port (abstract interface).

Defines the messages the backoffice sends: order status updates and
referral rewards to customers, and stock alerts to administrators.
Adapters decide how a message reaches its recipient.
"""

from abc import ABC, abstractmethod


class NotificationGateway(ABC):
    """Abstract notification gateway interface.

    Every method returns True when a message was sent and False when there
    was nobody to send it to. Delivery failures raise ``NotificationFailed``.
    """

    @abstractmethod
    def notify_order_status(self, order, status: str) -> bool:
        """Tell the buyer their order moved to ``status``."""
        ...

    @abstractmethod
    def notify_referral_reward(self, referrer, amount: int, total_referrals: int) -> bool:
        """Tell a referrer they earned a commission."""
        ...

    @abstractmethod
    def notify_low_stock(self, product, classification: str, variant_label: str | None) -> bool:
        """Alert administrators about a low, depleted or replenished stock level."""
        ...

    @abstractmethod
    def notify_back_in_stock(self, subscriber, product, variant_label: str | None) -> bool:
        """Tell a subscribed customer the product is available again."""
        ...
