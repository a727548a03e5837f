"""Notification gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeNotificationGateway for development and testing
- TelegramNotificationGateway when NOTIFICATION_GATEWAY=telegram
"""

import os

from backoffice.notifications.gateway.fake_adapter import FakeNotificationGateway
from backoffice.notifications.gateway.port import NotificationGateway

_current_gateway: NotificationGateway | None = None


def _default_gateway() -> NotificationGateway:
    if os.environ.get("NOTIFICATION_GATEWAY", "fake").lower() == "telegram":
        from backoffice.notifications.gateway.telegram_adapter import TelegramNotificationGateway

        return TelegramNotificationGateway.from_env()
    return FakeNotificationGateway()


def get_gateway() -> NotificationGateway:
    """Return the current notification gateway, built from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _default_gateway()
    return _current_gateway


def set_gateway(gateway: NotificationGateway) -> None:
    """Override the active notification gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
