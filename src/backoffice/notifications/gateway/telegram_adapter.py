"""Telegram notification gateway.

Sends messages through the Bot API ``sendMessage`` method. Customer
messages go to the account's ``chat_id``; stock alerts go to the admin
chat configured in ``TELEGRAM_ADMIN_CHAT_ID``.
"""

import os

import httpx
import structlog
from protean.utils.globals import current_domain

from backoffice.exceptions import NotificationFailed
from backoffice.loyalty.account import Account
from backoffice.notifications import messages
from backoffice.notifications.gateway.port import NotificationGateway

logger = structlog.get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramNotificationGateway(NotificationGateway):
    def __init__(
        self,
        bot_token: str,
        admin_chat_id: str | None = None,
        base_url: str = TELEGRAM_API_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not bot_token:
            raise NotificationFailed("TELEGRAM_BOT_TOKEN is not configured")
        self.bot_token = bot_token
        self.admin_chat_id = admin_chat_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_env(cls) -> "TelegramNotificationGateway":
        return cls(
            bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
            admin_chat_id=os.environ.get("TELEGRAM_ADMIN_CHAT_ID") or None,
        )

    def _send(self, chat_id, text: str) -> bool:
        if not chat_id:
            logger.info("No Telegram chat to notify", text=text[:40])
            return False

        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text, "parse_mode": "HTML"}
        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, timeout=self.timeout)
            else:
                with httpx.Client() as client:
                    response = client.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Telegram sendMessage failed", chat_id=str(chat_id), error=str(exc))
            raise NotificationFailed(f"Telegram delivery failed: {exc}") from exc

        body = response.json()
        if not body.get("ok", False):
            description = body.get("description", "unknown error")
            logger.error("Telegram rejected message", chat_id=str(chat_id), description=description)
            raise NotificationFailed(f"Telegram rejected message: {description}")
        return True

    def notify_order_status(self, order, status: str) -> bool:
        buyer = current_domain.repository_for(Account).get_or_none(order.customer_id)
        chat_id = buyer.chat_id if buyer is not None else None
        return self._send(chat_id, messages.order_status_message(order, status))

    def notify_referral_reward(self, referrer, amount: int, total_referrals: int) -> bool:
        return self._send(referrer.chat_id, messages.referral_reward_message(amount, total_referrals))

    def notify_low_stock(self, product, classification: str, variant_label: str | None) -> bool:
        return self._send(
            self.admin_chat_id,
            messages.stock_alert_message(product, classification, variant_label),
        )

    def notify_back_in_stock(self, subscriber, product, variant_label: str | None) -> bool:
        return self._send(subscriber.chat_id, messages.back_in_stock_message(product, variant_label))
