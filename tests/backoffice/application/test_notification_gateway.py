"""Tests for the notification gateway port, fake adapter and factory."""

import json
from types import SimpleNamespace

import httpx
import pytest
from backoffice.exceptions import NotificationFailed
from backoffice.notifications import messages
from backoffice.notifications.gateway import get_gateway, reset_gateway, set_gateway
from backoffice.notifications.gateway.fake_adapter import FakeNotificationGateway
from backoffice.notifications.gateway.telegram_adapter import TelegramNotificationGateway


def _product(**overrides):
    defaults = {"id": "prod-001", "name": "T-Shirt", "total_stock": lambda: 3}
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


class TestFakeNotificationGateway:
    def test_records_calls(self):
        gateway = FakeNotificationGateway()
        gateway.notify_referral_reward(SimpleNamespace(id="acc-001"), 500, 2)
        assert gateway.calls == [
            {"method": "notify_referral_reward", "referrer_id": "acc-001", "amount": 500, "total_referrals": 2}
        ]

    def test_configured_failure_raises(self):
        gateway = FakeNotificationGateway()
        gateway.configure(should_succeed=False, failure_reason="Bot blocked")
        with pytest.raises(NotificationFailed):
            gateway.notify_low_stock(_product(), "lowStock", None)
        assert len(gateway.calls) == 1

    def test_reset(self):
        gateway = FakeNotificationGateway()
        gateway.configure(should_succeed=False)
        gateway.reset()
        assert gateway.should_succeed is True
        assert gateway.calls == []

    def test_calls_for_filters_by_method(self):
        gateway = FakeNotificationGateway()
        gateway.notify_low_stock(_product(), "lowStock", "Red - M")
        gateway.notify_referral_reward(SimpleNamespace(id="acc-001"), 1, 1)
        assert len(gateway.calls_for("notify_low_stock")) == 1


class TestGatewayFactory:
    def test_defaults_to_fake(self, monkeypatch):
        monkeypatch.delenv("NOTIFICATION_GATEWAY", raising=False)
        reset_gateway()
        assert isinstance(get_gateway(), FakeNotificationGateway)

    def test_telegram_selected_from_environment(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_GATEWAY", "telegram")
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        monkeypatch.setenv("TELEGRAM_ADMIN_CHAT_ID", "42")
        reset_gateway()
        gateway = get_gateway()
        assert isinstance(gateway, TelegramNotificationGateway)
        assert gateway.admin_chat_id == "42"

    def test_set_gateway_overrides(self):
        custom = FakeNotificationGateway()
        set_gateway(custom)
        assert get_gateway() is custom


class TestTelegramNotificationGateway:
    def _gateway(self, handler, admin_chat_id="42"):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return TelegramNotificationGateway(bot_token="123:abc", admin_chat_id=admin_chat_id, client=client)

    def test_low_stock_goes_to_admin_chat(self):
        sent = []

        def handler(request):
            sent.append(request)
            return httpx.Response(200, json={"ok": True, "result": {}})

        gateway = self._gateway(handler)
        assert gateway.notify_low_stock(_product(), "outOfStock", "Red - M") is True

        request = sent[0]
        assert request.url.path.endswith("/sendMessage")
        body = json.loads(request.content)
        assert body["chat_id"] == "42"
        assert body["parse_mode"] == "HTML"
        assert "Red - M" in body["text"]

    def test_no_chat_means_nothing_sent(self):
        def handler(request):
            raise AssertionError("No request expected")

        gateway = self._gateway(handler, admin_chat_id=None)
        assert gateway.notify_low_stock(_product(), "lowStock", None) is False

    def test_http_error_raises_notification_failed(self):
        def handler(request):
            return httpx.Response(502)

        gateway = self._gateway(handler)
        with pytest.raises(NotificationFailed):
            gateway.notify_referral_reward(SimpleNamespace(id="acc-1", chat_id="77"), 100, 1)

    def test_api_refusal_raises_notification_failed(self):
        def handler(request):
            return httpx.Response(200, json={"ok": False, "description": "chat not found"})

        gateway = self._gateway(handler)
        with pytest.raises(NotificationFailed, match="chat not found"):
            gateway.notify_back_in_stock(SimpleNamespace(id="acc-1", chat_id="77"), _product(), None)

    def test_missing_token_is_rejected(self):
        with pytest.raises(NotificationFailed):
            TelegramNotificationGateway(bot_token="")


class TestMessages:
    def test_stock_alert_message_escapes_names(self):
        text = messages.stock_alert_message(_product(name="<Tee>"), "lowStock", None)
        assert "&lt;Tee&gt;" in text
        assert "Total stock: 3" in text

    def test_referral_message(self):
        text = messages.referral_reward_message(500, 3)
        assert "500" in text
        assert "Referrals so far: 3" in text
