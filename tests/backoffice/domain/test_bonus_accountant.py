"""Tests for bonus and commission arithmetic and referral qualification."""

import pytest
from backoffice.loyalty.account import Account
from backoffice.loyalty.accountant import BonusAccountant, percentage_points
from backoffice.settings.settings import EngineConfig, ReferralPolicy


def _make_account(**overrides):
    defaults = {"name": "Buyer"}
    defaults.update(overrides)
    account = Account.register(**defaults)
    account._events.clear()
    return account


class TestPercentagePoints:
    def test_ten_percent(self):
        assert percentage_points(100000, 10) == 10000

    @pytest.mark.parametrize(
        "total, rate, expected",
        [
            (105, 10, 11),  # 10.5 rounds up
            (104, 10, 10),  # 10.4 rounds down
            (25, 10, 3),  # 2.5 rounds up, not to even
            (0, 10, 0),
            (99999, 0, 0),
        ],
    )
    def test_rounds_half_up(self, total, rate, expected):
        assert percentage_points(total, rate) == expected

    def test_fractional_rate(self):
        assert percentage_points(1000, 2.5) == 25


class TestBonusAccountant:
    def setup_method(self):
        self.accountant = BonusAccountant(EngineConfig(purchase_bonus_rate=10, referral_commission_rate=5))

    def test_purchase_bonus_is_credited_and_returned(self):
        buyer = _make_account()
        awarded = self.accountant.credit_purchase_bonus(buyer, 100000, order_id="ord-001")
        assert awarded == 10000
        assert buyer.bonus_balance == 10000

    def test_zero_bonus_credits_nothing(self):
        buyer = _make_account()
        assert self.accountant.credit_purchase_bonus(buyer, 3) == 0
        assert buyer._events == []

    def test_debit_of_same_amount_restores_balance(self):
        buyer = _make_account()
        buyer.credit_points(700, "seed")
        awarded = self.accountant.credit_purchase_bonus(buyer, 55555)
        self.accountant.debit_points(buyer, awarded, "purchase_bonus_reversal")
        assert buyer.bonus_balance == 700

    def test_debit_of_zero_is_a_no_op(self):
        buyer = _make_account()
        result = self.accountant.debit_points(buyer, 0, "purchase_bonus_reversal")
        assert result.debited == 0
        assert buyer._events == []

    def test_referral_commission_uses_its_own_rate(self):
        referrer = _make_account(name="Referrer")
        amount = self.accountant.credit_referral_commission(referrer, 100000, buyer_id="acc-buyer")
        assert amount == 5000
        assert referrer.bonus_balance == 5000
        assert referrer.referral_count == 1

    def test_zero_commission_is_not_paid_or_counted(self):
        accountant = BonusAccountant(EngineConfig(referral_commission_rate=0))
        referrer = _make_account(name="Referrer")

        amount = accountant.credit_referral_commission(referrer, 100000, buyer_id="acc-buyer")

        assert amount == 0
        assert referrer.referral_count == 0
        assert referrer._events == []


class TestReferralQualification:
    def test_buyer_without_referrer_never_qualifies(self):
        accountant = BonusAccountant(EngineConfig())
        assert accountant.qualifies_for_referral(_make_account()) is False

    def test_every_order_policy(self):
        accountant = BonusAccountant(EngineConfig(referral_policy=ReferralPolicy.EVERY_ORDER.value))
        buyer = _make_account(referred_by="REF00001")
        buyer.record_approved_order()
        assert accountant.qualifies_for_referral(buyer) is True

    def test_first_order_policy_pays_once(self):
        accountant = BonusAccountant(EngineConfig(referral_policy=ReferralPolicy.FIRST_ORDER.value))
        buyer = _make_account(referred_by="REF00001")
        assert accountant.qualifies_for_referral(buyer) is True
        buyer.record_approved_order()
        assert accountant.qualifies_for_referral(buyer) is False


class TestEngineConfig:
    def test_from_mapping_ignores_unknown_keys(self):
        config = EngineConfig.from_mapping({"purchase_bonus_rate": 7, "theme": "dark"})
        assert config.purchase_bonus_rate == 7
        assert config.low_stock_threshold == 10

    def test_config_is_immutable(self):
        config = EngineConfig()
        with pytest.raises(AttributeError):
            config.purchase_bonus_rate = 50
