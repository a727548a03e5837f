"""Bonus & referral accountant.

Turns order totals into purchase-bonus and referral-commission points using
the rates of the ``EngineConfig`` it was given, and applies them to
``Account`` aggregates. Loading and saving the accounts is left to the
caller so that all changes of one order operation share a unit of work.
"""

from decimal import ROUND_HALF_UP, Decimal

import structlog
from protean.utils.globals import current_domain

from backoffice.exceptions import ReferrerNotFound
from backoffice.loyalty.account import Account, DebitResult
from backoffice.settings.settings import EngineConfig, ReferralPolicy

logger = structlog.get_logger(__name__)


def percentage_points(total: float, rate: float) -> int:
    """``total * rate / 100`` rounded half up, so 0.5 becomes 1 like a cashier would."""
    amount = Decimal(str(total)) * Decimal(str(rate)) / Decimal(100)
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class BonusAccountant:
    def __init__(self, config: EngineConfig):
        self.config = config

    def purchase_bonus_for(self, order_total: float) -> int:
        return percentage_points(order_total, self.config.purchase_bonus_rate)

    def referral_commission_for(self, order_total: float) -> int:
        return percentage_points(order_total, self.config.referral_commission_rate)

    def credit_purchase_bonus(self, buyer: Account, order_total: float, order_id=None) -> int:
        """Credit the buyer and return the exact amount, to be stored for a later reversal."""
        points = self.purchase_bonus_for(order_total)
        if points > 0:
            buyer.credit_points(points, "purchase_bonus", order_id)
        return points

    def debit_points(self, account: Account, points: int, reason: str, order_id=None) -> DebitResult:
        if points <= 0:
            return DebitResult(requested=0, debited=0, shortfall=0)
        result = account.debit_points(points, reason, order_id)
        if result.shortfall:
            logger.warning(
                "Debit exceeded bonus balance, shortfall recorded as debt",
                account_id=str(account.id),
                order_id=order_id,
                requested=points,
                shortfall=result.shortfall,
            )
        return result

    def credit_referral_commission(self, referrer: Account, order_total: float, buyer_id, order_id=None) -> int:
        """Pay the referrer. A commission that rounds to 0 is not paid and not counted as a referral."""
        amount = self.referral_commission_for(order_total)
        if amount <= 0:
            return 0
        referrer.receive_referral_commission(amount, buyer_id, order_id)
        return amount

    def qualifies_for_referral(self, buyer: Account) -> bool:
        """Whether this approval should pay the referrer, given the configured policy.

        Call before the approval is counted on the buyer.
        """
        if not buyer.referred_by:
            return False
        if self.config.referral_policy == ReferralPolicy.FIRST_ORDER.value:
            return (buyer.approved_order_count or 0) == 0
        return True

    def resolve_referrer(self, buyer: Account) -> Account:
        """Look up the account behind the buyer's ``referred_by`` code."""
        referrer = current_domain.repository_for(Account).find_by_referral_code(buyer.referred_by)
        if referrer is None or str(referrer.id) == str(buyer.id):
            raise ReferrerNotFound(buyer.referred_by)
        return referrer
