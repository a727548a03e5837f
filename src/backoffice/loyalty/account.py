"""Account aggregate — a customer's bonus balance and referral standing.

The balance never goes below zero. A debit larger than the balance takes
what is there and records the rest as ``bonus_debt``; later credits settle
the debt before they increase the balance.
"""

import secrets
import string
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String

from backoffice.domain import backoffice
from backoffice.loyalty.events import (
    AccountRegistered,
    BonusCredited,
    BonusDebited,
    ReferralCommissionPaid,
    ReferralCommissionReversed,
)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code(name: str) -> str:
    """First four characters of the name (spaces removed, upper-cased) plus four random ones."""
    prefix = "".join(name.split()).upper()[:4]
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))
    return f"{prefix}{suffix}"


@dataclass(frozen=True)
class DebitResult:
    requested: int
    debited: int
    shortfall: int


@backoffice.aggregate
class Account:
    name = String(required=True, max_length=255)
    referral_code = String(required=True, max_length=20, unique=True)
    referred_by = String(max_length=20)
    chat_id = String(max_length=64)
    bonus_balance = Integer(default=0, min_value=0)
    bonus_debt = Integer(default=0, min_value=0)
    referral_count = Integer(default=0, min_value=0)
    approved_order_count = Integer(default=0, min_value=0)
    registered_at = DateTime()

    @invariant.post
    def cannot_refer_self(self):
        if self.referred_by and self.referred_by.upper() == (self.referral_code or "").upper():
            raise ValidationError({"referred_by": ["An account cannot use its own referral code"]})

    @classmethod
    def register(cls, name, referred_by=None, chat_id=None, referral_code=None):
        now = datetime.now(UTC)
        account = cls(
            name=name,
            referral_code=(referral_code or generate_referral_code(name)).upper(),
            referred_by=referred_by.strip().upper() if referred_by and referred_by.strip() else None,
            chat_id=chat_id,
            registered_at=now,
        )
        account.raise_(
            AccountRegistered(
                account_id=str(account.id),
                name=name,
                referral_code=account.referral_code,
                referred_by=account.referred_by,
                registered_at=now,
            )
        )
        return account

    def credit_points(self, points: int, reason: str, order_id=None) -> int:
        """Add ``points``; outstanding debt is settled first. Returns ``points``."""
        if points < 0:
            raise ValidationError({"points": ["Credit must not be negative"]})

        settled = min(points, self.bonus_debt or 0)
        with atomic_change(self):
            self.bonus_debt = (self.bonus_debt or 0) - settled
            self.bonus_balance = (self.bonus_balance or 0) + points - settled

        self.raise_(
            BonusCredited(
                account_id=str(self.id),
                points=points,
                debt_settled=settled,
                balance=self.bonus_balance,
                reason=reason,
                order_id=order_id,
                credited_at=datetime.now(UTC),
            )
        )
        return points

    def debit_points(self, points: int, reason: str, order_id=None) -> DebitResult:
        """Take ``points`` out of the balance, clamped at zero; the remainder becomes debt."""
        if points < 0:
            raise ValidationError({"points": ["Debit must not be negative"]})

        balance = self.bonus_balance or 0
        debited = min(points, balance)
        shortfall = points - debited
        with atomic_change(self):
            self.bonus_balance = balance - debited
            self.bonus_debt = (self.bonus_debt or 0) + shortfall

        self.raise_(
            BonusDebited(
                account_id=str(self.id),
                points=points,
                debited=debited,
                shortfall=shortfall,
                balance=self.bonus_balance,
                debt=self.bonus_debt,
                reason=reason,
                order_id=order_id,
                debited_at=datetime.now(UTC),
            )
        )
        return DebitResult(requested=points, debited=debited, shortfall=shortfall)

    def adjust_points(self, delta: int, reason: str = "manual_adjustment"):
        if delta >= 0:
            self.credit_points(delta, reason)
            return DebitResult(requested=0, debited=0, shortfall=0)
        return self.debit_points(-delta, reason)

    def receive_referral_commission(self, amount: int, buyer_id, order_id=None) -> int:
        self.credit_points(amount, "referral_commission", order_id)
        self.referral_count = (self.referral_count or 0) + 1
        self.raise_(
            ReferralCommissionPaid(
                referrer_id=str(self.id),
                buyer_id=str(buyer_id),
                order_id=order_id,
                amount=amount,
                total_referrals=self.referral_count,
                paid_at=datetime.now(UTC),
            )
        )
        return amount

    def reverse_referral_commission(self, amount: int, order_id=None) -> DebitResult:
        result = self.debit_points(amount, "referral_commission_reversal", order_id)
        self.referral_count = max(0, (self.referral_count or 0) - 1)
        self.raise_(
            ReferralCommissionReversed(
                referrer_id=str(self.id),
                order_id=order_id,
                amount=amount,
                total_referrals=self.referral_count,
                reversed_at=datetime.now(UTC),
            )
        )
        return result

    def record_approved_order(self):
        self.approved_order_count = (self.approved_order_count or 0) + 1

    def revert_approved_order(self):
        self.approved_order_count = max(0, (self.approved_order_count or 0) - 1)


@backoffice.repository(part_of=Account)
class AccountRepository:
    def find_by_referral_code(self, code: str) -> Account | None:
        if not code:
            return None
        matches = self._dao.query.filter(referral_code=code.strip().upper()).all().items
        return matches[0] if matches else None
