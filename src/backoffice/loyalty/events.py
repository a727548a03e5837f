"""Domain events for the Account aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from backoffice.domain import backoffice


@backoffice.event(part_of="Account")
class AccountRegistered:
    """A customer account was opened."""

    __version__ = 1

    account_id = Identifier(required=True)
    name = String(required=True)
    referral_code = String(required=True)
    referred_by = String()
    registered_at = DateTime(required=True)


@backoffice.event(part_of="Account")
class BonusCredited:
    """Bonus points were added to an account (any outstanding debt is settled first)."""

    __version__ = 1

    account_id = Identifier(required=True)
    points = Integer()
    debt_settled = Integer()
    balance = Integer()
    reason = String(required=True)
    order_id = Identifier()
    credited_at = DateTime(required=True)


@backoffice.event(part_of="Account")
class BonusDebited:
    """Bonus points were taken from an account. Any shortfall became debt."""

    __version__ = 1

    account_id = Identifier(required=True)
    points = Integer()
    debited = Integer()
    shortfall = Integer()
    balance = Integer()
    debt = Integer()
    reason = String(required=True)
    order_id = Identifier()
    debited_at = DateTime(required=True)


@backoffice.event(part_of="Account")
class ReferralCommissionPaid:
    """A referrer earned commission on an order placed by someone they referred."""

    __version__ = 1

    referrer_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    order_id = Identifier()
    amount = Integer()
    total_referrals = Integer()
    paid_at = DateTime(required=True)


@backoffice.event(part_of="Account")
class ReferralCommissionReversed:
    """Commission paid for an order was taken back because the order was rejected."""

    __version__ = 1

    referrer_id = Identifier(required=True)
    order_id = Identifier()
    amount = Integer()
    total_referrals = Integer()
    reversed_at = DateTime(required=True)
