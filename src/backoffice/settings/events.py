"""Domain events for the StoreSettings aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from backoffice.domain import backoffice


@backoffice.event(part_of="StoreSettings")
class SettingsUpdated:
    """Administrator changed bonus rates, alert threshold or referral policy."""

    __version__ = 1

    settings_id = Identifier(required=True)
    purchase_bonus_rate = Float()
    referral_commission_rate = Float()
    low_stock_threshold = Integer()
    referral_policy = String()
    allow_approval_reversal = Boolean()
    updated_at = DateTime(required=True)
