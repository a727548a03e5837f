"""StoreSettings aggregate and the EngineConfig snapshot read by every order operation.

Defaults come from the ``[custom]`` section of ``domain.toml``. Once an
administrator saves settings, the persisted record is authoritative. Order
operations call ``load_engine_config()`` at their start and pass the
resulting value object down; nothing below the handler reads settings on
its own.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.settings.events import SettingsUpdated

SETTINGS_ID = "store-settings"


class ReferralPolicy(Enum):
    FIRST_ORDER = "first_order"
    EVERY_ORDER = "every_order"


@dataclass(frozen=True)
class EngineConfig:
    """Immutable view of the business configuration for one operation."""

    purchase_bonus_rate: float = 10.0
    referral_commission_rate: float = 10.0
    low_stock_threshold: int = 10
    referral_policy: str = ReferralPolicy.EVERY_ORDER.value
    allow_approval_reversal: bool = True
    currency: str = "UZS"

    @classmethod
    def from_mapping(cls, values: dict) -> "EngineConfig":
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@backoffice.aggregate
class StoreSettings:
    """Process-wide business settings, persisted as a single record."""

    purchase_bonus_rate = Float(default=10.0, min_value=0.0, max_value=100.0)
    referral_commission_rate = Float(default=10.0, min_value=0.0, max_value=100.0)
    low_stock_threshold = Integer(default=10, min_value=0)
    referral_policy = String(choices=ReferralPolicy, default=ReferralPolicy.EVERY_ORDER.value)
    allow_approval_reversal = Boolean(default=True)
    currency = String(max_length=3, default="UZS")
    updated_at = DateTime()

    @invariant.post
    def rates_must_not_exceed_full_amount(self):
        total = (self.purchase_bonus_rate or 0) + (self.referral_commission_rate or 0)
        if total > 100:
            raise ValidationError({"purchase_bonus_rate": ["Bonus and commission rates cannot exceed 100% combined"]})

    @classmethod
    def from_defaults(cls, defaults: EngineConfig) -> "StoreSettings":
        return cls(
            id=SETTINGS_ID,
            purchase_bonus_rate=defaults.purchase_bonus_rate,
            referral_commission_rate=defaults.referral_commission_rate,
            low_stock_threshold=defaults.low_stock_threshold,
            referral_policy=defaults.referral_policy,
            allow_approval_reversal=defaults.allow_approval_reversal,
            currency=defaults.currency,
            updated_at=datetime.now(UTC),
        )

    def update(
        self,
        purchase_bonus_rate=None,
        referral_commission_rate=None,
        low_stock_threshold=None,
        referral_policy=None,
        allow_approval_reversal=None,
    ):
        if purchase_bonus_rate is not None:
            self.purchase_bonus_rate = purchase_bonus_rate
        if referral_commission_rate is not None:
            self.referral_commission_rate = referral_commission_rate
        if low_stock_threshold is not None:
            self.low_stock_threshold = low_stock_threshold
        if referral_policy is not None:
            self.referral_policy = referral_policy
        if allow_approval_reversal is not None:
            self.allow_approval_reversal = allow_approval_reversal
        self.updated_at = datetime.now(UTC)

        self.raise_(
            SettingsUpdated(
                settings_id=str(self.id),
                purchase_bonus_rate=self.purchase_bonus_rate,
                referral_commission_rate=self.referral_commission_rate,
                low_stock_threshold=self.low_stock_threshold,
                referral_policy=self.referral_policy,
                allow_approval_reversal=self.allow_approval_reversal,
                updated_at=self.updated_at,
            )
        )

    def to_config(self) -> EngineConfig:
        return EngineConfig(
            purchase_bonus_rate=self.purchase_bonus_rate,
            referral_commission_rate=self.referral_commission_rate,
            low_stock_threshold=self.low_stock_threshold,
            referral_policy=self.referral_policy,
            allow_approval_reversal=self.allow_approval_reversal,
            currency=self.currency,
        )


def default_engine_config() -> EngineConfig:
    """Configuration from ``domain.toml``'s ``[custom]`` section."""
    return EngineConfig.from_mapping(current_domain.config["custom"] or {})


def load_engine_config() -> EngineConfig:
    """Read the current configuration. Persisted settings override the defaults."""
    settings = current_domain.repository_for(StoreSettings).get_or_none(SETTINGS_ID)
    if settings is None:
        return default_engine_config()
    return settings.to_config()
