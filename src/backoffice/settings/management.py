"""Settings management — administrator command and handler."""

from protean import handle
from protean.fields import Boolean, Float, Integer, String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.settings.settings import SETTINGS_ID, StoreSettings, default_engine_config


@backoffice.command(part_of="StoreSettings")
class UpdateSettings:
    """Change bonus rates, the low-stock threshold or the referral policy."""

    purchase_bonus_rate = Float(min_value=0.0, max_value=100.0)
    referral_commission_rate = Float(min_value=0.0, max_value=100.0)
    low_stock_threshold = Integer(min_value=0)
    referral_policy = String(max_length=20)
    allow_approval_reversal = Boolean()


@backoffice.command_handler(part_of=StoreSettings)
class SettingsManagementHandler:
    @handle(UpdateSettings)
    def update_settings(self, command):
        repo = current_domain.repository_for(StoreSettings)
        settings = repo.get_or_none(SETTINGS_ID)
        if settings is None:
            settings = StoreSettings.from_defaults(default_engine_config())

        settings.update(
            purchase_bonus_rate=command.purchase_bonus_rate,
            referral_commission_rate=command.referral_commission_rate,
            low_stock_threshold=command.low_stock_threshold,
            referral_policy=command.referral_policy,
            allow_approval_reversal=command.allow_approval_reversal,
        )
        repo.add(settings)
        return settings.to_config()
