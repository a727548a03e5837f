"""Account management — registration and manual bonus adjustments."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.loyalty.account import Account


@backoffice.command(part_of="Account")
class RegisterAccount:
    name = String(required=True, max_length=255)
    referred_by = String(max_length=20)
    chat_id = String(max_length=64)
    referral_code = String(max_length=20)


@backoffice.command(part_of="Account")
class AdjustBonusPoints:
    """Administrator correction of a bonus balance by a signed amount."""

    account_id = Identifier(required=True)
    delta = Integer(required=True)
    reason = String(max_length=100)


@backoffice.command_handler(part_of=Account)
class AccountManagementHandler:
    @handle(RegisterAccount)
    def register_account(self, command):
        repo = current_domain.repository_for(Account)
        if command.referral_code and repo.find_by_referral_code(command.referral_code):
            raise ValidationError({"referral_code": ["Referral code is already taken"]})

        account = Account.register(
            name=command.name,
            referred_by=command.referred_by,
            chat_id=command.chat_id,
            referral_code=command.referral_code,
        )
        repo.add(account)
        return str(account.id)

    @handle(AdjustBonusPoints)
    def adjust_bonus_points(self, command):
        repo = current_domain.repository_for(Account)
        account = repo.get(command.account_id)
        account.adjust_points(command.delta, command.reason or "manual_adjustment")
        repo.add(account)
        return account.bonus_balance
