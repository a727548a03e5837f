"""Order lifecycle — approve, reject, advance and delete orders.

Each command runs in one unit of work: the ledger, accountant and order
changes it makes commit together, and the order itself is written last.
Problems with an individual product, variant or referrer do not stop the
transition; they come back to the caller as ``warnings``.
"""

from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.exceptions import DatabaseError, ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.exceptions import ReferrerNotFound
from backoffice.inventory.ledger import InventoryLedger, LedgerResult
from backoffice.loyalty.account import Account
from backoffice.loyalty.accountant import BonusAccountant
from backoffice.ordering.order import Order, OrderStatus
from backoffice.settings.settings import EngineConfig, load_engine_config

logger = structlog.get_logger(__name__)


@backoffice.command(part_of="Order")
class ApproveOrder:
    order_id = Identifier(required=True)
    expected_version = Integer()


@backoffice.command(part_of="Order")
class RejectOrder:
    order_id = Identifier(required=True)
    expected_version = Integer()
    reason = String(max_length=500)


@backoffice.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    expected_version = Integer()


@backoffice.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    expected_version = Integer()


@dataclass
class Outcome:
    """What an order operation did, returned to the caller."""

    order_id: str
    status: str
    warnings: list[dict] = field(default_factory=list)
    stock_changes: list[dict] = field(default_factory=list)
    bonus_awarded: int = 0
    bonus_debited: int = 0
    bonus_shortfall: int = 0
    referral_commission: int = 0

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "status": self.status,
            "warnings": self.warnings,
            "stock_changes": self.stock_changes,
            "bonus_awarded": self.bonus_awarded,
            "bonus_debited": self.bonus_debited,
            "bonus_shortfall": self.bonus_shortfall,
            "referral_commission": self.referral_commission,
        }


def _warn(outcome: Outcome, exc: Exception, message: str, **context) -> None:
    logger.warning(message, order_id=outcome.order_id, error=str(exc), **context)
    outcome.warnings.append({"type": type(exc).__name__, "detail": str(exc), **context})


def _load_account(outcome: Outcome, account_id, role: str) -> Account | None:
    try:
        account = current_domain.repository_for(Account).get_or_none(account_id)
    except DatabaseError as exc:
        _warn(outcome, exc, "Could not load account", account_id=str(account_id), role=role)
        return None
    if account is None:
        outcome.warnings.append(
            {
                "type": "ObjectNotFoundError",
                "detail": f"{role.capitalize()} account {account_id} not found",
                "account_id": str(account_id),
            }
        )
        logger.warning("Account not found", order_id=outcome.order_id, account_id=str(account_id), role=role)
    return account


def _record_stock(outcome: Outcome, result: LedgerResult) -> None:
    outcome.stock_changes.extend(change.to_dict() for change in result.changes)
    outcome.warnings.extend(result.warnings)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
def approve(order_id, expected_version=None, config: EngineConfig | None = None) -> Outcome:
    config = config or load_engine_config()
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.check_version(expected_version)
    order.assert_can_approve()

    outcome = Outcome(order_id=str(order.id), status=order.status)

    # Stock first, so a failed item never leaves a bonus without its inventory change
    if not order.stock_deducted:
        deduction = InventoryLedger(config).deduct_items(order.items, order_id=outcome.order_id)
        _record_stock(outcome, deduction)
        order.record_stock_deduction(deduction.applied)

    accountant = BonusAccountant(config)
    referrer_id = None
    buyer = _load_account(outcome, order.customer_id, "buyer")
    if buyer is not None:
        qualifies = accountant.qualifies_for_referral(buyer)
        outcome.bonus_awarded = accountant.credit_purchase_bonus(buyer, order.total, outcome.order_id)
        buyer.record_approved_order()

        if qualifies:
            try:
                referrer = accountant.resolve_referrer(buyer)
            except (ReferrerNotFound, DatabaseError) as exc:
                _warn(outcome, exc, "Referral commission skipped", referral_code=buyer.referred_by)
            else:
                outcome.referral_commission = accountant.credit_referral_commission(
                    referrer, order.total, buyer.id, outcome.order_id
                )
                # A 0-point commission leaves the referrer untouched
                if outcome.referral_commission:
                    referrer_id = str(referrer.id)
                    current_domain.repository_for(Account).add(referrer)

        current_domain.repository_for(Account).add(buyer)

    order.approve(
        awarded_bonus=outcome.bonus_awarded,
        referrer_id=referrer_id,
        referral_commission=outcome.referral_commission,
    )
    repo.add(order)
    outcome.status = order.status

    logger.info(
        "Order approved",
        order_id=outcome.order_id,
        bonus_awarded=outcome.bonus_awarded,
        referral_commission=outcome.referral_commission,
        warnings=len(outcome.warnings),
    )
    return outcome


def reject(order_id, expected_version=None, reason=None, config: EngineConfig | None = None) -> Outcome:
    config = config or load_engine_config()
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.check_version(expected_version)
    order.assert_can_reject(config.allow_approval_reversal)

    outcome = Outcome(order_id=str(order.id), status=order.status)
    accountant = BonusAccountant(config)
    was_approved = order.current_status() == OrderStatus.APPROVED

    if order.stock_deducted:
        _record_stock(outcome, InventoryLedger(config).restore_items(order.items, order_id=outcome.order_id))

    if was_approved:
        buyer = _load_account(outcome, order.customer_id, "buyer")
        if buyer is not None:
            debit = accountant.debit_points(buyer, order.awarded_bonus or 0, "purchase_bonus_reversal", outcome.order_id)
            outcome.bonus_debited = debit.debited
            outcome.bonus_shortfall = debit.shortfall
            buyer.revert_approved_order()
            current_domain.repository_for(Account).add(buyer)

    if order.referrer_id:
        referrer = _load_account(outcome, order.referrer_id, "referrer")
        if referrer is not None:
            referrer.reverse_referral_commission(order.referral_commission or 0, outcome.order_id)
            current_domain.repository_for(Account).add(referrer)

    order.reject(allow_reversal=config.allow_approval_reversal, reason=reason)
    repo.add(order)
    outcome.status = order.status

    logger.info(
        "Order rejected",
        order_id=outcome.order_id,
        was_approved=was_approved,
        bonus_debited=outcome.bonus_debited,
        warnings=len(outcome.warnings),
    )
    return outcome


def update_status(order_id, status, expected_version=None) -> Outcome:
    try:
        target = OrderStatus(str(status).strip().lower())
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status {status}"]}) from None

    if target == OrderStatus.APPROVED:
        return approve(order_id, expected_version)
    if target == OrderStatus.REJECTED:
        return reject(order_id, expected_version)

    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.check_version(expected_version)
    if target == OrderStatus.SHIPPED:
        order.ship()
    elif target == OrderStatus.DELIVERED:
        order.deliver()
    else:
        # PENDING is never a target
        order._assert_can_transition(target)
    repo.add(order)

    logger.info("Order status updated", order_id=str(order.id), status=order.status)
    return Outcome(order_id=str(order.id), status=order.status)


def delete_order(order_id, expected_version=None) -> str:
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.check_version(expected_version)
    order.ensure_deletable()
    repo._dao.delete(order)

    logger.info("Order deleted", order_id=str(order.id), status=order.status)
    return str(order.id)


@backoffice.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(ApproveOrder)
    def approve_order(self, command):
        return approve(command.order_id, command.expected_version).to_dict()

    @handle(RejectOrder)
    def reject_order(self, command):
        return reject(command.order_id, command.expected_version, reason=command.reason).to_dict()

    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        return update_status(command.order_id, command.status, command.expected_version).to_dict()

    @handle(DeleteOrder)
    def delete_order(self, command):
        return delete_order(command.order_id, command.expected_version)
