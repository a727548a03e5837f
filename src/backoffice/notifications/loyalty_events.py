"""Tells referrers about the commission they just earned."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from backoffice.domain import backoffice
from backoffice.loyalty.account import Account
from backoffice.loyalty.events import ReferralCommissionPaid
from backoffice.notifications.gateway import get_gateway

logger = structlog.get_logger(__name__)


@backoffice.event_handler(part_of=Account)
class ReferralNotificationHandler:
    @handle(ReferralCommissionPaid)
    def on_referral_commission_paid(self, event: ReferralCommissionPaid) -> None:
        try:
            referrer = current_domain.repository_for(Account).get(event.referrer_id)
            get_gateway().notify_referral_reward(referrer, event.amount, event.total_referrals)
        except Exception as exc:
            logger.error(
                "Referral reward notification failed",
                referrer_id=str(event.referrer_id),
                order_id=str(event.order_id),
                error=str(exc),
            )
