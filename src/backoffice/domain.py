"""Backoffice bounded context — Order fulfillment and inventory reconciliation.

Moves orders through their lifecycle while keeping product stock, customer
bonus balances and referral commissions consistent, and raises low-stock
alerts for operators.
"""

from protean.domain import Domain

from backoffice.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
backoffice = Domain(name="backoffice")
