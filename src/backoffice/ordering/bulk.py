"""Bulk runner — applies one order operation to many orders.

Each order is processed as its own command, so one failure never rolls
back or blocks the others.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from backoffice.ordering.lifecycle import (
    ApproveOrder,
    DeleteOrder,
    RejectOrder,
    UpdateOrderStatus,
)

logger = structlog.get_logger(__name__)


class BulkOperation(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"
    UPDATE_STATUS = "update_status"


@dataclass
class BulkResult:
    succeeded: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)
    outcomes: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": self.errors,
            "outcomes": self.outcomes,
        }


def _command_for(operation: BulkOperation, order_id, target_status=None, reason=None):
    if operation == BulkOperation.APPROVE:
        return ApproveOrder(order_id=order_id)
    if operation == BulkOperation.REJECT:
        return RejectOrder(order_id=order_id, reason=reason)
    if operation == BulkOperation.DELETE:
        return DeleteOrder(order_id=order_id)
    return UpdateOrderStatus(order_id=order_id, status=target_status)


def run_bulk(order_ids, operation, target_status=None, reason=None) -> BulkResult:
    """Apply ``operation`` to every order id, in input order, and tally the results.

    ``succeeded + failed`` always equals the number of ids given. Duplicate
    ids are processed each time they appear.
    """
    operation = BulkOperation(operation)
    if operation == BulkOperation.UPDATE_STATUS and not target_status:
        raise ValidationError({"target_status": ["A target status is required for status updates"]})

    result = BulkResult()
    for order_id in order_ids:
        try:
            command = _command_for(operation, order_id, target_status, reason)
            outcome = current_domain.process(command, asynchronous=False)
        except Exception as exc:
            result.failed += 1
            result.errors.append({"order_id": str(order_id), "type": type(exc).__name__, "error": str(exc)})
            logger.warning(
                "Bulk operation failed for order",
                operation=operation.value,
                order_id=str(order_id),
                error=str(exc),
            )
        else:
            result.succeeded += 1
            result.outcomes.append(outcome)

    logger.info(
        "Bulk operation finished",
        operation=operation.value,
        succeeded=result.succeeded,
        failed=result.failed,
    )
    return result
