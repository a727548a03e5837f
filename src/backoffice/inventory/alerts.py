"""Low-stock alert filter.

Classifies a stock movement so that operators hear about a crossing once,
not on every read of a value that is already low.
"""

from enum import Enum


class StockAlert(Enum):
    NONE = "none"
    BACK_IN_STOCK = "backInStock"
    LOW_STOCK = "lowStock"
    OUT_OF_STOCK = "outOfStock"


def should_alert(old_stock: int, new_stock: int, threshold: int) -> StockAlert:
    """Classify the move from ``old_stock`` to ``new_stock``.

    >>> should_alert(1, 0, 10)
    <StockAlert.OUT_OF_STOCK: 'outOfStock'>
    >>> should_alert(5, 5, 10)
    <StockAlert.NONE: 'none'>
    """
    if new_stock == 0 and old_stock > 0:
        return StockAlert.OUT_OF_STOCK
    if old_stock == 0 and new_stock > 0:
        return StockAlert.BACK_IN_STOCK
    if 0 < new_stock <= threshold and new_stock != old_stock:
        return StockAlert.LOW_STOCK
    return StockAlert.NONE
