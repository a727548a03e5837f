"""Inventory ledger — applies stock deltas for order line items.

Each product touched by an order is loaded once, every line item for it is
applied, the alert filter is consulted once per affected variant with the
before/after levels, and the product is saved once.
"""

from collections import defaultdict
from dataclasses import dataclass, field

import structlog
from protean.exceptions import DatabaseError, ObjectNotFoundError
from protean.utils.globals import current_domain

from backoffice.exceptions import RecordStoreError, VariantNotFound
from backoffice.inventory.alerts import should_alert
from backoffice.inventory.product import Product, StockChange
from backoffice.settings.settings import EngineConfig

logger = structlog.get_logger(__name__)


@dataclass
class LedgerResult:
    changes: list[StockChange] = field(default_factory=list)
    warnings: list[dict] = field(default_factory=list)
    # Line items whose movement was applied
    applied: list = field(default_factory=list)


def _snapshot(product: Product) -> dict:
    if product.has_variants():
        return {v.key(): (v.color, v.size, v.stock) for v in product.variants}
    return {None: (None, None, product.stock or 0)}


class InventoryLedger:
    def __init__(self, config: EngineConfig):
        self.config = config
        self.repo = current_domain.repository_for(Product)

    def _load(self, product_id) -> Product:
        try:
            return self.repo.get(product_id)
        except DatabaseError as exc:
            raise RecordStoreError(f"Could not load product {product_id}: {exc}") from exc

    def _raise_alerts(self, product: Product, baseline: dict) -> None:
        after = _snapshot(product)
        for key, (color, size, previous) in baseline.items():
            current = after.get(key, (color, size, previous))[2]
            if current == previous:
                continue
            classification = should_alert(previous, current, self.config.low_stock_threshold)
            product.flag_stock_alert(
                classification,
                previous,
                current,
                self.config.low_stock_threshold,
                color=color,
                size=size,
            )

    # ------------------------------------------------------------------
    # Single movements
    # ------------------------------------------------------------------
    def deduct(self, product_id, quantity, color=None, size=None, order_id=None) -> StockChange:
        product = self._load(product_id)
        baseline = _snapshot(product)
        change = product.deduct_stock(quantity, color=color, size=size, order_id=order_id)
        self._raise_alerts(product, baseline)
        self.repo.add(product)
        return change

    def restore(self, product_id, quantity, color=None, size=None, order_id=None) -> StockChange:
        product = self._load(product_id)
        baseline = _snapshot(product)
        change = product.restore_stock(quantity, color=color, size=size, order_id=order_id)
        self._raise_alerts(product, baseline)
        self.repo.add(product)
        return change

    def set_stock(self, product_id, new_stock, color=None, size=None) -> StockChange:
        product = self._load(product_id)
        baseline = _snapshot(product)
        change = product.set_stock(new_stock, color=color, size=size)
        self._raise_alerts(product, baseline)
        self.repo.add(product)
        return change

    def total_stock(self, product_id) -> int:
        return self._load(product_id).total_stock()

    # ------------------------------------------------------------------
    # Order batches
    # ------------------------------------------------------------------
    def deduct_items(self, items, order_id=None) -> LedgerResult:
        """Deduct each item's ordered quantity. ``result.applied`` lists the items that moved stock."""
        return self._apply(items, "deduct_stock", order_id, lambda item: item.quantity)

    def restore_items(self, items, order_id=None) -> LedgerResult:
        """Give back only what approval actually deducted for each item."""
        return self._apply(items, "restore_stock", order_id, lambda item: item.deducted_quantity or 0)

    def _apply(self, items, movement: str, order_id, quantity_of) -> LedgerResult:
        result = LedgerResult()

        grouped = defaultdict(list)
        for item in items:
            if quantity_of(item) > 0:
                grouped[str(item.product_id)].append(item)

        for product_id, group in grouped.items():
            try:
                product = self._load(product_id)
            except (ObjectNotFoundError, RecordStoreError) as exc:
                logger.warning(
                    "Skipping stock movement for missing product",
                    order_id=order_id,
                    product_id=product_id,
                    movement=movement,
                    error=str(exc),
                )
                result.warnings.append(
                    {
                        "type": type(exc).__name__,
                        "product_id": product_id,
                        "detail": str(exc),
                    }
                )
                continue

            baseline = _snapshot(product)
            applied = 0
            for item in group:
                try:
                    change = getattr(product, movement)(
                        quantity_of(item),
                        color=item.color,
                        size=item.size,
                        order_id=order_id,
                    )
                except VariantNotFound as exc:
                    logger.warning(
                        "Variant not found, stock left untouched",
                        order_id=order_id,
                        product_id=product_id,
                        color=item.color,
                        size=item.size,
                    )
                    result.warnings.append(
                        {
                            "type": "VariantNotFound",
                            "product_id": product_id,
                            "detail": str(exc),
                        }
                    )
                    continue
                result.changes.append(change)
                result.applied.append(item)
                applied += 1

            if applied:
                self._raise_alerts(product, baseline)
                self.repo.add(product)

        return result
