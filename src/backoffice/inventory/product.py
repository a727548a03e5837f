"""Product aggregate with the Variant entity.

A product tracks either a flat stock count or a color x size variant
matrix. When variants exist the flat ``stock`` field is ignored and
availability is the sum of variant stock.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String

from backoffice.domain import backoffice
from backoffice.exceptions import VariantNotFound
from backoffice.inventory.alerts import StockAlert
from backoffice.inventory.events import (
    ProductCreated,
    StockAlertRaised,
    StockChanged,
    VariantMatrixUpdated,
)
from backoffice.inventory.variants import (
    VariantKey,
    available_colors,
    available_sizes_for_color,
    format_variant_name,
    generate_sku,
    low_stock_variants,
    merge_variants,
    out_of_stock_variants,
    total_variant_stock,
)


@dataclass(frozen=True)
class StockChange:
    """Outcome of a single stock movement."""

    product_id: str
    color: str | None
    size: str | None
    previous_stock: int
    new_stock: int
    requested: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant": format_variant_name(self.color, self.size) or None,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "requested": self.requested,
        }


@backoffice.entity(part_of="Product")
class Variant:
    """One (color, size) stock-keeping unit of a product."""

    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)
    sku = String(max_length=50)

    def key(self) -> VariantKey:
        return VariantKey.of(self.color, self.size)

    def label(self) -> str:
        return format_variant_name(self.color, self.size)


@backoffice.aggregate
class Product:
    name = String(required=True, max_length=255)
    price = Float(default=0.0, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    variants = HasMany(Variant)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variant_pairs_must_be_unique(self):
        keys = [v.key() for v in self.variants or []]
        if len(keys) != len(set(keys)):
            raise ValidationError({"variants": ["Each color/size pair may appear only once"]})

    @classmethod
    def create(cls, name, price=0.0, stock=0, variants=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            price=price,
            stock=0 if variants else stock,
            created_at=now,
            updated_at=now,
        )
        for entry in variants or []:
            product.add_variants(
                Variant(
                    color=entry["color"].strip(),
                    size=entry["size"].strip(),
                    stock=entry.get("stock", 0),
                    sku=entry.get("sku") or generate_sku(entry["color"], entry["size"]),
                )
            )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                name=name,
                variant_count=len(product.variants),
                total_stock=product.total_stock(),
                created_at=now,
            )
        )
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def has_variants(self) -> bool:
        return bool(self.variants)

    def total_stock(self) -> int:
        if self.has_variants():
            return total_variant_stock(self.variants)
        return self.stock or 0

    def find_variant(self, color, size):
        """Case-insensitive lookup; None when the pair is not in the matrix."""
        key = VariantKey.of(color, size)
        if key is None:
            return None
        return next((v for v in self.variants if v.key() == key), None)

    def stock_of(self, color=None, size=None) -> int:
        if not self.has_variants():
            return self.stock or 0
        variant = self.find_variant(color, size)
        return variant.stock if variant else 0

    def is_available(self, color=None, size=None, quantity=1) -> bool:
        return self.stock_of(color, size) >= quantity

    def low_stock_variants(self, threshold=10):
        return low_stock_variants(self.variants, threshold)

    def out_of_stock_variants(self):
        return out_of_stock_variants(self.variants)

    def available_colors(self):
        return available_colors(self.variants)

    def available_sizes_for_color(self, color):
        return available_sizes_for_color(self.variants, color)

    # ------------------------------------------------------------------
    # Stock movements
    # ------------------------------------------------------------------
    def _resolve_variant(self, color, size):
        variant = self.find_variant(color, size)
        if variant is None:
            raise VariantNotFound(str(self.id), format_variant_name(color, size) or None)
        return variant

    def _record(self, variant, previous, new, requested, reason, order_id=None) -> StockChange:
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            StockChanged(
                product_id=str(self.id),
                color=variant.color if variant else None,
                size=variant.size if variant else None,
                previous_stock=previous,
                new_stock=new,
                reason=reason,
                order_id=order_id,
                changed_at=now,
            )
        )
        return StockChange(
            product_id=str(self.id),
            color=variant.color if variant else None,
            size=variant.size if variant else None,
            previous_stock=previous,
            new_stock=new,
            requested=requested,
        )

    def deduct_stock(self, quantity, color=None, size=None, order_id=None) -> StockChange:
        """Take ``quantity`` out of the matching variant (or flat stock), never below zero.

        Raises ``VariantNotFound`` without touching anything when the product
        tracks variants and the selector does not match one.
        """
        if self.has_variants():
            variant = self._resolve_variant(color, size)
            previous = variant.stock
            variant.stock = max(0, previous - quantity)
            return self._record(variant, previous, variant.stock, quantity, "deduction", order_id)

        previous = self.stock or 0
        self.stock = max(0, previous - quantity)
        return self._record(None, previous, self.stock, quantity, "deduction", order_id)

    def restore_stock(self, quantity, color=None, size=None, order_id=None) -> StockChange:
        """Give ``quantity`` back. Not capped: repeated partial restores may exceed the old level."""
        if self.has_variants():
            variant = self._resolve_variant(color, size)
            previous = variant.stock
            variant.stock = previous + quantity
            return self._record(variant, previous, variant.stock, quantity, "restoration", order_id)

        previous = self.stock or 0
        self.stock = previous + quantity
        return self._record(None, previous, self.stock, quantity, "restoration", order_id)

    def set_stock(self, new_stock, color=None, size=None) -> StockChange:
        """Overwrite the stock level, e.g. after a delivery from a supplier."""
        if new_stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        if self.has_variants():
            variant = self._resolve_variant(color, size)
            previous = variant.stock
            variant.stock = new_stock
            return self._record(variant, previous, new_stock, new_stock, "restock")

        if color or size:
            raise VariantNotFound(str(self.id), format_variant_name(color, size))
        previous = self.stock or 0
        self.stock = new_stock
        return self._record(None, previous, new_stock, new_stock, "restock")

    def flag_stock_alert(self, classification: StockAlert, previous, new, threshold, color=None, size=None):
        if classification is StockAlert.NONE:
            return
        self.raise_(
            StockAlertRaised(
                product_id=str(self.id),
                product_name=self.name,
                classification=classification.value,
                color=color,
                size=size,
                variant_label=format_variant_name(color, size) or None,
                previous_stock=previous,
                new_stock=new,
                threshold=threshold,
                raised_at=datetime.now(UTC),
            )
        )

    # ------------------------------------------------------------------
    # Matrix maintenance
    # ------------------------------------------------------------------
    def regenerate_variants(self, colors, sizes):
        """Rebuild the matrix for new colors/sizes, keeping stock of pairs that survive."""
        merged = merge_variants(self.variants or [], colors, sizes)
        if not merged:
            raise ValidationError({"variants": ["At least one color and one size are required"]})

        for variant in list(self.variants):
            self.remove_variants(variant)
        for entry in merged:
            self.add_variants(Variant(**entry))

        self.stock = 0
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VariantMatrixUpdated(
                product_id=str(self.id),
                colors=",".join(dict.fromkeys(v["color"] for v in merged)),
                sizes=",".join(dict.fromkeys(v["size"] for v in merged)),
                variant_count=len(merged),
                updated_at=self.updated_at,
            )
        )
