"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from backoffice.domain import backoffice


@backoffice.event(part_of="Product")
class ProductCreated:
    """A product was added to the catalogue, with flat stock or a variant matrix."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    variant_count = Integer()  # 0 is a valid count, so not marked required
    total_stock = Integer()
    created_at = DateTime(required=True)


@backoffice.event(part_of="Product")
class StockChanged:
    """Stock of a product or one of its variants moved."""

    __version__ = 1

    product_id = Identifier(required=True)
    color = String()
    size = String()
    previous_stock = Integer()
    new_stock = Integer()
    reason = String(required=True)  # deduction, restoration, restock
    order_id = Identifier()
    changed_at = DateTime(required=True)


@backoffice.event(part_of="Product")
class StockAlertRaised:
    """A stock movement crossed an alerting boundary (low, out, back in stock)."""

    __version__ = 1

    product_id = Identifier(required=True)
    product_name = String(required=True)
    classification = String(required=True)
    color = String()
    size = String()
    variant_label = String()
    previous_stock = Integer()
    new_stock = Integer()
    threshold = Integer()
    raised_at = DateTime(required=True)


@backoffice.event(part_of="Product")
class VariantMatrixUpdated:
    """The color x size matrix of a product was regenerated."""

    __version__ = 1

    product_id = Identifier(required=True)
    colors = String(required=True)  # comma-separated
    sizes = String(required=True)
    variant_count = Integer()
    updated_at = DateTime(required=True)
