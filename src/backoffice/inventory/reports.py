"""Stock report — which products or variants need restocking."""

from protean.utils.globals import current_domain

from backoffice.inventory.product import Product


def _entry(product, variant=None) -> dict:
    return {
        "product_id": str(product.id),
        "name": product.name,
        "variant": variant.label() if variant else None,
        "stock": variant.stock if variant else product.stock,
    }


def stock_report(threshold: int) -> dict:
    """Group stock-keeping units into ``low_stock`` (0 < stock < threshold) and ``out_of_stock``."""
    low, out = [], []
    for product in current_domain.repository_for(Product)._dao.query.limit(None).all().items:
        if product.has_variants():
            low.extend(_entry(product, v) for v in product.low_stock_variants(threshold))
            out.extend(_entry(product, v) for v in product.out_of_stock_variants())
        elif product.stock == 0:
            out.append(_entry(product))
        elif product.stock < threshold:
            low.append(_entry(product))
    return {"threshold": threshold, "low_stock": low, "out_of_stock": out}
