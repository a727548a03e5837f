"""Line item normalization.

Checkout clients have sent items in several shapes over time
(``id``/``productId``/``product_id``, ``selectedColor``/``color`` ...).
Everything entering the engine goes through ``normalize_line_item`` once so
the rest of the code sees a single canonical shape.
"""

from protean.exceptions import ValidationError

_ALIASES = {
    "product_id": ("product_id", "productId", "id"),
    "color": ("color", "selectedColor", "selected_color"),
    "size": ("size", "selectedSize", "selected_size"),
    "quantity": ("quantity", "qty"),
    "unit_price": ("unit_price", "unitPrice", "price"),
    "title": ("title", "name"),
}


def _first(raw: dict, names: tuple[str, ...]):
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_line_item(raw: dict) -> dict:
    """Map a raw checkout item onto ``{product_id, color, size, quantity, unit_price, title}``."""
    if not isinstance(raw, dict):
        raise ValidationError({"items": ["Each line item must be an object"]})

    product_id = _clean(_first(raw, _ALIASES["product_id"]))
    if product_id is None:
        raise ValidationError({"items": ["Line item is missing a product id"]})

    quantity = _first(raw, _ALIASES["quantity"])
    try:
        number = float(quantity if quantity is not None else 1)
    except (TypeError, ValueError):
        raise ValidationError({"items": [f"Invalid quantity for product {product_id}"]}) from None
    if not number.is_integer():
        raise ValidationError({"items": [f"Quantity for product {product_id} must be a whole number"]})
    quantity = int(number)
    if quantity < 1:
        raise ValidationError({"items": [f"Quantity for product {product_id} must be at least 1"]})

    unit_price = _first(raw, _ALIASES["unit_price"])
    try:
        unit_price = float(unit_price if unit_price is not None else 0.0)
    except (TypeError, ValueError):
        raise ValidationError({"items": [f"Invalid price for product {product_id}"]}) from None

    return {
        "product_id": product_id,
        "color": _clean(_first(raw, _ALIASES["color"])),
        "size": _clean(_first(raw, _ALIASES["size"])),
        "quantity": quantity,
        "unit_price": unit_price,
        "title": _clean(_first(raw, _ALIASES["title"])),
    }


def normalize_line_items(raw_items) -> list[dict]:
    if not raw_items:
        raise ValidationError({"items": ["An order needs at least one line item"]})
    return [normalize_line_item(item) for item in raw_items]
