"""Message templates for backoffice notifications.

Rendered as Telegram-flavoured HTML. Values coming from records are
escaped before they are interpolated.
"""

from html import escape

_STATUS_LINES = {
    "approved": "✅ Your order has been approved and is being prepared.",
    "rejected": "❌ Your order has been rejected.",
    "shipped": "🚚 Your order is on its way.",
    "delivered": "📦 Your order has been delivered. Thank you!",
}

_ALERT_TITLES = {
    "lowStock": "⚠️ Low stock",
    "outOfStock": "⛔ Out of stock",
    "backInStock": "🔄 Back in stock",
}


def _product_line(product, variant_label: str | None) -> str:
    name = escape(product.name or str(product.id))
    if variant_label:
        return f"{name} ({escape(variant_label)})"
    return name


def order_status_message(order, status: str) -> str:
    line = _STATUS_LINES.get(status, f"Your order status is now {escape(status)}.")
    return (
        f"<b>Order #{escape(str(order.id)[:8])}</b>\n"
        f"{line}\n"
        f"Total: {order.total:,.0f} {escape(order.currency or '')}"
    )


def referral_reward_message(amount: int, total_referrals: int) -> str:
    return (
        "🎁 <b>Referral reward</b>\n"
        f"You earned {amount} bonus points from a friend's purchase.\n"
        f"Referrals so far: {total_referrals}"
    )


def stock_alert_message(product, classification: str, variant_label: str | None) -> str:
    title = _ALERT_TITLES.get(classification, escape(classification))
    return (
        f"<b>{title}</b>\n"
        f"{_product_line(product, variant_label)}\n"
        f"Total stock: {product.total_stock()}"
    )


def back_in_stock_message(product, variant_label: str | None) -> str:
    return f"🔔 <b>{_product_line(product, variant_label)}</b> is available again."
