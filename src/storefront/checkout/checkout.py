"""Checkout: turn a customer's cart into a confirmed order.

The cart is read once and copied into the order by value. Product display
fields and prices come from the catalogue at checkout time, so the order keeps
the product as it was sold even if the catalogue changes later.

Sequence:
    1. Snapshot cart lines through the catalogue
    2. Price the order (subtotal + flat shipping + tax)
    3. Place the order (PlaceOrder)
    4. Clear the cart (ClearCart)
    5. Send the confirmation email, best-effort
"""

import json

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.management import ClearCart, get_cart
from storefront.catalogue import get_active_product
from storefront.config import get_settings
from storefront.notifications.order_confirmation import send_order_confirmation
from storefront.order.creation import PlaceOrder
from storefront.order.queries import get_order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def snapshot_lines(cart_lines):
    """Copy cart lines into order line dicts using current catalogue data."""
    items = []
    for line in cart_lines:
        product = get_active_product(line["product_id"])
        items.append(
            {
                "product": product.snapshot(),
                "quantity": line["quantity"],
                "price": product.price,
            }
        )
    return items


def price_order(items, shipping_fee, tax_rate):
    """Return (subtotal, shipping, tax, total) for order line dicts."""
    subtotal = round(sum(item["price"] * item["quantity"] for item in items), 2)
    tax = float(round(subtotal * tax_rate))
    return subtotal, shipping_fee, tax, subtotal + shipping_fee + tax


def notify_order_placed(order_id, email):
    """Send the confirmation email for a new order; failures are only logged."""
    if not email:
        logger.info("No email on shipping address, skipping confirmation", order_id=str(order_id))
        return False
    try:
        send_order_confirmation(get_order(order_id), email)
    except Exception as exc:
        logger.warning("Order confirmation email failed", order_id=str(order_id), error=str(exc))
        return False
    return True


def checkout(customer_id, shipping_address, payment_method):
    """Place an order for everything in the customer's cart.

    Args:
        shipping_address: Dict of ShippingAddress fields.
        payment_method: One of ``card``, ``upi`` or ``cod``.

    Returns:
        The persisted Order.
    """
    cart = get_cart(customer_id)
    cart_lines = cart.snapshot()
    if not cart_lines:
        raise ValidationError({"cart": ["Cart is empty"]})

    settings = get_settings()
    items = snapshot_lines(cart_lines)
    subtotal, shipping, tax, total = price_order(items, settings.shipping_fee, settings.tax_rate)

    order_id = current_domain.process(
        PlaceOrder(
            customer_id=str(customer_id),
            items=json.dumps(items),
            shipping_address=json.dumps(shipping_address),
            payment_method=payment_method,
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=total,
        ),
        asynchronous=False,
    )
    current_domain.process(ClearCart(customer_id=str(customer_id)), asynchronous=False)

    logger.info(
        "Checkout completed",
        customer_id=str(customer_id),
        order_id=order_id,
        lines=len(items),
        total=total,
    )

    notify_order_placed(order_id, shipping_address.get("email"))
    return get_order(order_id)
