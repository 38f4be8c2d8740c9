"""Order confirmation email: rendering and dispatch."""

from storefront.notifications import get_email_adapter
from storefront.notifications.email_port import was_delivered
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class EmailDeliveryError(Exception):
    """The email adapter reported that a message was not delivered."""


def _money(value) -> str:
    return f"{value or 0:,.2f}"


def render_order_confirmation(order) -> dict:
    """Render the subject and plain text body for a confirmed order."""
    lines = [
        "Thank you for your purchase!",
        "",
        f"Order Number: {order.order_number}",
        f"Tracking Number: {order.tracking_number}",
    ]
    if order.created_at:
        lines.append(f"Order Date: {order.created_at:%Y-%m-%d}")
    if order.estimated_delivery:
        lines.append(f"Estimated Delivery: {order.estimated_delivery:%Y-%m-%d}")
    lines += [
        f"Payment Method: {order.payment_method.upper()}",
        f"Status: {order.order_status}",
        "",
        "Items Ordered:",
    ]
    for item in order.items:
        product = item.product
        name = product.name if product else "Unknown Product"
        brand = (product.brand if product else None) or "Unknown Brand"
        lines.append(f"  - {name} ({brand}) x {item.quantity} @ {_money(item.price)}")

    address = order.shipping_address
    if address:
        lines += [
            "",
            "Shipping Address:",
            f"  {address.first_name} {address.last_name}",
            f"  {address.street}",
            f"  {address.city}, {address.state or ''} {address.zip_code}".rstrip(),
        ]
        if address.country:
            lines.append(f"  {address.country}")
        if address.phone:
            lines.append(f"  Phone: {address.phone}")

    lines += [
        "",
        f"Subtotal: {_money(order.subtotal)}",
        f"Shipping: {_money(order.shipping)}",
        f"Tax: {_money(order.tax)}",
        f"Total: {_money(order.total)}",
        "",
        f"You can track your order anytime using tracking number {order.tracking_number}.",
    ]

    return {
        "subject": f"Order Confirmation - {order.order_number}",
        "body": "\n".join(lines),
    }


def send_order_confirmation(order, email) -> dict:
    """Send the confirmation email for ``order`` to ``email``.

    Raises:
        ValueError: when the order or recipient is incomplete.
        EmailDeliveryError: when the adapter reports a failed send.
    """
    if order is None or not email:
        raise ValueError("Order and recipient email are required")
    if not order.order_number or not order.tracking_number:
        raise ValueError("Order must have an order number and a tracking number")

    content = render_order_confirmation(order)
    result = get_email_adapter().send(to=email, subject=content["subject"], body=content["body"])
    if not was_delivered(result):
        raise EmailDeliveryError((result or {}).get("error") or "Email delivery failed")

    logger.info(
        "Order confirmation sent",
        order_number=order.order_number,
        message_id=result.get("message_id"),
    )
    return result
