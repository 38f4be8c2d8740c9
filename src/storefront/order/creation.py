"""Order creation: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.order.errors import DuplicateOrderError
from storefront.order.numbering import generate_tracking_number, next_order_number
from storefront.order.order import Order
from storefront.order.queries import find_by_order_number, find_by_tracking_number
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product: {...}, quantity, price}
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=10)
    subtotal = Float(required=True, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)


def _ensure_unique_numbers(order_number, tracking_number):
    if find_by_order_number(order_number) is not None:
        raise DuplicateOrderError(f"Order number {order_number} is already in use")
    if find_by_tracking_number(tracking_number) is not None:
        raise DuplicateOrderError(f"Tracking number {tracking_number} is already in use")


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        settings = get_settings()
        order_number = next_order_number(settings.number_prefix)
        tracking_number = generate_tracking_number(settings.number_prefix)
        _ensure_unique_numbers(order_number, tracking_number)

        order = Order.create(
            customer_id=command.customer_id,
            items_data=items_data,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            subtotal=command.subtotal,
            shipping=command.shipping or 0.0,
            tax=command.tax or 0.0,
            total=command.total,
            order_number=order_number,
            tracking_number=tracking_number,
            delivery_days=settings.delivery_days,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order_number,
            customer_id=str(command.customer_id),
            items=len(items_data),
            payment_method=command.payment_method,
            total=command.total,
        )
        return str(order.id)
