"""Order cancellation and refund requests: commands and handler.

Both are customer actions, so the order is loaded scoped to its owner.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.queries import get_customer_order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    amount = Float(min_value=0.0)  # Defaults to the order total


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = get_customer_order(command.order_id, command.customer_id)
        order.cancel(reason=command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)

    @handle(RequestRefund)
    def request_refund(self, command):
        order = get_customer_order(command.order_id, command.customer_id)
        order.request_refund(reason=command.reason, amount=command.amount)
        current_domain.repository_for(Order).add(order)
        logger.info("Refund requested", order_id=str(order.id), amount=order.refund_amount)
