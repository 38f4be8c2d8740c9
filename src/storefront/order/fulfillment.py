"""Order status progression: command and handler.

Used by staff tooling to move an order along
confirmed → processing → shipped → delivered. Legality of each move is
decided by the Order aggregate's transition table.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    description = String(max_length=500)
    location = String(max_length=255)
    tracking_status = String(max_length=30)  # e.g. out_for_delivery while shipped


@storefront.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status
        order.update_status(
            new_status=command.status,
            description=command.description,
            location=command.location,
            tracking_status=command.tracking_status,
        )
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.order_status,
        )
