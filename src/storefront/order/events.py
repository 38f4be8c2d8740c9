"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was recorded from a checkout snapshot."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_number = String(required=True)
    tracking_number = String(required=True)
    payment_method = String(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_status = String(required=True)
    estimated_delivery = DateTime()
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    tracking_status = String(required=True)
    location = String()
    updated_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundRequested:
    """A refund was requested for a delivered order."""

    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)
