"""Read-side lookups over orders: owner-scoped and by tracking number."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order


def _orders():
    return current_domain.repository_for(Order)


def get_order(order_id):
    return _orders().get(order_id)


def get_customer_order(order_id, customer_id):
    """Load an order only if it belongs to ``customer_id``.

    Orders of other customers are reported as missing, not forbidden.
    """
    order = get_order(order_id)
    if str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError({"order": "Order not found"})
    return order


def orders_for_customer(customer_id):
    """All orders of a customer, newest first."""
    orders = _orders()._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def find_by_order_number(order_number):
    orders = _orders()._dao.query.filter(order_number=order_number).all().items
    return orders[0] if orders else None


def find_by_tracking_number(tracking_number):
    orders = _orders()._dao.query.filter(tracking_number=tracking_number).all().items
    return orders[0] if orders else None


def get_by_tracking_number(tracking_number):
    order = find_by_tracking_number(tracking_number)
    if order is None:
        raise ObjectNotFoundError({"tracking_number": "Invalid tracking number"})
    return order
