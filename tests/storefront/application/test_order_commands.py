"""Application tests for order placement, status updates, cancellation and refunds."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

from storefront.order.cancellation import CancelOrder, RequestRefund
from storefront.order.creation import PlaceOrder
from storefront.order.errors import DuplicateOrderError, OrderStateError
from storefront.order.fulfillment import UpdateOrderStatus
from storefront.order.numbering import OrderSequence
from storefront.order.order import Order
from storefront.order.queries import (
    get_by_tracking_number,
    get_customer_order,
    orders_for_customer,
)


def _place_order(customer_id="cust-001", payment_method="card"):
    return current_domain.process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps(
                [
                    {
                        "product": {"product_id": "prod-1", "name": "Helmet", "price": 1000.0, "brand": "Vega"},
                        "quantity": 2,
                        "price": 1000.0,
                    },
                    {
                        "product": {"product_id": "prod-2", "name": "Gloves", "price": 500.0},
                        "quantity": 1,
                        "price": 500.0,
                    },
                ]
            ),
            shipping_address=json.dumps(
                {
                    "first_name": "Asha",
                    "last_name": "Rao",
                    "street": "12 MG Road",
                    "city": "Bengaluru",
                    "zip_code": "560001",
                }
            ),
            payment_method=payment_method,
            subtotal=2500.0,
            shipping=100.0,
            tax=450.0,
            total=3050.0,
        ),
        asynchronous=False,
    )


def _advance(order_id, *statuses):
    for status in statuses:
        current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)


class TestPlaceOrderCommand:
    def test_place_persists_confirmed_order(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.order_status == "confirmed"
        assert order.total == 3050.0
        assert len(order.items) == 2

    def test_order_numbers_are_sequential(self):
        first = current_domain.repository_for(Order).get(_place_order())
        second = current_domain.repository_for(Order).get(_place_order())
        assert first.order_number == "BWP000001"
        assert second.order_number == "BWP000002"
        assert current_domain.repository_for(OrderSequence).get("orders").current_value == 2

    def test_tracking_numbers_are_unique(self):
        first = current_domain.repository_for(Order).get(_place_order())
        second = current_domain.repository_for(Order).get(_place_order())
        assert first.tracking_number != second.tracking_number

    def test_prefix_from_environment(self, monkeypatch):
        from storefront.config import reset_settings

        monkeypatch.setenv("STOREFRONT_NUMBER_PREFIX", "SHOP")
        reset_settings()
        order = current_domain.repository_for(Order).get(_place_order())
        assert order.order_number == "SHOP000001"
        assert order.tracking_number.startswith("SHOP")

    def test_cod_order_awaits_payment(self):
        order = current_domain.repository_for(Order).get(_place_order(payment_method="cod"))
        assert order.payment_status == "pending"

    def test_taken_order_number_is_a_conflict(self):
        order_id = _place_order()
        sequence = current_domain.repository_for(OrderSequence).get("orders")
        sequence.current_value = 0
        current_domain.repository_for(OrderSequence).add(sequence)

        with pytest.raises(DuplicateOrderError):
            _place_order()
        assert len(orders_for_customer("cust-001")) == 1
        assert current_domain.repository_for(Order).get(order_id).order_number == "BWP000001"


class TestOrderQueries:
    def test_orders_for_customer_newest_first(self):
        first = _place_order()
        second = _place_order()
        _place_order(customer_id="cust-other")
        assert [str(o.id) for o in orders_for_customer("cust-001")] == [second, first]

    def test_owner_can_read_order(self):
        order_id = _place_order()
        assert str(get_customer_order(order_id, "cust-001").id) == order_id

    def test_other_customer_gets_not_found(self):
        order_id = _place_order()
        with pytest.raises(ObjectNotFoundError):
            get_customer_order(order_id, "cust-intruder")

    def test_lookup_by_tracking_number(self):
        order = current_domain.repository_for(Order).get(_place_order())
        assert str(get_by_tracking_number(order.tracking_number).id) == str(order.id)

    def test_unknown_tracking_number(self):
        with pytest.raises(ObjectNotFoundError):
            get_by_tracking_number("BWP0000000000000XXXX")


class TestUpdateOrderStatusCommand:
    def test_full_progression(self):
        order_id = _place_order()
        _advance(order_id, "processing", "shipped", "delivered")
        order = current_domain.repository_for(Order).get(order_id)
        assert order.order_status == "delivered"
        assert order.delivered_at is not None
        assert [e.status for e in order.history()] == [
            "order_placed",
            "order_confirmed",
            "processing",
            "shipped",
            "delivered",
        ]

    def test_illegal_jump_rejected(self):
        order_id = _place_order()
        with pytest.raises(OrderStateError):
            _advance(order_id, "delivered")
        assert current_domain.repository_for(Order).get(order_id).order_status == "confirmed"


class TestCancelOrderCommand:
    def test_cancel_round_trip(self):
        order_id = _place_order()
        current_domain.process(
            CancelOrder(order_id=order_id, customer_id="cust-001", reason="Ordered by mistake"),
            asynchronous=False,
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.order_status == "cancelled"
        assert order.cancellation_reason == "Ordered by mistake"
        assert order.current_tracking_status().status == "cancelled"

    def test_cancel_other_customers_order(self):
        order_id = _place_order()
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                CancelOrder(order_id=order_id, customer_id="cust-intruder", reason="Mischief"),
                asynchronous=False,
            )
        assert current_domain.repository_for(Order).get(order_id).order_status == "confirmed"

    def test_cancel_shipped_order_rejected(self):
        order_id = _place_order()
        _advance(order_id, "processing", "shipped")
        with pytest.raises(OrderStateError):
            current_domain.process(
                CancelOrder(order_id=order_id, customer_id="cust-001", reason="Too late"),
                asynchronous=False,
            )


class TestRequestRefundCommand:
    def test_refund_delivered_order(self):
        order_id = _place_order()
        _advance(order_id, "processing", "shipped", "delivered")
        current_domain.process(
            RequestRefund(order_id=order_id, customer_id="cust-001", reason="Damaged"),
            asynchronous=False,
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.refund_status == "pending"
        assert order.refund_amount == 3050.0

    def test_refund_before_delivery_rejected(self):
        order_id = _place_order()
        with pytest.raises(OrderStateError):
            current_domain.process(
                RequestRefund(order_id=order_id, customer_id="cust-001", reason="Changed my mind"),
                asynchronous=False,
            )
        assert current_domain.repository_for(Order).get(order_id).refund_status == "none"
