"""Order aggregate: the record of a purchase from checkout to delivery.

An order is created from a cart snapshot and is never deleted; cancellation
is a terminal status. Line items hold a by-value copy of the product as it was
at checkout, so later catalogue edits never change historical orders.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
    DELIVERED and CANCELLED are terminal.

Every status change appends one TrackingEntry. Entries are never edited or
removed, and the most recent one always narrates the current status.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.order.errors import OrderStateError
from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    OrderStatusUpdated,
    RefundRequested,
)
from storefront.order.tracking import TrackingStatus, build_timeline


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CARD = "card"
    UPI = "upi"
    COD = "cod"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    PROCESSED = "processed"
    COMPLETED = "completed"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_TERMINAL_STATES = {status for status, targets in _VALID_TRANSITIONS.items() if not targets}

_CANCELLABLE_STATES = {
    status for status, targets in _VALID_TRANSITIONS.items() if OrderStatus.CANCELLED in targets
}

_REFUNDABLE_STATES = {OrderStatus.DELIVERED}

# Tracking statuses that may narrate each order status; the first is the default
_TRACKING_STATUSES = {
    OrderStatus.PENDING: (TrackingStatus.ORDER_PLACED,),
    OrderStatus.CONFIRMED: (TrackingStatus.ORDER_CONFIRMED,),
    OrderStatus.PROCESSING: (TrackingStatus.PROCESSING,),
    OrderStatus.SHIPPED: (TrackingStatus.SHIPPED, TrackingStatus.OUT_FOR_DELIVERY),
    OrderStatus.DELIVERED: (TrackingStatus.DELIVERED,),
    OrderStatus.CANCELLED: (TrackingStatus.CANCELLED,),
}

DEFAULT_DELIVERY_DAYS = 7


def allowed_transitions(status):
    """Statuses an order in ``status`` may move to next."""
    return set(_VALID_TRANSITIONS.get(OrderStatus(status), set()))


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ProductSnapshot:
    """The product as it was sold: copied by value, never a live reference."""

    product_id = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=1000)
    brand = String(max_length=255)


@storefront.value_object(part_of="Order")
class ShippingAddress:
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    email = String(max_length=255)
    phone = String(max_length=30)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100)
    latitude = Float()
    longitude = Float()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product = ValueObject(ProductSnapshot, required=True)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)


@storefront.entity(part_of="Order")
class TrackingEntry:
    """One immutable line of an order's tracking history."""

    status = String(required=True, choices=TrackingStatus)
    description = String(max_length=500)
    location = String(max_length=255)
    timestamp = DateTime(required=True)
    sequence = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    customer_id = Identifier(required=True)
    order_number = String(required=True, unique=True, max_length=20)
    tracking_number = String(required=True, unique=True, max_length=40)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    subtotal = Float(required=True, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    estimated_delivery = DateTime()
    delivered_at = DateTime()
    shipping_carrier = String(max_length=100, default="BLAST Express")
    shipping_method = String(max_length=100, default="Standard Delivery")
    tracking_history = HasMany(TrackingEntry)
    notes = Text()
    cancellation_reason = String(max_length=500)
    refund_amount = Float(min_value=0.0)
    refund_status = String(choices=RefundStatus, default=RefundStatus.NONE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_cover_subtotal(self):
        if self.total is not None and self.subtotal is not None and self.total < self.subtotal:
            raise ValidationError({"total": ["Order total cannot be less than the subtotal"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        items_data,
        shipping_address,
        payment_method,
        subtotal,
        total,
        order_number,
        tracking_number,
        shipping=0.0,
        tax=0.0,
    ):
        """Record a new order in PENDING with its automatic ``order_placed`` entry.

        Args:
            items_data: List of dicts with ``product`` (product_id, name, price,
                image, brand), ``quantity`` and ``price``.
            shipping_address: Dict of ShippingAddress fields.
        """
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            order_number=order_number,
            tracking_number=tracking_number,
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            order_status=OrderStatus.PENDING.value,
            subtotal=subtotal,
            shipping=shipping or 0.0,
            tax=tax or 0.0,
            total=total,
            refund_status=RefundStatus.NONE.value,
            created_at=now,
            updated_at=now,
        )

        for item_data in items_data:
            order.add_items(
                OrderItem(
                    product=ProductSnapshot(**item_data["product"]),
                    quantity=item_data["quantity"],
                    price=item_data["price"],
                )
            )

        order._append_tracking(
            TrackingStatus.ORDER_PLACED,
            "Order has been placed successfully",
            "Online Store",
            now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                order_number=order_number,
                tracking_number=tracking_number,
                payment_method=payment_method,
                total=total,
                placed_at=now,
            )
        )
        return order

    @classmethod
    def create(
        cls,
        customer_id,
        items_data,
        shipping_address,
        payment_method,
        subtotal,
        total,
        order_number,
        tracking_number,
        shipping=0.0,
        tax=0.0,
        delivery_days=DEFAULT_DELIVERY_DAYS,
    ):
        """Create an order at checkout: placed, then immediately confirmed."""
        order = cls.place(
            customer_id=customer_id,
            items_data=items_data,
            shipping_address=shipping_address,
            payment_method=payment_method,
            subtotal=subtotal,
            total=total,
            order_number=order_number,
            tracking_number=tracking_number,
            shipping=shipping,
            tax=tax,
        )
        order.confirm(delivery_days=delivery_days)
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _coerce_status(value):
        try:
            return OrderStatus(value)
        except ValueError:
            raise ValidationError(
                {"status": [f"Status must be one of: {', '.join(s.value for s in OrderStatus)}"]}
            ) from None

    def _assert_can_transition(self, target_status, allow_same=True):
        """Validate that the current state allows transition to target.

        Non-terminal orders may re-assert their current status unless
        ``allow_same`` is off.
        """
        current = OrderStatus(self.order_status)
        if allow_same and target_status == current and current not in _TERMINAL_STATES:
            return
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise OrderStateError(f"Cannot transition order from {current.value} to {target_status.value}")

    def _append_tracking(self, status, description, location, timestamp=None):
        self.add_tracking_history(
            TrackingEntry(
                status=status.value,
                description=description,
                location=location,
                timestamp=timestamp or datetime.now(UTC),
                sequence=len(self.tracking_history),
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, delivery_days=DEFAULT_DELIVERY_DAYS):
        """Confirm the order and settle its initial payment status.

        Cash-on-delivery orders stay ``pending`` for payment; card and UPI
        orders are recorded as ``paid``.
        """
        self._assert_can_transition(OrderStatus.CONFIRMED, allow_same=False)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CONFIRMED.value
        if PaymentMethod(self.payment_method) == PaymentMethod.COD:
            self.payment_status = PaymentStatus.PENDING.value
        else:
            self.payment_status = PaymentStatus.PAID.value
        self.estimated_delivery = now + timedelta(days=delivery_days)
        self.updated_at = now

        self._append_tracking(
            TrackingStatus.ORDER_CONFIRMED,
            "Order has been confirmed and is being processed",
            "Order Processing Center",
            now,
        )

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                payment_status=self.payment_status,
                estimated_delivery=self.estimated_delivery,
                confirmed_at=now,
            )
        )

    def update_status(self, new_status, description=None, location=None, tracking_status=None):
        """Move the order to ``new_status`` and narrate it in the tracking history.

        ``tracking_status`` selects the finer tracking vocabulary where an
        order status has more than one (``shipped`` or ``out_for_delivery``).

        Confirming goes through :meth:`confirm` so payment status and the
        delivery estimate are settled. Cancelling goes through :meth:`cancel`
        with ``description`` as the reason, which is then required.
        """
        target = self._coerce_status(new_status)
        self._assert_can_transition(target)

        current = OrderStatus(self.order_status)
        if target == OrderStatus.CONFIRMED and current != OrderStatus.CONFIRMED:
            self.confirm()
            return
        if target == OrderStatus.CANCELLED:
            self.cancel(description)
            return

        narrations = _TRACKING_STATUSES[target]
        if tracking_status is None:
            narrow = narrations[0]
        else:
            try:
                narrow = TrackingStatus(tracking_status)
            except ValueError:
                narrow = None
            if narrow not in narrations:
                raise ValidationError(
                    {"tracking_status": [f"'{tracking_status}' cannot describe an order that is {target.value}"]}
                )

        now = datetime.now(UTC)
        previous = self.order_status
        resolved_location = location or "Processing Center"

        self.order_status = target.value
        if target == OrderStatus.DELIVERED:
            self.delivered_at = now
        self.updated_at = now

        self._append_tracking(
            narrow,
            description or f"Order status updated to {target.value}",
            resolved_location,
            now,
        )

        self.raise_(
            OrderStatusUpdated(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                tracking_status=narrow.value,
                location=resolved_location,
                updated_at=now,
            )
        )

    def cancel(self, reason):
        current = OrderStatus(self.order_status)
        if current not in _CANCELLABLE_STATES:
            raise OrderStateError(f"Order cannot be cancelled at this stage ({current.value})")
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now

        self._append_tracking(
            TrackingStatus.CANCELLED,
            f"Order cancelled: {reason}",
            "Customer Request",
            now,
        )

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_at=now,
            )
        )

    def request_refund(self, reason, amount=None):
        """Open a refund request on a delivered order.

        The request note replaces any earlier note rather than appending.
        """
        current = OrderStatus(self.order_status)
        if current not in _REFUNDABLE_STATES:
            raise OrderStateError("Order must be delivered to request a refund")
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A refund reason is required"]})

        refund_amount = self.total if amount is None else amount
        if refund_amount <= 0 or refund_amount > self.total:
            raise ValidationError({"amount": [f"Refund amount must be between 0 and {self.total}"]})

        now = datetime.now(UTC)
        self.refund_status = RefundStatus.PENDING.value
        self.refund_amount = refund_amount
        self.notes = f"Refund requested: {reason}"
        self.updated_at = now

        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                amount=refund_amount,
                reason=reason,
                requested_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------
    def history(self):
        """Tracking entries in the order they were appended."""
        return sorted(self.tracking_history, key=lambda entry: entry.sequence)

    def current_tracking_status(self):
        history = self.history()
        return history[-1] if history else None

    def tracking_timeline(self):
        return build_timeline(self.history(), self.created_at, self.delivered_at)

    @property
    def can_cancel(self):
        return OrderStatus(self.order_status) in _CANCELLABLE_STATES

    @property
    def can_request_refund(self):
        return OrderStatus(self.order_status) in _REFUNDABLE_STATES
