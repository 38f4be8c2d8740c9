"""FastAPI routes for the Storefront: cart, checkout and orders.

The authenticated customer id arrives in the ``X-User-Id`` header; verifying
it is the job of whatever sits in front of this service.
"""

import json

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CartCountResponse,
    CartResponse,
    CheckoutRequest,
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    RefundRequest,
    TrackingResponse,
    UpdateCartQuantityRequest,
    UpdateStatusRequest,
)
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from storefront.cart.management import ClearCart, cart_item_count, find_or_create_cart, get_cart
from storefront.catalogue import ensure_available, get_active_product, get_catalogue
from storefront.checkout.checkout import checkout, notify_order_placed
from storefront.order.cancellation import CancelOrder, RequestRefund
from storefront.order.creation import PlaceOrder
from storefront.order.fulfillment import UpdateOrderStatus
from storefront.order.queries import (
    get_by_tracking_number,
    get_customer_order,
    get_order,
    orders_for_customer,
)


def current_customer_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------
def _entry_view(entry):
    return {
        "status": entry.status,
        "description": entry.description,
        "location": entry.location,
        "timestamp": entry.timestamp,
    }


def _address_view(address):
    if address is None:
        return None
    return {
        field: getattr(address, field)
        for field in (
            "first_name",
            "last_name",
            "email",
            "phone",
            "street",
            "city",
            "state",
            "zip_code",
            "country",
            "latitude",
            "longitude",
        )
    }


def order_view(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        tracking_number=order.tracking_number,
        customer_id=str(order.customer_id),
        items=[
            {
                "product": {
                    "product_id": item.product.product_id,
                    "name": item.product.name,
                    "price": item.product.price,
                    "image": item.product.image,
                    "brand": item.product.brand,
                },
                "quantity": item.quantity,
                "price": item.price,
            }
            for item in order.items
        ],
        shipping_address=_address_view(order.shipping_address),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        order_status=order.order_status,
        subtotal=order.subtotal,
        shipping=order.shipping or 0.0,
        tax=order.tax or 0.0,
        total=order.total,
        estimated_delivery=order.estimated_delivery,
        delivered_at=order.delivered_at,
        shipping_carrier=order.shipping_carrier,
        shipping_method=order.shipping_method,
        tracking_history=[_entry_view(entry) for entry in order.history()],
        notes=order.notes,
        cancellation_reason=order.cancellation_reason,
        refund_amount=order.refund_amount,
        refund_status=order.refund_status,
        can_cancel=order.can_cancel,
        can_request_refund=order.can_request_refund,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def tracking_view(order) -> TrackingResponse:
    current = order.current_tracking_status()
    return TrackingResponse(
        order_number=order.order_number,
        tracking_number=order.tracking_number,
        order_status=order.order_status,
        current_status=_entry_view(current) if current else None,
        estimated_delivery=order.estimated_delivery,
        timeline=[stage.to_dict() for stage in order.tracking_timeline()],
        tracking_history=[_entry_view(entry) for entry in order.history()],
        shipping_carrier=order.shipping_carrier,
        shipping_method=order.shipping_method,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def read_cart(customer_id: str = Depends(current_customer_id)) -> CartResponse:
    cart = find_or_create_cart(customer_id)
    return CartResponse(**cart.summary())


@cart_router.get("/count", response_model=CartCountResponse)
async def read_cart_count(customer_id: str = Depends(current_customer_id)) -> CartCountResponse:
    return CartCountResponse(count=cart_item_count(customer_id))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, customer_id: str = Depends(current_customer_id)) -> CartResponse:
    product = get_active_product(body.product_id)
    ensure_available(product, body.quantity)

    command = AddToCart(
        customer_id=customer_id,
        product_id=product.id,
        unit_price=product.price,
        quantity=body.quantity,
        color=body.color,
        variant=body.variant,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(customer_id).summary())


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    body: UpdateCartQuantityRequest,
    customer_id: str = Depends(current_customer_id),
) -> CartResponse:
    if body.quantity > 0:
        product = get_catalogue().get_product(product_id)
        if product is not None:
            ensure_available(product, body.quantity)

    command = UpdateCartQuantity(
        customer_id=customer_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return CartResponse(**get_cart(customer_id).summary())


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, customer_id: str = Depends(current_customer_id)) -> CartResponse:
    current_domain.process(RemoveFromCart(customer_id=customer_id, product_id=product_id), asynchronous=False)
    return CartResponse(**get_cart(customer_id).summary())


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(customer_id: str = Depends(current_customer_id)) -> CartResponse:
    current_domain.process(ClearCart(customer_id=customer_id), asynchronous=False)
    return CartResponse(**get_cart(customer_id).summary())


@cart_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout_cart(body: CheckoutRequest, customer_id: str = Depends(current_customer_id)) -> OrderResponse:
    order = checkout(
        customer_id=customer_id,
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method,
    )
    return order_view(order)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, customer_id: str = Depends(current_customer_id)) -> OrderResponse:
    command = PlaceOrder(
        customer_id=customer_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        subtotal=body.subtotal,
        shipping=body.shipping,
        tax=body.tax,
        total=body.total,
    )
    order_id = current_domain.process(command, asynchronous=False)
    notify_order_placed(order_id, body.shipping_address.email)
    return order_view(get_order(order_id))


@order_router.get("/mine", response_model=OrderListResponse)
async def list_my_orders(customer_id: str = Depends(current_customer_id)) -> OrderListResponse:
    return OrderListResponse(orders=[order_view(order) for order in orders_for_customer(customer_id)])


@order_router.get("/track/{tracking_number}", response_model=TrackingResponse)
async def track_order(tracking_number: str) -> TrackingResponse:
    return tracking_view(get_by_tracking_number(tracking_number))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def read_order(order_id: str, customer_id: str = Depends(current_customer_id)) -> OrderResponse:
    return order_view(get_customer_order(order_id, customer_id))


@order_router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(current_customer_id)],
)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    """Fulfillment update, made by staff rather than the buyer.

    Any authenticated caller may move any order; it is not scoped to the
    order's owner the way reads and cancellation are.
    """
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        description=body.description,
        location=body.location,
        tracking_status=body.tracking_status,
    )
    current_domain.process(command, asynchronous=False)
    return order_view(get_order(order_id))


@order_router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    customer_id: str = Depends(current_customer_id),
) -> OrderResponse:
    command = CancelOrder(order_id=order_id, customer_id=customer_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return order_view(get_order(order_id))


@order_router.post("/{order_id}/refund", response_model=OrderResponse)
async def request_refund(
    order_id: str,
    body: RefundRequest,
    customer_id: str = Depends(current_customer_id),
) -> OrderResponse:
    command = RequestRefund(
        order_id=order_id,
        customer_id=customer_id,
        reason=body.reason,
        amount=body.amount,
    )
    current_domain.process(command, asynchronous=False)
    return order_view(get_order(order_id))
