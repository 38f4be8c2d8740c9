"""Cart lookup and lifecycle: find-or-create per customer, and clearing."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def find_cart(customer_id):
    """Return the customer's cart, or None if they never had one."""
    carts = current_domain.repository_for(Cart)._dao.query.filter(customer_id=str(customer_id)).all().items
    return carts[0] if carts else None


def get_cart(customer_id):
    """Return the customer's cart or raise ObjectNotFoundError."""
    cart = find_cart(customer_id)
    if cart is None:
        raise ObjectNotFoundError({"cart": "Cart not found"})
    return cart


def find_or_create_cart(customer_id):
    """Return the customer's cart, creating and persisting an empty one if absent."""
    cart = find_cart(customer_id)
    if cart is None:
        cart = Cart.create(customer_id=str(customer_id))
        current_domain.repository_for(Cart).add(cart)
        logger.info("Cart created", customer_id=str(customer_id), cart_id=str(cart.id))
    return cart


def cart_item_count(customer_id):
    cart = find_cart(customer_id)
    return cart.total_items if cart else 0


@storefront.command(part_of="Cart")
class ClearCart:
    """Remove every item from the customer's cart."""

    customer_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        cart = get_cart(command.customer_id)
        cart.clear()
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
