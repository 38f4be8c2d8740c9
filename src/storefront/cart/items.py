"""Cart item management: commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.management import find_or_create_cart, get_cart
from storefront.domain import storefront


@storefront.command(part_of="Cart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1, default=1)
    color = String(max_length=50)
    variant = String(max_length=100)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    """Set an absolute quantity; zero removes the line."""

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        cart = find_or_create_cart(command.customer_id)
        cart.add_item(
            product_id=command.product_id,
            unit_price=command.unit_price,
            quantity=command.quantity,
            color=command.color,
            variant=command.variant,
        )
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = get_cart(command.customer_id)
        cart.update_quantity(product_id=command.product_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = get_cart(command.customer_id)
        cart.remove_item(product_id=command.product_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
