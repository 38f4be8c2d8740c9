"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity was increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity_added = Integer(required=True)
    new_quantity = Integer(required=True)
    unit_price = Float(required=True)


@storefront.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was set to a new absolute value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A product line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """All items were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
    cleared_at = DateTime(required=True)
