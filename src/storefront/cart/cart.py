"""Cart aggregate (CQRS): a customer's pending product selection.

There is exactly one cart per customer. It is created lazily on first access,
mutated by add / update-quantity / remove / clear, and never deleted: after
checkout it simply persists empty.

``total_items`` and ``total_price`` are always recomputed from the items on
every mutation; they are never set independently.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    selected_color = String(max_length=50)
    selected_variant = String(max_length=100)
    added_at = DateTime()

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_summary(self):
        return {
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": round(self.line_total, 2),
            "selected_color": self.selected_color,
            "selected_variant": self.selected_variant,
            "added_at": self.added_at.isoformat() if self.added_at else None,
        }


@storefront.aggregate
class Cart:
    customer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    total_items = Integer(default=0)
    total_price = Float(default=0.0)
    created_at = DateTime()
    last_modified = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            total_items=0,
            total_price=0.0,
            created_at=now,
            last_modified=now,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _find_item(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def _sorted_items(self):
        epoch = datetime.min.replace(tzinfo=UTC)
        return sorted(self.items, key=lambda i: i.added_at or epoch)

    def _recalculate_totals(self):
        """Derive totals from the current items and stamp the modification time."""
        self.total_items = sum(item.quantity for item in self.items)
        self.total_price = round(sum(item.line_total for item in self.items), 2)
        self.last_modified = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, unit_price, quantity=1, color=None, variant=None):
        """Add a product, or bump the quantity of the existing line for it.

        Re-adding a product refreshes its stored unit price to ``unit_price``.
        Stock and product availability are the caller's concern.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if unit_price is None or unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price must be non-negative"]})

        existing = self._find_item(product_id)
        if existing:
            existing.quantity += quantity
            existing.unit_price = unit_price
            new_quantity = existing.quantity
        else:
            self.add_items(
                CartItem(
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    selected_color=color,
                    selected_variant=variant,
                    added_at=datetime.now(UTC),
                )
            )
            new_quantity = quantity

        self._recalculate_totals()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity_added=quantity,
                new_quantity=new_quantity,
                unit_price=unit_price,
            )
        )

    def update_quantity(self, product_id, quantity):
        """Set the absolute quantity of a line; zero or less removes it."""
        item = self._find_item(product_id)
        if item is None:
            raise ObjectNotFoundError({"product_id": f"Item {product_id} not found in cart"})

        if quantity <= 0:
            self.remove_item(product_id)
            return

        previous_quantity = item.quantity
        item.quantity = quantity
        self._recalculate_totals()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        """Remove the line for a product. Removing an absent product is a no-op."""
        item = self._find_item(product_id)
        if item is not None:
            self.remove_items(item)
        self._recalculate_totals()

        if item is not None:
            self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        items_removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self._recalculate_totals()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed=items_removed,
                cleared_at=self.last_modified,
            )
        )

    # -------------------------------------------------------------------
    # Read-only projections
    # -------------------------------------------------------------------
    def summary(self):
        return {
            "total_items": self.total_items,
            "total_price": self.total_price,
            "item_count": len(self.items),
            "items": [item.to_summary() for item in self._sorted_items()],
        }

    def snapshot(self):
        """Line data copied into an order at checkout; detached from the cart."""
        return [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in self._sorted_items()
        ]
