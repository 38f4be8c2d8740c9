"""Catalogue port (abstract interface).

The storefront never owns product data. It asks the catalogue for the
current price and availability when items are added to a cart, and for the
display fields that get snapshotted into an order at checkout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductInfo:
    """Product fields the storefront reads from the catalogue."""

    id: str
    name: str
    price: float
    brand: str | None = None
    image: str | None = None
    in_stock: bool = True
    stock_quantity: int = 0
    is_active: bool = True

    def snapshot(self) -> dict:
        """By-value copy stored on order line items."""
        return {
            "product_id": self.id,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "brand": self.brand,
        }


class CataloguePort(ABC):
    """Abstract catalogue lookup interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductInfo | None:
        """Return the product, or None when the id is unknown."""
        ...
