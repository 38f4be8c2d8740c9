"""Catalogue adapter factory.

Provides get_catalogue() / set_catalogue() to swap implementations. Uses
FakeCatalogue by default; the adapter is chosen by the CATALOGUE_ADAPTER
environment variable.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.catalogue.port import CataloguePort, ProductInfo
from storefront.config import get_settings

_current_catalogue: CataloguePort | None = None


def get_catalogue() -> CataloguePort:
    """Return the configured catalogue adapter (singleton)."""
    global _current_catalogue
    if _current_catalogue is None:
        adapter = get_settings().catalogue_adapter
        if adapter == "fake":
            from storefront.catalogue.fake_adapter import FakeCatalogue

            _current_catalogue = FakeCatalogue()
        else:
            raise ValueError(f"Unknown catalogue adapter: {adapter}")
    return _current_catalogue


def set_catalogue(catalogue: CataloguePort) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    global _current_catalogue
    _current_catalogue = None


def get_active_product(product_id: str) -> ProductInfo:
    """Return a product that can be sold, or raise ObjectNotFoundError."""
    product = get_catalogue().get_product(product_id)
    if product is None or not product.is_active:
        raise ObjectNotFoundError({"product_id": "Product not found"})
    return product


def ensure_available(product: ProductInfo, quantity: int) -> None:
    """Reject out-of-stock products and quantities above the tracked stock."""
    if not product.in_stock:
        raise ValidationError({"product_id": ["Product is out of stock"]})
    if product.stock_quantity > 0 and quantity > product.stock_quantity:
        raise ValidationError({"quantity": [f"Only {product.stock_quantity} items available in stock"]})


__all__ = [
    "CataloguePort",
    "ProductInfo",
    "ensure_available",
    "get_active_product",
    "get_catalogue",
    "reset_catalogue",
    "set_catalogue",
]
