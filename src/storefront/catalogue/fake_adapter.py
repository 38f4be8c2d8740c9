"""In-memory catalogue for development and tests."""

from storefront.catalogue.port import CataloguePort, ProductInfo

_SEED_PRODUCTS = [
    ProductInfo(
        id="honda-city-2024",
        name="Honda City 2024",
        price=1200000.0,
        brand="Honda",
        image="https://images.unsplash.com/photo-1549924231-f129b911e442?w=800",
        stock_quantity=15,
    ),
    ProductInfo(
        id="maruti-swift-2024",
        name="Maruti Swift 2024",
        price=650000.0,
        brand="Maruti",
        image="https://images.unsplash.com/photo-1552519507-da3b142c6e3d?w=800",
        stock_quantity=20,
    ),
    ProductInfo(
        id="royal-enfield-classic-350",
        name="Royal Enfield Classic 350",
        price=190000.0,
        brand="Royal Enfield",
        stock_quantity=25,
    ),
]


class FakeCatalogue(CataloguePort):
    """Catalogue backed by a dict; products can be added or replaced at runtime."""

    def __init__(self, products: list[ProductInfo] | None = None):
        self.products: dict[str, ProductInfo] = {}
        for product in _SEED_PRODUCTS if products is None else products:
            self.put(product)

    def put(self, product: ProductInfo) -> None:
        self.products[product.id] = product

    def get_product(self, product_id: str) -> ProductInfo | None:
        return self.products.get(str(product_id))

    def reset(self) -> None:
        self.products.clear()
        for product in _SEED_PRODUCTS:
            self.put(product)
