"""Runtime settings read from the environment.

Protean infrastructure (databases, event processing) is configured in
``domain.toml``; this module only holds storefront business settings.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class StorefrontSettings:
    number_prefix: str = "BWP"
    shipping_fee: float = 5000.0
    tax_rate: float = 0.18
    delivery_days: int = 7
    catalogue_adapter: str = "fake"
    email_adapter: str = "fake"


def load_settings() -> StorefrontSettings:
    """Build settings from ``STOREFRONT_*`` and adapter environment variables."""
    defaults = StorefrontSettings()
    tax_rate = float(os.environ.get("STOREFRONT_TAX_RATE", defaults.tax_rate))
    if tax_rate < 0:
        raise ValueError(f"STOREFRONT_TAX_RATE must be non-negative, got {tax_rate}")

    return StorefrontSettings(
        number_prefix=os.environ.get("STOREFRONT_NUMBER_PREFIX", defaults.number_prefix),
        shipping_fee=float(os.environ.get("STOREFRONT_SHIPPING_FEE", defaults.shipping_fee)),
        tax_rate=tax_rate,
        delivery_days=int(os.environ.get("STOREFRONT_DELIVERY_DAYS", defaults.delivery_days)),
        catalogue_adapter=os.environ.get("CATALOGUE_ADAPTER", defaults.catalogue_adapter),
        email_adapter=os.environ.get("EMAIL_ADAPTER", defaults.email_adapter),
    )


_settings: StorefrontSettings | None = None


def get_settings() -> StorefrontSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
