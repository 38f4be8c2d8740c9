"""Storefront bounded context: shopping cart and order lifecycle.

Carts are per-customer CQRS aggregates that collect product selections.
Orders are created from a cart snapshot at checkout and then follow their own
lifecycle: status transitions, an append-only tracking history, and a derived
delivery timeline.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
