"""Order and tracking number generation.

Order numbers come from a named counter aggregate incremented in the same
unit of work that stores the order, so two checkouts never read the same
value. Tracking numbers are time-based with a random suffix; their uniqueness
is checked before the order is stored.
"""

import secrets
import string
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront

ORDER_SEQUENCE = "orders"

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 4


@storefront.aggregate
class OrderSequence:
    name = String(identifier=True, required=True, max_length=50)
    current_value = Integer(default=0, min_value=0)

    def next_value(self):
        self.current_value = (self.current_value or 0) + 1
        return self.current_value


def format_order_number(prefix, sequence):
    return f"{prefix}{sequence:06d}"


def next_order_number(prefix, sequence_name=ORDER_SEQUENCE):
    """Increment the named sequence and return the formatted order number."""
    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(sequence_name)
    except ObjectNotFoundError:
        sequence = OrderSequence(name=sequence_name, current_value=0)

    value = sequence.next_value()
    repo.add(sequence)
    return format_order_number(prefix, value)


def generate_tracking_number(prefix, now=None):
    """``<prefix><epoch milliseconds><4 uppercase alphanumerics>``"""
    moment = now or datetime.now(UTC)
    millis = int(moment.timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}{millis}{suffix}"
