"""Order lifecycle error kinds that Protean has no direct counterpart for."""

from protean.exceptions import InvalidOperationError


class OrderError(InvalidOperationError):
    kind = "order_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class OrderStateError(OrderError):
    """An operation is not allowed in the order's current status."""

    kind = "invalid_state"


class DuplicateOrderError(OrderError):
    """An order number or tracking number is already taken."""

    kind = "conflict"
