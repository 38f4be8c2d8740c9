"""Tracking vocabulary and the derived delivery timeline.

The tracking history on an order narrates its coarse status with a finer
vocabulary (``out_for_delivery`` has no order status of its own). The
customer-facing timeline is a fixed list of six stages computed from that
history on every call; it is never stored.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TrackingStatus(Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CONFIRMED = "order_confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Ordered stage labels and the tracking status that completes each of them.
# ``cancelled`` deliberately completes no stage.
TIMELINE_STAGES = (
    ("Order Placed", TrackingStatus.ORDER_PLACED),
    ("Order Confirmed", TrackingStatus.ORDER_CONFIRMED),
    ("Processing", TrackingStatus.PROCESSING),
    ("Shipped", TrackingStatus.SHIPPED),
    ("Out for Delivery", TrackingStatus.OUT_FOR_DELIVERY),
    ("Delivered", TrackingStatus.DELIVERED),
)

_STAGE_INDEX = {status.value: index for index, (_, status) in enumerate(TIMELINE_STAGES)}


@dataclass(frozen=True)
class TimelineStage:
    status: str
    date: datetime | None
    completed: bool

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "date": self.date.isoformat() if self.date else None,
            "completed": self.completed,
        }


def build_timeline(history, created_at, delivered_at=None) -> list[TimelineStage]:
    """Project a tracking history onto the six fixed timeline stages.

    Args:
        history: Tracking entries in append order; each needs ``status`` and
            ``timestamp`` attributes.
        created_at: Completes the "Order Placed" stage unconditionally.
        delivered_at: Seeds the "Delivered" stage date before the history scan.

    A stage is completed, and dated, by the first history entry that matches
    it. Later entries with the same status never move a stage's date.
    """
    dates: list[datetime | None] = [None] * len(TIMELINE_STAGES)
    completed = [False] * len(TIMELINE_STAGES)

    dates[0] = created_at
    completed[0] = True
    dates[-1] = delivered_at

    for entry in history:
        index = _STAGE_INDEX.get(entry.status)
        if index is None or completed[index]:
            continue
        completed[index] = True
        dates[index] = entry.timestamp

    return [
        TimelineStage(status=label, date=dates[index], completed=completed[index])
        for index, (label, _) in enumerate(TIMELINE_STAGES)
    ]
