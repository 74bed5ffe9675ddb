"""Short-ship refunds asserted when an order is marked complete."""

import logging
from decimal import Decimal

import attrs

from ..core.db import find_or_create_locked
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..core.prices import to_decimal
from . import AdjustmentKind, AdjustmentState
from .models import Adjustment, Order
from .utils import delete_unfulfilled_units, destroy_empty_shipments

logger = logging.getLogger(__name__)


@attrs.frozen
class RefundItem:
    label: str
    amount: Decimal
    line_item_id: int | None = None
    quantity: int = 0

    @classmethod
    def from_payload(cls, data: dict) -> "RefundItem":
        line_item_id = data.get("id")
        return cls(
            label=str(data.get("label") or ""),
            amount=to_decimal(data.get("amount")) or Decimal("0.00"),
            line_item_id=int(line_item_id) if line_item_id not in (None, "") else None,
            quantity=int(data.get("quantity") or 0),
        )


def assert_refund_adjustments(
    order: Order, items: list[RefundItem], cancel_ship: bool = True
) -> bool:
    """Create one refund adjustment per label.

    The first time a label is seen, `quantity` unfulfilled units of the named
    line item are destroyed as well: they will never ship. Later pushes of
    the same label change nothing.
    """
    if order.is_canceled():
        return False
    changed = False
    for item in items:
        if not item.label:
            raise SyncError("Refund items need a label.", SyncErrorCode.REQUIRED)
        _, created = find_or_create_locked(
            Adjustment.objects.filter(order=order, shipment__isnull=True),
            order=order,
            label=item.label,
            defaults={
                "amount": -item.amount,
                "kind": AdjustmentKind.REFUND,
                "state": AdjustmentState.CLOSED,
            },
        )
        if not created:
            continue
        changed = True
        logger.info("Order %s: refund %r of %s", order, item.label, item.amount)

        if cancel_ship and item.line_item_id is not None and item.quantity > 0:
            line = order.line_items.filter(pk=item.line_item_id).first()
            if line is None:
                raise SyncError(
                    f"Line item {item.line_item_id} does not belong to order {order}",
                    SyncErrorCode.LINE_ITEM_NOT_FOUND,
                )
            destroyed = delete_unfulfilled_units(line, item.quantity)
            if destroyed:
                line.quantity_canceled += destroyed
                line.save(update_fields=["quantity_canceled"])

    if cancel_ship and destroy_empty_shipments(order):
        changed = True
    return changed
