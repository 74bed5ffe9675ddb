"""Order level adjustments keyed by label.

A label identifies one semantic figure on the order ("Standard Shipping",
"Tax set externally", ...). Writing a figure updates the adjustment holding
that label instead of appending a new one, so repeating a reconciliation with
the same inputs changes nothing.
"""

import logging
from decimal import Decimal

from ..core.db import find_or_create_locked
from . import AdjustmentKind, AdjustmentState
from .models import Adjustment, Order

logger = logging.getLogger(__name__)


def get_adjustment(order: Order, label: str) -> Adjustment | None:
    return order.adjustments.filter(label=label, shipment__isnull=True).first()


def upsert_adjustment(
    order: Order,
    label: str,
    amount: Decimal,
    *,
    kind: str,
    close: bool = False,
) -> tuple[Adjustment, bool]:
    """Make the adjustment labeled `label` hold `amount`.

    With `close` the adjustment is closed so order recalculation keeps the
    asserted amount. Returns the adjustment and whether anything was written.
    """
    adjustment, created = find_or_create_locked(
        Adjustment.objects.filter(order=order, shipment__isnull=True),
        order=order,
        label=label,
        defaults={
            "amount": amount,
            "kind": kind,
            "state": AdjustmentState.CLOSED if close else AdjustmentState.OPEN,
        },
    )
    if created:
        logger.debug("Order %s: created adjustment %r = %s", order, label, amount)
        return adjustment, True

    update_fields = []
    if adjustment.amount != amount:
        adjustment.amount = amount
        update_fields.append("amount")
    if close and not adjustment.is_closed:
        adjustment.state = AdjustmentState.CLOSED
        update_fields.append("state")
    if update_fields:
        adjustment.save(update_fields=[*update_fields, "updated_at"])
        logger.debug("Order %s: updated adjustment %r = %s", order, label, amount)
    return adjustment, bool(update_fields)


def remove_adjustment(order: Order, label: str) -> bool:
    deleted, _ = order.adjustments.filter(label=label, shipment__isnull=True).delete()
    return bool(deleted)


def sum_adjustments(order: Order, kind: str, exclude_label: str | None = None):
    adjustments = order.adjustments.filter(kind=kind)
    if exclude_label is not None:
        adjustments = adjustments.exclude(label=exclude_label)
    return sum((adj.amount for adj in adjustments), Decimal("0.00"))


def reopen_tax_adjustments(order: Order) -> bool:
    """Let order recalculation recompute tax after the shipping price moved."""
    updated = order.adjustments.filter(
        kind=AdjustmentKind.TAX, state=AdjustmentState.CLOSED
    ).update(state=AdjustmentState.OPEN)
    return bool(updated)
