"""Return authorizations.

Open RMAs (`RMA-RO-<id>`) mirror returns the external system expects to
receive. Their contents are set, never accumulated: each sync recomputes what
the RMA should claim from the full item list. Received returns
(`RMA-RET-<id>`) record the physical receipt and the refunded amount.

The same shipped unit is never claimed by two authorizations. Before an
authorization grows, room is made by shrinking the other open ones.
"""

import logging
from collections import defaultdict
from decimal import Decimal

import attrs

from ..core.diagnostics import Diagnostics
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..core.prices import to_decimal
from ..product.models import Variant
from . import (
    AdjustmentKind,
    InventoryUnitState,
    ReturnAuthorizationState,
    return_credit_label,
    return_number,
    return_shipping_label,
    return_tax_label,
    rma_number,
)
from .adjustments import upsert_adjustment
from .models import InventoryUnit, Order, ReturnAuthorization

logger = logging.getLogger(__name__)


@attrs.frozen
class RmaItem:
    sku: str
    quantity: int


@attrs.frozen
class RmaRecord:
    id: int
    items: tuple[RmaItem, ...] = ()
    corr: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "RmaRecord":
        return cls(
            id=int(data["id"]),
            items=tuple(
                RmaItem(sku=str(item.get("sku") or ""), quantity=int(item.get("quantity") or 0))
                for item in data.get("items") or ()
            ),
            corr=data.get("corr"),
        )

    @property
    def number(self) -> str:
        return rma_number(self.id)


@attrs.frozen
class ReturnItem:
    line_item_id: int
    quantity: int


@attrs.frozen
class ReturnRecord:
    return_id: int
    rma_id: int | None = None
    items: tuple[ReturnItem, ...] = ()
    refund_amt: Decimal = Decimal("0.00")
    tax_amt: Decimal | None = None
    shipping_amt: Decimal = Decimal("0.00")

    @classmethod
    def from_payload(cls, data: dict) -> "ReturnRecord":
        rma_id = data.get("rma_id")
        return cls(
            return_id=int(data["return_id"]),
            rma_id=int(rma_id) if rma_id not in (None, "", 0, "0") else None,
            items=tuple(
                ReturnItem(
                    line_item_id=int(item["channel_refnum"]),
                    quantity=int(item.get("quantity") or 0),
                )
                for item in data.get("return_items") or ()
            ),
            refund_amt=to_decimal(data.get("refund_amt")) or Decimal("0.00"),
            tax_amt=to_decimal(data.get("tax_amt")),
            shipping_amt=to_decimal(data.get("shipping_amt")) or Decimal("0.00"),
        )

    @property
    def number(self) -> str:
        return return_number(self.return_id)

    @property
    def amount(self) -> Decimal:
        """Merchandise value; tax and shipping get their own adjustments."""
        if self.tax_amt is None:
            return self.refund_amt
        return self.refund_amt - (self.tax_amt + self.shipping_amt)


def open_rmas(order: Order):
    return order.return_authorizations.filter(
        state=ReturnAuthorizationState.AUTHORIZED
    ).order_by("created_at", "pk")


def free_shipped_quantity(order: Order, variant_id: int) -> int:
    return InventoryUnit.objects.filter(
        order=order,
        variant_id=variant_id,
        state=InventoryUnitState.SHIPPED,
        return_authorization__isnull=True,
    ).count()


def deduct_from_rmas(rmas, variant_id: int, quantity: int) -> tuple[int, set]:
    """Release up to `quantity` units of a variant from `rmas`, in order.

    Returns the quantity still missing and the authorizations touched.
    """
    touched = set()
    for rma in rmas:
        if quantity <= 0:
            break
        here = rma.inventory_units.filter(variant_id=variant_id).count()
        take = min(here, quantity)
        if take > 0:
            rma.set_quantity(variant_id, here - take)
            quantity -= take
            touched.add(rma)
    return quantity, touched


def delete_empty_rmas(rmas):
    for rma in rmas:
        if rma.pk is not None and not rma.inventory_units.exists():
            logger.info("Order %s: deleting empty RMA %s", rma.order_id, rma.number)
            rma.delete()


def received_quantities(order: Order, source_number: str) -> dict[int, int]:
    closed = defaultdict(int)
    received = order.return_authorizations.filter(
        state=ReturnAuthorizationState.RECEIVED, source_number=source_number
    )
    for ret in received:
        for variant_id, quantity in ret.quantities().items():
            closed[variant_id] += quantity
    return closed


def get_return_location(order: Order):
    shipment = order.shipped_shipments().order_by("pk").first()
    return shipment.stock_location if shipment else None


def sync_rma(order: Order, record: RmaRecord, diagnostics: Diagnostics) -> bool:
    """Make the open RMA for `record.id` claim exactly what is still expected."""
    if not order.shipped_shipments().exists():
        return False

    number = record.number
    target = order.return_authorizations.filter(number=number).first()
    if target is not None and target.is_received:
        return False

    variants = Variant.objects.by_sku(item.sku for item in record.items)
    requested = defaultdict(int)
    for item in record.items:
        variant = variants.get(item.sku)
        if variant is not None:
            requested[variant.pk] += max(item.quantity, 0)

    closed = received_quantities(order, number)
    required = {
        variant_id: max(quantity - closed.get(variant_id, 0), 0)
        for variant_id, quantity in requested.items()
    }
    before = target.quantities() if target is not None else {}

    others = [rma for rma in open_rmas(order) if rma != target]
    touched = set()
    for variant_id, quantity in required.items():
        available = before.get(variant_id, 0) + free_shipped_quantity(order, variant_id)
        missing = quantity - available
        if missing > 0:
            _, rmas = deduct_from_rmas(others, variant_id, missing)
            touched |= rmas
    delete_empty_rmas(touched)
    changed = bool(touched)

    total = sum(required.values())
    created = target is None
    if created:
        if total <= 0:
            return changed
        target = ReturnAuthorization.objects.create(
            order=order, number=number, stock_location=get_return_location(order)
        )
        logger.info("Order %s: created RMA %s", order, number)

    for variant_id, quantity in required.items():
        claimed = target.set_quantity(variant_id, quantity)
        if claimed < quantity:
            diagnostics.add_warning(
                record.corr,
                f"RMA {number}: only {claimed} of {quantity} units are available",
            )
    for variant_id in before:
        if variant_id not in required:
            target.set_quantity(variant_id, 0)

    after = target.quantities()
    if not after:
        logger.info("Order %s: deleting RMA %s", order, number)
        target.delete()
        return changed or not created
    return changed or after != before


def assert_return(
    order: Order, record: ReturnRecord, diagnostics: Diagnostics | None = None
) -> ReturnAuthorization | None:
    """Record the receipt of a return; repeated pushes are ignored."""
    number = record.number
    if order.return_authorizations.filter(number=number).exists():
        return None

    if not record.items:
        raise SyncError("Cannot push an empty return.", SyncErrorCode.EMPTY_RETURN)
    if not order.shipped_shipments().exists():
        raise SyncError(f"Order {order} is not shipped.", SyncErrorCode.NOT_SHIPPED)

    lines = {line.pk: line for line in order.line_items.all()}
    by_variant = {}
    for item in record.items:
        line = lines.get(item.line_item_id)
        if line is not None:
            by_variant[line.variant_id] = item.quantity

    source_number = rma_number(record.rma_id) if record.rma_id else ""
    rmas = list(open_rmas(order))
    preferred = [rma for rma in rmas if rma.number == source_number]
    eligible = preferred + [rma for rma in rmas if rma.number != source_number]

    touched = set()
    for variant_id, quantity in by_variant.items():
        _, rmas_touched = deduct_from_rmas(eligible, variant_id, quantity)
        touched |= rmas_touched
    delete_empty_rmas(touched)

    ret = ReturnAuthorization.objects.create(
        order=order,
        number=number,
        stock_location=get_return_location(order),
        source_number=source_number,
        amount=record.amount,
    )
    for variant_id, quantity in by_variant.items():
        claimed = ret.set_quantity(variant_id, quantity)
        if claimed < quantity and diagnostics is not None:
            diagnostics.add_warning(
                number, f"only {claimed} of {quantity} units could be returned"
            )
    ret.receive()
    logger.info("Order %s: received return %s for %s", order, number, ret.amount)

    if ret.amount:
        upsert_adjustment(
            order,
            return_credit_label(number),
            -abs(ret.amount),
            kind=AdjustmentKind.RETURN,
            close=True,
        )
    if record.tax_amt is not None:
        if record.shipping_amt:
            upsert_adjustment(
                order,
                return_shipping_label(record.return_id),
                -record.shipping_amt,
                kind=AdjustmentKind.RETURN,
                close=True,
            )
        if record.tax_amt:
            upsert_adjustment(
                order,
                return_tax_label(record.return_id),
                -record.tax_amt,
                kind=AdjustmentKind.RETURN,
                close=True,
            )
    return ret
