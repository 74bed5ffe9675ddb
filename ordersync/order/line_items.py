"""Line item reconciliation.

The external system sends the full list of lines an order should have. Local
lines are created, resized, repriced or removed until they match, and every
write is skipped when the stored value already agrees: order recalculation is
expensive and reopens closed adjustments.
"""

import datetime
import logging
from decimal import Decimal

import attrs
from django.utils.dateparse import parse_date, parse_datetime

from ..core.diagnostics import Diagnostics
from ..core.extensions import apply_extensions
from ..core.prices import to_decimal
from ..product.models import Variant
from ..shipping.advisory import AdvisoryMethodResolver
from . import InventoryUnitState
from .models import LineItem, Order
from .utils import (
    add_units,
    delete_unfulfilled_units,
    destroy_empty_shipments,
    get_shipment_for_variant,
)

logger = logging.getLogger(__name__)


def to_date(value) -> datetime.date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime.date):
        return value
    text = str(value).strip()
    parsed = parse_date(text)
    if parsed is None:
        moment = parse_datetime(text)
        parsed = moment.date() if moment else None
    if parsed is None:
        raise ValueError(f"{value!r} is not a valid date")
    return parsed


def to_quantity(value) -> int:
    quantity = int(value or 0)
    if quantity < 0:
        raise ValueError(f"{value!r} is not a valid quantity")
    return quantity


@attrs.frozen
class LineItemRecord:
    sku: str
    quantity: int
    corr: str | None = None
    unit_price: Decimal | None = None
    estimated_unit_cost: Decimal | None = None
    estimated_ship_date: datetime.date | None = None
    removed: bool = False
    ext: dict = attrs.field(factory=dict)

    @classmethod
    def from_payload(cls, data: dict) -> "LineItemRecord":
        return cls(
            sku=str(data.get("sku") or ""),
            quantity=to_quantity(data.get("quantity")),
            corr=data.get("corr"),
            unit_price=to_decimal(data.get("unit_price")),
            estimated_unit_cost=to_decimal(data.get("estimated_unit_cost")),
            estimated_ship_date=to_date(data.get("estimated_ship_date")),
            removed=bool(data.get("removed")),
            ext=dict(data.get("ext") or {}),
        )

    @property
    def target_quantity(self) -> int:
        return 0 if self.removed else self.quantity


@attrs.define
class LineSyncResult:
    changed: bool = False
    results: list[dict] = attrs.field(factory=list)


def _has_kept_units(line: LineItem) -> bool:
    return line.inventory_units.exclude(state=InventoryUnitState.UNFULFILLED).exists()


def remove_line(
    line: LineItem, diagnostics: Diagnostics, corr_id=None
) -> tuple[int, bool]:
    """Remove a line entirely.

    Lines with shipped or returned units cannot disappear, they keep exactly
    those units. Returns the quantity left on the line and whether anything
    was written.
    """
    deleted = delete_unfulfilled_units(line, line.quantity)
    if not _has_kept_units(line):
        logger.info("Order %s: removing line %s", line.order_id, line)
        line.delete()
        return 0, True
    kept = line.inventory_units.count()
    diagnostics.add_warning(
        corr_id,
        f"{line.variant.sku}: {kept} units already shipped, cannot remove them",
    )
    if line.quantity != kept or line.quantity_canceled:
        line.quantity = kept
        line.quantity_canceled = 0
        line.save(update_fields=["quantity", "quantity_canceled"])
        return kept, True
    return kept, bool(deleted)


def set_line_quantity(
    line: LineItem,
    quantity: int,
    resolver: AdvisoryMethodResolver,
    diagnostics: Diagnostics,
    corr_id=None,
) -> bool:
    """Resize `line` to `quantity`, keeping units and quantity consistent."""
    current = line.quantity
    if quantity == current:
        return False

    if quantity > current:
        shipment = get_shipment_for_variant(line.order, line.variant, resolver)
        add_units(line, shipment, quantity - current)
        line.quantity = quantity
        line.save(update_fields=["quantity"])
        return True

    excess = current - quantity
    excess -= delete_unfulfilled_units(line, excess)
    canceled = min(excess, line.quantity_canceled)
    excess -= canceled
    if excess:
        diagnostics.add_warning(
            corr_id,
            f"{line.variant.sku}: {excess} units already shipped, "
            f"quantity kept at {quantity + excess}",
        )
    new_quantity = quantity + excess
    if new_quantity == current:
        return False
    line.quantity = new_quantity
    line.quantity_canceled -= canceled
    line.save(update_fields=["quantity", "quantity_canceled"])
    return True


def create_line(
    order: Order,
    variant: Variant,
    record: LineItemRecord,
    resolver: AdvisoryMethodResolver,
) -> LineItem:
    line = LineItem.objects.create(
        order=order,
        variant=variant,
        quantity=record.quantity,
        currency=order.currency,
        unit_price_amount=(
            record.unit_price
            if record.unit_price is not None
            else variant.price_amount
        ),
        cost_price_amount=(
            record.estimated_unit_cost
            if record.estimated_unit_cost is not None
            else variant.cost_price_amount
        ),
        estimated_ship_date=record.estimated_ship_date,
    )
    shipment = get_shipment_for_variant(order, variant, resolver)
    add_units(line, shipment, record.quantity)
    logger.info("Order %s: added line %s", order, line)
    return line


def update_line_fields(line: LineItem, record: LineItemRecord) -> list[str]:
    """Assign the asserted values that differ; returns the changed fields."""
    values = {
        "unit_price_amount": record.unit_price,
        "cost_price_amount": record.estimated_unit_cost,
        "estimated_ship_date": record.estimated_ship_date,
    }
    changed = []
    for name, value in values.items():
        if value is not None and getattr(line, name) != value:
            setattr(line, name, value)
            changed.append(name)
    return changed


def sync_line_items(
    order: Order,
    records: list[LineItemRecord],
    resolver: AdvisoryMethodResolver,
    diagnostics: Diagnostics,
) -> LineSyncResult:
    result = LineSyncResult()
    variants = Variant.objects.by_sku(record.sku for record in records)
    lines = {}
    duplicates = []
    for line in order.line_items.select_related("variant").order_by("pk"):
        if line.variant_id in lines:
            duplicates.append(line)
        else:
            lines[line.variant_id] = line

    seen_skus = set()
    mentioned = set()
    for record in records:
        if record.sku in seen_skus:
            diagnostics.add_error(
                record.corr, f"{record.sku} appears more than once in the order"
            )
            continue
        seen_skus.add(record.sku)

        variant = variants.get(record.sku)
        if variant is None:
            logger.debug("Order %s: skipping unknown SKU %r", order, record.sku)
            continue
        mentioned.add(variant.pk)
        line = lines.get(variant.pk)

        if record.target_quantity == 0:
            if line is None:
                continue
            refnum = line.pk
            remaining, removed = remove_line(line, diagnostics, record.corr)
            result.changed = removed or result.changed
            result.results.append(
                {"corr": record.corr, "refnum": refnum, "quantity": remaining}
            )
            continue

        if line is None:
            line = create_line(order, variant, record, resolver)
            result.changed = True
        elif set_line_quantity(
            line, record.target_quantity, resolver, diagnostics, record.corr
        ):
            result.changed = True

        update_fields = update_line_fields(line, record)
        if apply_extensions(line, record.ext, diagnostics, record.corr):
            update_fields.extend(["gift_message", "metadata"])
        if update_fields:
            line.save(update_fields=update_fields)
            result.changed = True

        result.results.append(
            {"corr": record.corr, "refnum": line.pk, "quantity": line.quantity}
        )

    unmentioned = [
        line for variant_id, line in lines.items() if variant_id not in mentioned
    ]
    for line in unmentioned + duplicates:
        _, removed = remove_line(line, diagnostics)
        result.changed = removed or result.changed

    if destroy_empty_shipments(order):
        result.changed = True
    return result
