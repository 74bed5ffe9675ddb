"""Packages: what the warehouse actually shipped.

A package becomes a shipped shipment holding the inventory units it
contains. Packages describe physical reality, so a package is recorded
completely or not at all: an unknown line item or stock location aborts the
whole call. Pushing the same package again only refreshes its tracking data.
"""

import datetime
import logging
from collections import Counter
from urllib.parse import unquote

import attrs
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from ..core.diagnostics import Diagnostics
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..core.extensions import apply_extensions
from ..core.options import SyncOptions
from ..shipping.advisory import AdvisoryMethodResolver
from ..warehouse.management import get_or_create_location, unstock
from . import AdjustmentState, InventoryUnitState, ShipmentState, package_number
from .models import InventoryUnit, Order, Shipment
from .utils import destroy_empty_shipments

logger = logging.getLogger(__name__)


def to_datetime(value) -> datetime.datetime | None:
    if value in (None, ""):
        return None
    text = str(value).strip()
    moment = parse_datetime(text)
    if moment is None:
        day = parse_date(text)
        if day is None:
            raise ValueError(f"{value!r} is not a valid date")
        moment = datetime.datetime.combine(day, datetime.time())
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, datetime.timezone.utc)
    return moment


@attrs.frozen
class PackageContent:
    line_item_id: int
    quantity: int


def _to_contents(items) -> tuple[PackageContent, ...]:
    return tuple(
        item
        if isinstance(item, PackageContent)
        else PackageContent(
            line_item_id=int(item["id"]), quantity=int(item["quantity"])
        )
        for item in items or ()
    )


@attrs.frozen
class PackageRecord:
    id: int
    from_location: str
    shipcode: str = ""
    tracking: str = ""
    date: datetime.datetime | None = None
    contents: tuple[PackageContent, ...] = attrs.field(
        default=(), converter=_to_contents
    )

    @classmethod
    def from_payload(cls, data: dict) -> "PackageRecord":
        return cls(
            id=int(data["id"]),
            from_location=str(data.get("from") or ""),
            shipcode=str(data.get("shipcode") or ""),
            tracking=str(data.get("tracking") or ""),
            date=to_datetime(data.get("date")),
            contents=data.get("contents"),
        )

    @property
    def number(self) -> str:
        return package_number(self.id)


def parse_shipcode(shipcode: str) -> tuple[str, dict[str, str]]:
    """Split `Method|field:value|...` into the method name and its fields.

    Both the method name and the values are percent-encoded.
    """
    method, *parts = (shipcode or "").split("|")
    fields = {}
    for part in parts:
        name, _, value = part.partition(":")
        if name:
            fields[name] = unquote(value)
    return unquote(method), fields


def apply_shipcode(
    shipment: Shipment,
    record: PackageRecord,
    resolver: AdvisoryMethodResolver,
    diagnostics: Diagnostics | None = None,
):
    """Copy tracking, shipping method and extension fields onto `shipment`."""
    method_name, fields = parse_shipcode(record.shipcode)
    shipment.tracking = record.tracking
    if record.date is not None:
        shipment.created_at = record.date
    apply_extensions(shipment, fields, diagnostics, record.number)
    shipment.shipping_method = resolver.advisory_method(method_name)
    shipment.cost = 0
    shipment.cost_state = AdjustmentState.CLOSED
    shipment.save()


def find_package_shipment(order: Order, number: str) -> Shipment | None:
    return (
        order.shipments.filter(Q(number=number) | Q(number__startswith=f"{number}-"))
        .order_by("pk")
        .first()
    )


def get_free_number(number: str) -> str:
    # Another order may already use the package number.
    candidate, suffix = number, 1
    while Shipment.objects.filter(number=candidate).exists():
        candidate = f"{number}-{suffix}"
        suffix += 1
    return candidate


def ship(shipment: Shipment, shipped_at: datetime.datetime | None = None):
    """Mark `shipment` and its units shipped and take the units out of stock."""
    units = shipment.inventory_units.select_related("variant")
    for variant, quantity in Counter(unit.variant for unit in units).items():
        unstock(shipment.stock_location, variant, quantity)
    shipment.inventory_units.update(state=InventoryUnitState.SHIPPED)
    shipment.state = ShipmentState.SHIPPED
    shipment.shipped_at = shipped_at or timezone.now()
    shipment.save(update_fields=["state", "shipped_at"])


def add_package(
    order: Order,
    record: PackageRecord,
    resolver: AdvisoryMethodResolver,
    options: SyncOptions,
    diagnostics: Diagnostics | None = None,
) -> Shipment | None:
    if order.is_canceled():
        return None

    shipment = find_package_shipment(order, record.number)
    if shipment is not None:
        apply_shipcode(shipment, record, resolver, diagnostics)
        logger.info("Order %s: package %s already recorded", order, record.number)
        return shipment

    location = get_or_create_location(
        record.from_location, create=not options.no_auto_stock_locations
    )
    shipment = Shipment.objects.create(
        order=order,
        number=get_free_number(record.number),
        stock_location=location,
        state=ShipmentState.READY,
    )

    for content in record.contents:
        line = order.line_items.filter(pk=content.line_item_id).first()
        if line is None:
            raise SyncError(
                f"Line item {content.line_item_id} does not belong to order {order}",
                SyncErrorCode.LINE_ITEM_NOT_FOUND,
            )
        # Never move more units than the line still has unfulfilled.
        units = list(
            line.inventory_units.filter(state=InventoryUnitState.UNFULFILLED)
            .exclude(shipment=shipment)
            .order_by("pk")
            .values_list("pk", flat=True)[: max(content.quantity, 0)]
        )
        InventoryUnit.objects.filter(pk__in=units).update(shipment=shipment)

    apply_shipcode(shipment, record, resolver, diagnostics)
    ship(shipment, record.date)
    logger.info(
        "Order %s: shipped package %s from %s", order, shipment.number, location
    )

    destroy_empty_shipments(order)
    return shipment
