"""Inventory ledger: per-location on-hand quantities.

The external system is the authority on inventory and pushes absolute
per-location figures. Applying a figure computes the delta against what is on
hand locally and records a stock movement only when something changed, so
replaying the same push is harmless.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ..core.db import find_or_create_locked
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..product.models import Variant
from . import StockMovementOriginator
from .models import Stock, StockLocation, StockMovement

logger = logging.getLogger(__name__)


def get_or_create_location(name: str, create: bool = True) -> StockLocation:
    name = (name or "").strip()
    if not name:
        raise SyncError(
            "Stock location name is required.", SyncErrorCode.STOCK_LOCATION_NOT_FOUND
        )
    if not create:
        try:
            return StockLocation.objects.select_for_update().get(name=name)
        except StockLocation.DoesNotExist:
            raise SyncError(
                f"Stock location {name!r} does not exist.",
                SyncErrorCode.STOCK_LOCATION_NOT_FOUND,
            ) from None
    location, created = find_or_create_locked(
        StockLocation.objects.all(), name=name, defaults={"admin_name": name}
    )
    if created:
        logger.info("Created stock location %r", name)
    return location


def get_default_location() -> StockLocation:
    location = (
        StockLocation.objects.filter(is_default=True).first()
        or StockLocation.objects.order_by("pk").first()
    )
    if location is None:
        location = get_or_create_location(settings.ORDERSYNC_DEFAULT_LOCATION_NAME)
    return location


def get_location_for_variant(variant: Variant) -> StockLocation | None:
    """Location a new shipment of `variant` should leave from.

    Locations holding the variant on hand win over ones that merely track it.
    """
    stock = (
        Stock.objects.filter(variant=variant)
        .select_related("location")
        .order_by("-quantity", "pk")
        .first()
    )
    return stock.location if stock else None


def _move(stock: Stock, quantity: int, originator: str):
    StockMovement.objects.create(stock=stock, quantity=quantity, originator=originator)
    stock.quantity += quantity
    stock.save(update_fields=["quantity"])


def unstock(
    location: StockLocation,
    variant: Variant,
    quantity: int,
    originator: str = StockMovementOriginator.SHIPMENT,
):
    """Take `quantity` units of `variant` out of `location`."""
    if quantity <= 0:
        return
    stock, _ = find_or_create_locked(
        Stock.objects.all(), location=location, variant=variant
    )
    _move(stock, -quantity, originator)


def get_unsynced_quantities(variant_ids=None) -> dict[int, int]:
    """Demand from completed orders the external system has not imported yet.

    Inventory figures pushed by the external system do not reflect these
    orders, so the on-hand quantity is reduced by them.
    """
    from ..order import ImportState
    from ..order.models import LineItem

    since = timezone.now() - timedelta(hours=settings.ORDERSYNC_UNSYNCED_WINDOW_HOURS)
    lines = LineItem.objects.filter(
        order__completed_at__gt=since, order__import_state=ImportState.YES
    )
    if variant_ids is not None:
        lines = lines.filter(variant_id__in=variant_ids)
    rows = lines.values("variant_id").annotate(total=Sum("quantity"))
    return {row["variant_id"]: row["total"] for row in rows}


def apply_stock(
    variant: Variant,
    quantities: dict,
    detailed: dict | None = None,
    unsynced: dict[int, int] | None = None,
) -> bool:
    """Set the on-hand quantity of `variant` at every named location.

    Locations currently holding stock that `quantities` does not mention are
    zeroed. Returns True when at least one movement or flag change was made.
    """
    if unsynced is None:
        unsynced = get_unsynced_quantities([variant.pk])
    pending_demand = unsynced.get(variant.pk, 0)
    backorder = (detailed or {}).get("backorder") or {}
    changed = False

    current = {
        stock.location_id: stock
        for stock in Stock.objects.select_for_update().filter(variant=variant)
    }

    for name, quantity in quantities.items():
        name = str(name)
        location = get_or_create_location(name)
        stock = current.pop(location.pk, None)
        if stock is None:
            stock, _ = find_or_create_locked(
                Stock.objects.all(), location=location, variant=variant
            )

        target = int(quantity)
        if pending_demand:
            reserved = min(pending_demand, max(target, 0))
            target -= reserved
            pending_demand -= reserved

        if target != stock.quantity:
            _move(stock, target - stock.quantity, StockMovementOriginator.INVENTORY_PUSH)
            changed = True

        backorderable = bool(backorder.get(name))
        if backorderable != stock.backorderable:
            stock.backorderable = backorderable
            stock.save(update_fields=["backorderable"])
            changed = True

    for stock in current.values():
        if stock.quantity != 0:
            _move(stock, -stock.quantity, StockMovementOriginator.INVENTORY_PUSH)
            changed = True

    return changed


@transaction.atomic
def apply_inventory(records, diagnostics) -> int:
    """Apply a batch of `{sku, stock, stock_detailed}` inventory records.

    SKUs that do not exist yet are skipped without complaint: catalog and
    inventory pushes race, and the catalog push carries inventory as well.
    Returns the number of variants whose stock changed.
    """
    records = list(records)
    variants = Variant.objects.by_sku(record.get("sku") for record in records)
    unsynced = get_unsynced_quantities([v.pk for v in variants.values()])
    updated = 0
    for record in records:
        corr_id = record.get("corr_id", record.get("sku"))
        stock = record.get("stock")
        if not isinstance(stock, dict):
            diagnostics.add_error(corr_id, "stock must be a mapping of location to quantity")
            continue
        variant = variants.get(str(record.get("sku")))
        if variant is None:
            continue
        if apply_stock(variant, stock, record.get("stock_detailed"), unsynced):
            updated += 1
    logger.info("Inventory push updated %d of %d variants", updated, len(records))
    return updated
