import logging

from ..product.models import Variant
from ..shipping.advisory import AdvisoryMethodResolver
from ..warehouse.management import get_default_location, get_location_for_variant
from . import InventoryUnitState, ShipmentState
from .models import InventoryUnit, LineItem, Order, Shipment

logger = logging.getLogger(__name__)


def destroy_empty_shipments(order: Order) -> int:
    """Delete every shipment of `order` left without inventory units."""
    empty = list(order.shipments.empty())
    for shipment in empty:
        logger.info("Order %s: removing empty shipment %s", order, shipment)
        shipment.delete()
    return len(empty)


def get_shipment_for_variant(
    order: Order, variant: Variant, resolver: AdvisoryMethodResolver
) -> Shipment:
    """Pick the shipment new units of `variant` should join.

    Preference: an open shipment already holding the variant, then an open
    shipment leaving from the variant's stock location, then a new one.
    """
    open_shipments = order.shipments.unshipped().order_by("pk")
    shipment = open_shipments.filter(inventory_units__variant=variant).first()
    if shipment is not None:
        return shipment

    location = get_location_for_variant(variant)
    if location is not None:
        shipment = open_shipments.filter(stock_location=location).first()
        if shipment is not None:
            return shipment

    shipment = Shipment.objects.create(
        order=order,
        stock_location=location or get_default_location(),
        shipping_method=resolver.tbd_method(),
        state=ShipmentState.PENDING,
    )
    logger.info("Order %s: created shipment %s for %s", order, shipment, variant)
    return shipment


def add_units(line: LineItem, shipment: Shipment, quantity: int):
    InventoryUnit.objects.bulk_create(
        [
            InventoryUnit(
                order_id=line.order_id,
                line_item=line,
                variant_id=line.variant_id,
                shipment=shipment,
                state=InventoryUnitState.UNFULFILLED,
            )
            for _ in range(quantity)
        ]
    )


def delete_unfulfilled_units(line: LineItem, quantity: int) -> int:
    """Delete up to `quantity` unfulfilled units of `line`, newest first."""
    if quantity <= 0:
        return 0
    pks = list(line.unfulfilled_units().values_list("pk", flat=True)[:quantity])
    InventoryUnit.objects.filter(pk__in=pks).delete()
    return len(pks)
