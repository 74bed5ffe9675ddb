"""One authoritative shipping figure per order.

Shipments keep their shipping method so the price can still be recomputed
when contents change, but their cost is asserted and closed: nothing that
moves inventory units between shipments may reprice them behind our back.
Whatever part of the figure no shipment carries lives in the order level
"Standard Shipping" adjustment.
"""

import logging
from decimal import Decimal

from django.conf import settings

from ..shipping import calculators
from ..shipping.advisory import AdvisoryMethodResolver
from . import (
    AdjustmentKind,
    AdjustmentState,
    STANDARD_SHIPPING_LABEL,
    ShipmentState,
    ShippingPriceMode,
)
from .adjustments import get_adjustment, remove_adjustment, upsert_adjustment
from .models import Order, Shipment

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class ShipmentPriceReconciler:
    def __init__(self, order: Order, resolver: AdvisoryMethodResolver):
        self.order = order
        self.resolver = resolver

    def _shipments(self):
        return list(
            self.order.shipments.exclude(state=ShipmentState.CANCELED)
            .select_related("shipping_method")
            .order_by("pk")
        )

    def get_target_shipment(self, shipments) -> Shipment | None:
        """The shipment carrying the shipping price, if any does."""
        if settings.ORDERSYNC_EXPRESS_SHIPPING_PRICE == ShippingPriceMode.ADJUSTMENT:
            return None
        for shipment in shipments:
            if not shipment.is_terminal:
                return shipment
        return shipments[0] if shipments else None

    def current_price(self) -> Decimal:
        """Shipping figure currently carried by shipments and the order."""
        total = ZERO
        for shipment in self._shipments():
            total += shipment.cost + shipment.adjustment_total()
        standard = get_adjustment(self.order, STANDARD_SHIPPING_LABEL)
        if standard is not None:
            total += standard.amount
        return total

    def separate_shipment_costs(self) -> bool:
        """Collect every carrier cost into the single order shipping figure."""
        if self.order.is_canceled():
            return False
        return self.apply_shipment_price(self.current_price())

    def apply_shipment_price(
        self, price: Decimal, order_level_portion: Decimal | None = None
    ) -> bool:
        """Assert `price` as the order's shipping figure.

        The target shipment carries `price` minus `order_level_portion`, every
        other shipment is zeroed; the rest goes to the "Standard Shipping"
        adjustment. Returns whether anything was written.
        """
        if self.order.is_canceled():
            return False
        changed = False
        order_level = order_level_portion or ZERO
        shipment_portion = price - order_level

        shipments = self._shipments()
        target = self.get_target_shipment(shipments)
        if target is None:
            order_level += shipment_portion

        for shipment in shipments:
            ship_price = shipment_portion if shipment == target else ZERO
            update_fields = []
            if shipment.shipping_method is None:
                shipment.shipping_method = self.resolver.tbd_method()
                update_fields.append("shipping_method")
            if shipment.adjustments.exists():
                shipment.adjustments.all().delete()
                changed = True
            if shipment.cost != ship_price:
                shipment.cost = ship_price
                update_fields.append("cost")
            if shipment.cost_state != AdjustmentState.CLOSED:
                shipment.cost_state = AdjustmentState.CLOSED
                update_fields.append("cost_state")
            if update_fields:
                shipment.save(update_fields=update_fields)
                changed = True

        if order_level:
            _, adjusted = upsert_adjustment(
                self.order,
                STANDARD_SHIPPING_LABEL,
                order_level,
                kind=AdjustmentKind.SHIPPING,
                close=True,
            )
            changed = changed or adjusted
        elif remove_adjustment(self.order, STANDARD_SHIPPING_LABEL):
            changed = True

        if changed:
            logger.info("Order %s: shipping price set to %s", self.order, price)
        return changed

    def calculate_ship_price(self) -> Decimal | None:
        """Price the current contents with the order's real shipping method.

        Returns None when no shipment uses a priced method.
        """
        shipments = self._shipments()
        method = next(
            (
                shipment.shipping_method
                for shipment in shipments
                if shipment.shipping_method is not None
                and calculators.is_available(shipment.shipping_method)
            ),
            None,
        )
        if method is None:
            return None
        quantity = sum(shipment.inventory_units.count() for shipment in shipments)
        return calculators.compute(method, quantity)
