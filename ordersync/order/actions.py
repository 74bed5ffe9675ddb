"""Entry points called by the external order system.

Every entry point locks the order row inside one transaction; any exception
rolls back everything the call did. Payment settlement runs after that
transaction commits so gateway latency never holds the order lock.
"""

import logging
from decimal import Decimal

import attrs
from django.db import transaction
from django.utils import timezone

from ..core.diagnostics import Diagnostics
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..core.extensions import apply_extensions
from ..core.options import SyncOptions
from ..core.payloads import parse_mapping, parse_record, parse_records
from ..core.prices import to_decimal
from ..payment.settlement import release_payments, settle_payments
from ..shipping.advisory import AdvisoryMethodResolver
from . import (
    DISCOUNT_SET_EXTERNALLY_LABEL,
    TAX_SET_EXTERNALLY_LABEL,
    AdjustmentKind,
    ImportState,
    OrderStatus,
    ShipmentState,
)
from .adjustments import (
    remove_adjustment,
    reopen_tax_adjustments,
    sum_adjustments,
    upsert_adjustment,
)
from .dump import dump_order
from .line_items import LineItemRecord, sync_line_items
from .models import Order
from .packages import PackageRecord, add_package
from .refunds import RefundItem, assert_refund_adjustments
from .returns import ReturnRecord, RmaRecord, assert_return, sync_rma
from .shipping_price import ShipmentPriceReconciler

logger = logging.getLogger(__name__)


@attrs.frozen
class OrderAmounts:
    shipping_amt: Decimal | None = None
    tax_amt: Decimal | None = None
    discount_amt: Decimal | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "OrderAmounts":
        return cls(
            shipping_amt=to_decimal(data.get("shipping_amt")),
            tax_amt=to_decimal(data.get("tax_amt")),
            discount_amt=to_decimal(data.get("discount_amt")),
        )


def get_options(options) -> SyncOptions:
    if isinstance(options, SyncOptions):
        return options
    return SyncOptions.from_payload(options)


def get_order_for_update(number) -> Order:
    try:
        return Order.objects.select_for_update().get(number=str(number))
    except Order.DoesNotExist:
        raise SyncError(
            f"Order {number} does not exist.", SyncErrorCode.ORDER_NOT_FOUND
        ) from None


def assert_discrepancy(order, label, amount, kind) -> bool:
    """Make the adjustments of `kind` add up to `amount`.

    The labeled adjustment absorbs the difference left by the others.
    """
    difference = amount - sum_adjustments(order, kind, exclude_label=label)
    if not difference:
        return remove_adjustment(order, label)
    _, changed = upsert_adjustment(order, label, difference, kind=kind, close=True)
    return changed


def synchronize(
    order_number,
    line_items,
    rmas=(),
    amounts=None,
    options=None,
    ext=None,
) -> dict:
    """Converge an order on the external system's view of it.

    `amounts` may assert `shipping_amt`, `tax_amt` and `discount_amt`.
    Returns whether anything changed, the order snapshot and one correlation
    entry per processed line.
    """
    options = get_options(options)
    amounts = parse_record(OrderAmounts, amounts, "amounts")
    ext = parse_mapping(ext, "ext")
    diagnostics = Diagnostics()

    with transaction.atomic():
        order = get_order_for_update(order_number)
        logger.info("Synchronizing order %s", order)
        if order.is_canceled():
            diagnostics.add_warning(order.number, "order is canceled, not synchronized")
            return {
                "changed": False,
                "dump": dump_order(order),
                "result": [],
                "diagnostics": diagnostics.as_list(),
            }

        resolver = AdvisoryMethodResolver(options)
        pricing = ShipmentPriceReconciler(order, resolver)

        changed = pricing.separate_shipment_costs()
        current_price = pricing.current_price()

        lines = sync_line_items(
            order,
            parse_records(LineItemRecord, line_items, "line_items"),
            resolver,
            diagnostics,
        )
        changed = lines.changed or changed

        for rma in parse_records(RmaRecord, rmas, "rmas"):
            if sync_rma(order, rma, diagnostics):
                changed = True

        if apply_extensions(order, ext, diagnostics, order.number):
            order.save()
            changed = True

        shipping_amt = amounts.shipping_amt
        if options.ro_authoritative_ship and shipping_amt is not None:
            ship_changed = pricing.apply_shipment_price(shipping_amt)
        else:
            price = pricing.calculate_ship_price()
            if price is None:
                # Lines removed above may have taken their shipment along.
                price = current_price
            ship_changed = pricing.apply_shipment_price(price)
        changed = ship_changed or changed

        tax_amt = amounts.tax_amt
        if tax_amt is not None:
            if assert_discrepancy(
                order, TAX_SET_EXTERNALLY_LABEL, tax_amt, AdjustmentKind.TAX
            ):
                changed = True
        elif ship_changed:
            reopen_tax_adjustments(order)

        discount_amt = amounts.discount_amt
        if discount_amt is not None:
            if assert_discrepancy(
                order,
                DISCOUNT_SET_EXTERNALLY_LABEL,
                -discount_amt,
                AdjustmentKind.PROMOTION,
            ):
                changed = True

        if changed:
            order.update_totals()

        return {
            "changed": changed,
            "dump": dump_order(order),
            "result": lines.results,
            "diagnostics": diagnostics.as_list(),
        }


def add_packages(order_number, packages, options=None) -> dict:
    options = get_options(options)
    diagnostics = Diagnostics()
    with transaction.atomic():
        order = get_order_for_update(order_number)
        resolver = AdvisoryMethodResolver(options)
        pricing = ShipmentPriceReconciler(order, resolver)
        pricing.separate_shipment_costs()
        price = pricing.current_price()
        for package in parse_records(PackageRecord, packages, "packages"):
            add_package(order, package, resolver, options, diagnostics)
        pricing.apply_shipment_price(price)
        order.update_totals()
    return {"diagnostics": diagnostics.as_list()}


def mark_complete(order_number, refund_items=(), options=None) -> dict:
    options = get_options(options)
    with transaction.atomic():
        order = get_order_for_update(order_number)
        resolver = AdvisoryMethodResolver(options)
        pricing = ShipmentPriceReconciler(order, resolver)
        pricing.separate_shipment_costs()
        price = pricing.current_price()
        assert_refund_adjustments(
            order, parse_records(RefundItem, refund_items, "refund_items")
        )
        pricing.apply_shipment_price(price)
        order.update_totals()
    logger.info("Order %s marked complete", order)
    return settle_payments(order, options).as_dict()


def add_refund(order_number, payload, options=None) -> dict:
    options = get_options(options)
    with transaction.atomic():
        order = get_order_for_update(order_number)
        (record,) = parse_records(ReturnRecord, [payload], "return")
        assert_return(order, record, Diagnostics())
        order.update_totals()
    return settle_payments(order, options).as_dict()


def cancel(order_number, options=None) -> dict:
    options = get_options(options)
    with transaction.atomic():
        order = get_order_for_update(order_number)
        if not order.is_canceled():
            order.status = OrderStatus.CANCELED
            order.canceled_at = timezone.now()
            order.save(update_fields=["status", "canceled_at", "updated_at"])
            order.shipments.unshipped().update(state=ShipmentState.CANCELED)
            order.update_totals()
            logger.info("Order %s canceled", order)
    released = release_payments(order, options)
    return settle_payments(order, options, released).as_dict()


def importable_orders(
    limit=50, completed_from=None, completed_to=None, include_all=False
) -> list[dict]:
    orders = Order.objects.all() if include_all else Order.objects.importable()
    if completed_from is not None:
        orders = orders.filter(completed_at__gte=completed_from)
    if completed_to is not None:
        orders = orders.filter(completed_at__lte=completed_to)
    return [dump_order(order) for order in orders.order_by("pk")[:limit]]


@transaction.atomic
def mark_exported(ids) -> dict:
    """Flag orders as exported; they are never offered for import again."""
    if not isinstance(ids, (list, tuple)) or not all(
        isinstance(pk, int) and not isinstance(pk, bool) for pk in ids
    ):
        raise SyncError("ids must be a list of numbers", SyncErrorCode.INVALID)

    orders = Order.objects.select_for_update().filter(
        pk__in=ids, import_state__in=[ImportState.YES, ImportState.DONE]
    )
    missing = sorted(set(ids) - set(orders.values_list("pk", flat=True)))
    if missing:
        raise SyncError(
            "order IDs could not be matched or marked nonimportable: "
            + ", ".join(str(pk) for pk in missing),
            SyncErrorCode.NOT_IMPORTABLE,
        )
    updated = Order.objects.filter(pk__in=ids, import_state=ImportState.YES).update(
        import_state=ImportState.DONE
    )
    logger.info("Marked %d orders exported", updated)
    return {}


def set_importable(order_number, value) -> dict:
    value = str(value)
    if value not in dict(ImportState.CHOICES):
        raise SyncError(f"{value!r} is not an import state", SyncErrorCode.INVALID)
    with transaction.atomic():
        order = get_order_for_update(order_number)
        if order.import_state != ImportState.DONE and order.import_state != value:
            order.import_state = value
            order.save(update_fields=["import_state", "updated_at"])
    return {}
