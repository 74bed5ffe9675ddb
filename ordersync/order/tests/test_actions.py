import datetime
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from .. import (
    DISCOUNT_SET_EXTERNALLY_LABEL,
    STANDARD_SHIPPING_LABEL,
    TAX_SET_EXTERNALLY_LABEL,
    AdjustmentKind,
    AdjustmentState,
    ImportState,
    OrderStatus,
    ShipmentState,
)
from .. import actions
from ..adjustments import get_adjustment
from ..models import Adjustment, Order
from ...core.error_codes import SyncErrorCode
from ...core.exceptions import SyncError
from ...payment import PaymentState


def test_synchronize_updates_line_items(order_with_lines):
    # when
    response = actions.synchronize(
        "R100", [{"sku": "X", "quantity": 3, "unit_price": "12.00", "corr": "c1"}]
    )

    # then
    assert response["changed"] is True
    line = order_with_lines.line_items.get()
    assert response["result"] == [{"corr": "c1", "refnum": line.pk, "quantity": 3}]
    assert line.quantity == 3
    assert line.unit_price_amount == Decimal("12.00")
    order_with_lines.refresh_from_db()
    assert order_with_lines.item_total == Decimal("36.00")
    assert order_with_lines.total == Decimal("41.00")
    assert Decimal(response["dump"]["total"]) == Decimal("41.00")


def test_synchronize_twice_reports_no_change(order_with_lines):
    # given
    payload = [{"sku": "X", "quantity": 3, "unit_price": "12.00"}]
    actions.synchronize("R100", payload)

    # when
    response = actions.synchronize("R100", payload)

    # then
    assert response["changed"] is False
    assert response["diagnostics"] == []


def test_synchronize_locks_shipping_price(order_with_lines):
    # when
    actions.synchronize("R100", [{"sku": "X", "quantity": 2}])

    # then
    shipment = order_with_lines.shipments.get()
    assert shipment.cost == Decimal("5.00")
    assert shipment.cost_state == AdjustmentState.CLOSED


def test_synchronize_with_authoritative_shipping(order_with_lines):
    # when
    actions.synchronize(
        "R100",
        [{"sku": "X", "quantity": 2}],
        amounts={"shipping_amt": "9.50"},
        options={"ro_authoritative_ship": True},
    )

    # then
    order_with_lines.refresh_from_db()
    assert order_with_lines.shipments.get().cost == Decimal("9.50")
    assert order_with_lines.shipment_total == Decimal("9.50")
    assert get_adjustment(order_with_lines, STANDARD_SHIPPING_LABEL) is None


def test_synchronize_keeps_shipping_price_when_shipment_disappears(
    order_with_lines, other_variant
):
    # when
    actions.synchronize("R100", [{"sku": "Y", "quantity": 1}])

    # then
    shipment = order_with_lines.shipments.get()
    assert shipment.shipping_method.name == "Unshipped"
    assert shipment.cost == Decimal("5.00")
    order_with_lines.refresh_from_db()
    assert order_with_lines.total == Decimal("12.50")


def test_synchronize_ignores_shipping_amount_when_not_authoritative(order_with_lines):
    actions.synchronize(
        "R100", [{"sku": "X", "quantity": 2}], amounts={"shipping_amt": "9.50"}
    )

    assert order_with_lines.shipments.get().cost == Decimal("5.00")


def test_synchronize_asserts_tax_and_discount(order_with_lines):
    # given
    Adjustment.objects.create(
        order=order_with_lines, label="State tax", amount=Decimal("1.50"), kind=AdjustmentKind.TAX
    )

    # when
    response = actions.synchronize(
        "R100",
        [{"sku": "X", "quantity": 2}],
        amounts={"tax_amt": "2.00", "discount_amt": "3.00"},
    )

    # then
    assert response["changed"] is True
    tax = get_adjustment(order_with_lines, TAX_SET_EXTERNALLY_LABEL)
    assert tax.amount == Decimal("0.50")
    assert tax.is_closed
    discount = get_adjustment(order_with_lines, DISCOUNT_SET_EXTERNALLY_LABEL)
    assert discount.amount == Decimal("-3.00")
    assert discount.kind == AdjustmentKind.PROMOTION
    order_with_lines.refresh_from_db()
    assert order_with_lines.additional_tax_total == Decimal("2.00")
    assert order_with_lines.total == Decimal("24.00")


def test_synchronize_drops_tax_adjustment_without_difference(order_with_lines):
    # given
    actions.synchronize("R100", [{"sku": "X", "quantity": 2}], amounts={"tax_amt": "2.00"})

    # when
    actions.synchronize("R100", [{"sku": "X", "quantity": 2}], amounts={"tax_amt": "0"})

    # then
    assert get_adjustment(order_with_lines, TAX_SET_EXTERNALLY_LABEL) is None


def test_synchronize_applies_order_extensions(order_with_lines):
    # when
    response = actions.synchronize(
        "R100",
        [{"sku": "X", "quantity": 2}],
        ext={"customer_note": "Leave at the door", "meta_channel": "web", "x": 1},
    )

    # then
    order_with_lines.refresh_from_db()
    assert order_with_lines.customer_note == "Leave at the door"
    assert order_with_lines.metadata == {"channel": "web"}
    [warning] = response["diagnostics"]
    assert warning["corr_id"] == "R100"


def test_synchronize_syncs_rmas(shipped_order):
    response = actions.synchronize(
        "R100",
        [{"sku": "X", "quantity": 5}],
        rmas=[{"id": 4, "items": [{"sku": "X", "quantity": 2}]}],
    )

    assert response["changed"] is True
    [rma] = response["dump"]["return_authorizations"]
    assert rma["number"] == "RMA-RO-4"


def test_synchronize_canceled_order_is_noop(order_with_lines):
    # given
    order_with_lines.status = OrderStatus.CANCELED
    order_with_lines.save()

    # when
    response = actions.synchronize("R100", [{"sku": "X", "quantity": 7}])

    # then
    assert response["changed"] is False
    assert response["result"] == []
    assert order_with_lines.line_items.get().quantity == 2
    assert response["diagnostics"][0]["failed"] is False


def test_synchronize_unknown_order(db):
    with pytest.raises(SyncError) as excinfo:
        actions.synchronize("NOPE", [])

    assert excinfo.value.code == SyncErrorCode.ORDER_NOT_FOUND


@pytest.mark.django_db(transaction=True)
def test_synchronize_rolls_back_on_invalid_payload(order_with_lines):
    # when
    with pytest.raises(SyncError) as excinfo:
        actions.synchronize(
            "R100", [{"sku": "X", "quantity": 3}], rmas=[{"items": []}]
        )

    # then
    assert excinfo.value.code == SyncErrorCode.INVALID
    assert "rmas[0]" in excinfo.value.message
    shipment = order_with_lines.shipments.get()
    assert shipment.cost_state == AdjustmentState.OPEN


def test_synchronize_rejects_negative_quantity(order_with_lines):
    # when
    with pytest.raises(SyncError) as excinfo:
        actions.synchronize("R100", [{"sku": "X", "quantity": -1}])

    # then
    assert excinfo.value.code == SyncErrorCode.INVALID
    assert "line_items[0]" in excinfo.value.message
    assert order_with_lines.line_items.get().quantity == 2


@pytest.mark.parametrize(
    ("amounts", "ext", "field"),
    [
        ({"tax_amt": "abc"}, None, "amounts"),
        (["tax_amt"], None, "amounts"),
        (None, "gift", "ext"),
    ],
)
def test_synchronize_rejects_malformed_amounts_and_ext(
    order_with_lines, amounts, ext, field
):
    # when
    with pytest.raises(SyncError) as excinfo:
        actions.synchronize(
            "R100", [{"sku": "X", "quantity": 2}], amounts=amounts, ext=ext
        )

    # then
    assert excinfo.value.code == SyncErrorCode.INVALID
    assert excinfo.value.message.startswith(field)


def test_add_packages(order_with_lines, line_item):
    # when
    response = actions.add_packages(
        "R100",
        [
            {
                "id": 101,
                "from": "WH1",
                "shipcode": "Ground",
                "contents": [{"id": line_item.pk, "quantity": 2}],
            }
        ],
    )

    # then
    assert response == {"diagnostics": []}
    shipment = order_with_lines.shipments.get()
    assert shipment.number == "P101"
    assert shipment.state == ShipmentState.SHIPPED
    assert shipment.cost == Decimal("5.00")
    order_with_lines.refresh_from_db()
    assert order_with_lines.shipment_total == Decimal("5.00")
    assert order_with_lines.total == Decimal("25.00")


def test_mark_complete_with_refund(order_with_lines, line_item):
    # when
    response = actions.mark_complete(
        "R100",
        [{"label": "Short ship", "amount": "10.00", "id": line_item.pk, "quantity": 1}],
    )

    # then
    assert response == {"errors": [], "status": []}
    line_item.refresh_from_db()
    assert line_item.quantity_canceled == 1
    order_with_lines.refresh_from_db()
    assert order_with_lines.total == Decimal("15.00")


def test_mark_complete_captures_payments(order_with_lines, payment_factory):
    # given
    payment = payment_factory(order_with_lines, "25.00")

    # when
    response = actions.mark_complete("R100", options={"ok_capture": True})

    # then
    payment.refresh_from_db()
    assert payment.state == PaymentState.COMPLETED
    assert response["status"] == [
        {
            "id": payment.pk,
            "state": PaymentState.COMPLETED,
            "amount": Decimal("25.00"),
            "credit": Decimal("0.00"),
        }
    ]


def test_add_refund(shipped_order):
    # given
    line = shipped_order.line_items.get()

    # when
    response = actions.add_refund(
        "R100",
        {
            "return_id": 5,
            "return_items": [{"channel_refnum": line.pk, "quantity": 1}],
            "refund_amt": "10.00",
        },
    )

    # then
    assert response["errors"] == []
    shipped_order.refresh_from_db()
    assert shipped_order.adjustment_total == Decimal("-10.00")


def test_add_refund_requires_shipped_order(order_with_lines, line_item):
    with pytest.raises(SyncError) as excinfo:
        actions.add_refund(
            "R100",
            {
                "return_id": 5,
                "return_items": [{"channel_refnum": line_item.pk, "quantity": 1}],
            },
        )

    assert excinfo.value.code == SyncErrorCode.NOT_SHIPPED


@freeze_time("2024-06-01 12:00:00")
def test_cancel(order_with_lines, payment_factory):
    # given
    payment = payment_factory(order_with_lines, "25.00")

    # when
    response = actions.cancel("R100", options={"ok_void": True})

    # then
    order_with_lines.refresh_from_db()
    assert order_with_lines.status == OrderStatus.CANCELED
    assert order_with_lines.canceled_at == timezone.now()
    assert order_with_lines.shipments.get().state == ShipmentState.CANCELED
    payment.refresh_from_db()
    assert payment.state == PaymentState.VOIDED
    assert response == {
        "errors": [],
        "status": [
            {
                "id": payment.pk,
                "state": PaymentState.VOIDED,
                "amount": Decimal("25.00"),
                "credit": Decimal("0.00"),
            }
        ],
    }


def test_cancel_credits_completed_payments(order_with_lines, payment_factory):
    # given
    pending = payment_factory(order_with_lines, "5.00")
    completed = payment_factory(
        order_with_lines, "25.00", state=PaymentState.COMPLETED
    )

    # when
    response = actions.cancel("R100", options={"ok_void": True, "ok_refund": True})

    # then
    assert response["errors"] == []
    pending.refresh_from_db()
    assert pending.state == PaymentState.VOIDED
    completed.refresh_from_db()
    assert completed.credit_allowed == Decimal("0.00")
    assert response["status"][1]["credit"] == Decimal("25.00")


def test_cancel_without_payment_options_keeps_payments(
    order_with_lines, payment_factory
):
    # given
    payment = payment_factory(order_with_lines, "25.00", state=PaymentState.COMPLETED)

    # when
    actions.cancel("R100")

    # then
    payment.refresh_from_db()
    assert payment.credit_allowed == Decimal("25.00")


def test_importable_orders(order_with_lines):
    # given
    Order.objects.create(number="R101", import_state=ImportState.NO)

    # when
    dumps = actions.importable_orders()
    everything = actions.importable_orders(include_all=True)

    # then
    assert [dump["number"] for dump in dumps] == ["R100"]
    assert [dump["number"] for dump in everything] == ["R100", "R101"]
    assert dumps[0]["line_items"][0]["sku"] == "X"


def test_importable_orders_completed_window(order):
    # given
    with freeze_time("2024-01-10"):
        old = Order.objects.create(number="R090")

    # when
    dumps = actions.importable_orders(
        completed_to=timezone.now() - datetime.timedelta(days=1)
    )

    # then
    assert [dump["id"] for dump in dumps] == [old.pk]


def test_importable_orders_limit(order):
    Order.objects.create(number="R101")

    assert len(actions.importable_orders(limit=1)) == 1


def test_mark_exported(order):
    # when
    actions.mark_exported([order.pk])
    actions.mark_exported([order.pk])

    # then
    order.refresh_from_db()
    assert order.import_state == ImportState.DONE
    assert not actions.importable_orders()


def test_mark_exported_with_non_importable_order(order):
    # given
    hidden = Order.objects.create(number="R101", import_state=ImportState.NO)

    # when
    with pytest.raises(SyncError) as excinfo:
        actions.mark_exported([order.pk, hidden.pk, 999999])

    # then
    assert excinfo.value.code == SyncErrorCode.NOT_IMPORTABLE
    assert str(hidden.pk) in excinfo.value.message
    assert "999999" in excinfo.value.message
    order.refresh_from_db()
    assert order.import_state == ImportState.YES


@pytest.mark.parametrize("ids", ["1,2", [1, "2"], [True]])
def test_mark_exported_rejects_invalid_ids(db, ids):
    with pytest.raises(SyncError) as excinfo:
        actions.mark_exported(ids)

    assert excinfo.value.code == SyncErrorCode.INVALID


def test_set_importable(order):
    # when
    actions.set_importable("R100", ImportState.NO)

    # then
    order.refresh_from_db()
    assert order.import_state == ImportState.NO
    assert not actions.importable_orders()


def test_set_importable_after_export_is_ignored(order):
    actions.mark_exported([order.pk])

    actions.set_importable("R100", ImportState.YES)

    order.refresh_from_db()
    assert order.import_state == ImportState.DONE


def test_set_importable_rejects_unknown_state(order):
    with pytest.raises(SyncError) as excinfo:
        actions.set_importable("R100", "maybe")

    assert excinfo.value.code == SyncErrorCode.INVALID
