from decimal import Decimal

import pytest

from .. import InventoryUnitState, ShipmentState
from ..line_items import LineItemRecord, sync_line_items
from ..models import LineItem, Shipment
from ...warehouse.models import Stock


def records(*items):
    return [LineItemRecord.from_payload(item) for item in items]


def assert_quantity_conserved(order):
    for line in order.line_items.all():
        assert line.inventory_units.count() + line.quantity_canceled == line.quantity


def test_sync_increases_quantity_and_price(order_with_lines, resolver, diagnostics):
    # given
    line = order_with_lines.line_items.get()
    shipment = order_with_lines.shipments.get()

    # when
    result = sync_line_items(
        order_with_lines,
        records({"sku": "X", "quantity": 3, "unit_price": "12.00", "corr": "c1"}),
        resolver,
        diagnostics,
    )

    # then
    assert result.changed is True
    assert result.results == [{"corr": "c1", "refnum": line.pk, "quantity": 3}]
    line.refresh_from_db()
    assert line.quantity == 3
    assert line.unit_price_amount == Decimal("12.00")
    assert shipment.inventory_units.count() == 3
    assert_quantity_conserved(order_with_lines)


def test_sync_with_same_input_reports_no_change(order_with_lines, resolver, diagnostics):
    payload = records({"sku": "X", "quantity": 2, "unit_price": "10.00"})

    result = sync_line_items(order_with_lines, payload, resolver, diagnostics)

    assert result.changed is False
    assert result.results[0]["quantity"] == 2


def test_sync_decreases_quantity(order_with_lines, resolver, diagnostics):
    # when
    result = sync_line_items(
        order_with_lines, records({"sku": "X", "quantity": 1}), resolver, diagnostics
    )

    # then
    assert result.changed is True
    line = order_with_lines.line_items.get()
    assert line.quantity == 1
    assert line.inventory_units.count() == 1
    assert_quantity_conserved(order_with_lines)


def test_sync_decrease_consumes_canceled_quantity(
    order_with_lines, resolver, diagnostics
):
    # given
    line = order_with_lines.line_items.get()
    shipped_unit, canceled_unit = line.inventory_units.order_by("pk")
    shipped_unit.state = InventoryUnitState.SHIPPED
    shipped_unit.save()
    canceled_unit.delete()
    line.quantity_canceled = 1
    line.save()

    # when
    result = sync_line_items(
        order_with_lines, records({"sku": "X", "quantity": 1}), resolver, diagnostics
    )

    # then
    assert result.changed is True
    line.refresh_from_db()
    assert line.quantity == 1
    assert line.quantity_canceled == 0
    assert list(line.inventory_units.all()) == [shipped_unit]
    assert len(diagnostics) == 0
    assert_quantity_conserved(order_with_lines)


def test_sync_cannot_drop_shipped_units(shipped_order, resolver, diagnostics):
    # when
    result = sync_line_items(
        shipped_order, records({"sku": "X", "quantity": 3, "corr": "c1"}), resolver, diagnostics
    )

    # then
    assert result.changed is False
    assert result.results[0]["quantity"] == 5
    [warning] = diagnostics.as_list()
    assert warning["corr_id"] == "c1"
    assert warning["failed"] is False
    assert_quantity_conserved(shipped_order)


def test_removed_line_is_deleted_with_its_shipment(
    order_with_lines, resolver, diagnostics
):
    # given
    line = order_with_lines.line_items.get()

    # when
    result = sync_line_items(
        order_with_lines,
        records({"sku": "X", "quantity": 2, "removed": True, "corr": "c1"}),
        resolver,
        diagnostics,
    )

    # then
    assert result.changed is True
    assert result.results == [{"corr": "c1", "refnum": line.pk, "quantity": 0}]
    assert not order_with_lines.line_items.exists()
    assert not order_with_lines.shipments.exists()


def test_zero_quantity_removes_line(order_with_lines, resolver, diagnostics):
    sync_line_items(
        order_with_lines, records({"sku": "X", "quantity": 0}), resolver, diagnostics
    )

    assert not order_with_lines.line_items.exists()


def test_unmentioned_lines_are_removed(
    order_with_lines, other_variant, resolver, diagnostics
):
    # when
    result = sync_line_items(
        order_with_lines, records({"sku": "Y", "quantity": 1}), resolver, diagnostics
    )

    # then
    assert result.changed is True
    assert list(order_with_lines.line_items.values_list("variant__sku", flat=True)) == [
        "Y"
    ]


def test_unknown_sku_is_skipped_silently(order_with_lines, resolver, diagnostics):
    # when
    result = sync_line_items(
        order_with_lines,
        records(
            {"sku": "X", "quantity": 2},
            {"sku": "NOT-YET-CREATED", "quantity": 4, "corr": "c2"},
        ),
        resolver,
        diagnostics,
    )

    # then
    assert result.changed is False
    assert [entry["corr"] for entry in result.results] == [None]
    assert len(diagnostics) == 0


def test_duplicate_sku_is_reported(order_with_lines, resolver, diagnostics):
    # when
    result = sync_line_items(
        order_with_lines,
        records(
            {"sku": "X", "quantity": 2, "corr": "c1"},
            {"sku": "X", "quantity": 9, "corr": "c2"},
        ),
        resolver,
        diagnostics,
    )

    # then
    assert order_with_lines.line_items.get().quantity == 2
    assert diagnostics.failed("c2")
    assert not diagnostics.failed("c1")
    assert [entry["corr"] for entry in result.results] == ["c1"]


def test_new_line_joins_shipment_at_variant_location(
    order_with_lines, other_variant, stock_location, resolver, diagnostics
):
    # given
    Stock.objects.create(location=stock_location, variant=other_variant, quantity=3)
    shipment = order_with_lines.shipments.get()

    # when
    sync_line_items(
        order_with_lines,
        records(
            {"sku": "X", "quantity": 2},
            {"sku": "Y", "quantity": 2, "unit_price": "8.00"},
        ),
        resolver,
        diagnostics,
    )

    # then
    line = order_with_lines.line_items.get(variant=other_variant)
    assert line.unit_price_amount == Decimal("8.00")
    assert shipment.inventory_units.filter(variant=other_variant).count() == 2
    assert order_with_lines.shipments.count() == 1
    assert_quantity_conserved(order_with_lines)


def test_new_line_without_stock_gets_new_shipment(
    order_with_lines, other_variant, resolver, diagnostics
):
    # when
    sync_line_items(
        order_with_lines,
        records({"sku": "X", "quantity": 2}, {"sku": "Y", "quantity": 1}),
        resolver,
        diagnostics,
    )

    # then
    line = order_with_lines.line_items.get(variant=other_variant)
    assert line.unit_price_amount == other_variant.price_amount
    shipment = Shipment.objects.get(inventory_units__line_item=line)
    assert shipment.number.startswith("H")
    assert len(shipment.number) == 12
    assert shipment.shipping_method.name == "Unshipped"
    assert shipment.state == ShipmentState.PENDING


def test_increase_skips_shipped_shipments(shipped_order, resolver, diagnostics):
    # when
    sync_line_items(
        shipped_order, records({"sku": "X", "quantity": 6}), resolver, diagnostics
    )

    # then
    line = shipped_order.line_items.get()
    new_unit = line.inventory_units.get(state=InventoryUnitState.UNFULFILLED)
    assert new_unit.shipment.state == ShipmentState.PENDING
    assert_quantity_conserved(shipped_order)


def test_line_fields_and_extensions(order_with_lines, resolver, diagnostics):
    # when
    result = sync_line_items(
        order_with_lines,
        records(
            {
                "sku": "X",
                "quantity": 2,
                "corr": "c1",
                "estimated_unit_cost": "4.25",
                "estimated_ship_date": "2024-05-01",
                "ext": {"gift_message": "Happy birthday", "engraving": "AB"},
            }
        ),
        resolver,
        diagnostics,
    )

    # then
    assert result.changed is True
    line = LineItem.objects.get()
    assert line.cost_price_amount == Decimal("4.25")
    assert str(line.estimated_ship_date) == "2024-05-01"
    assert line.gift_message == "Happy birthday"
    [warning] = diagnostics.as_list()
    assert "engraving" in warning["message"]


def test_record_rejects_invalid_date():
    with pytest.raises(ValueError):
        LineItemRecord.from_payload({"sku": "X", "quantity": 1, "estimated_ship_date": "soon"})


def test_record_rejects_negative_quantity():
    with pytest.raises(ValueError):
        LineItemRecord.from_payload({"sku": "X", "quantity": -1})


def test_second_local_line_of_same_variant_is_removed(
    order_with_lines, variant, line_factory, resolver, diagnostics
):
    # given
    shipment = order_with_lines.shipments.get()
    first = order_with_lines.line_items.get()
    line_factory(order_with_lines, variant, 1, shipment)

    # when
    result = sync_line_items(
        order_with_lines, records({"sku": "X", "quantity": 2}), resolver, diagnostics
    )

    # then
    assert result.changed is True
    assert list(order_with_lines.line_items.values_list("pk", flat=True)) == [
        first.pk
    ]
    assert shipment.inventory_units.count() == 2
    assert_quantity_conserved(order_with_lines)


def test_removing_shipped_line_twice_reports_no_change(
    shipped_order, resolver, diagnostics
):
    # given
    payload = records({"sku": "X", "quantity": 0, "corr": "c1"})

    # when
    sync_line_items(shipped_order, payload, resolver, diagnostics)
    result = sync_line_items(shipped_order, payload, resolver, diagnostics)

    # then
    assert result.changed is False
    assert result.results == [
        {"corr": "c1", "refnum": shipped_order.line_items.get().pk, "quantity": 5}
    ]
