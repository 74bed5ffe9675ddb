from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from ...core.diagnostics import Diagnostics
from ...core.error_codes import SyncErrorCode
from ...core.exceptions import SyncError
from ...order import ImportState
from .. import StockMovementOriginator
from ..management import (
    apply_inventory,
    apply_stock,
    get_default_location,
    get_location_for_variant,
    get_or_create_location,
    get_unsynced_quantities,
    unstock,
)
from ..models import Stock, StockLocation, StockMovement


def test_get_or_create_location_creates_missing_location(db):
    location = get_or_create_location("WH1")

    assert location.name == "WH1"
    assert location.admin_name == "WH1"
    assert get_or_create_location("WH1") == location
    assert StockLocation.objects.count() == 1


def test_get_or_create_location_without_creation(db):
    with pytest.raises(SyncError) as excinfo:
        get_or_create_location("WH1", create=False)

    assert excinfo.value.code == SyncErrorCode.STOCK_LOCATION_NOT_FOUND
    assert not StockLocation.objects.exists()


def test_get_or_create_location_requires_name(db):
    with pytest.raises(SyncError):
        get_or_create_location("  ")


def test_get_default_location_prefers_flagged_location(db):
    StockLocation.objects.create(name="Overflow")
    default = StockLocation.objects.create(name="Main", is_default=True)

    assert get_default_location() == default


def test_get_default_location_is_created_when_missing(db, settings):
    settings.ORDERSYNC_DEFAULT_LOCATION_NAME = "Fallback"

    location = get_default_location()

    assert location.name == "Fallback"


def test_location_for_variant_prefers_stock_on_hand(variant, stock_location):
    # given
    other = StockLocation.objects.create(name="Other")
    Stock.objects.create(location=stock_location, variant=variant, quantity=0)
    Stock.objects.create(location=other, variant=variant, quantity=4)

    # when / then
    assert get_location_for_variant(variant) == other


def test_unstock_records_movement(stock):
    # when
    unstock(stock.location, stock.variant, 3)

    # then
    stock.refresh_from_db()
    assert stock.quantity == 7
    movement = StockMovement.objects.get()
    assert movement.quantity == -3
    assert movement.originator == StockMovementOriginator.SHIPMENT


def test_apply_stock_sets_absolute_quantities(variant, stock):
    # when
    changed = apply_stock(variant, {"Main": 4, "WH2": 6}, unsynced={})

    # then
    assert changed is True
    quantities = dict(
        Stock.objects.filter(variant=variant).values_list("location__name", "quantity")
    )
    assert quantities == {"Main": 4, "WH2": 6}
    assert sorted(StockMovement.objects.values_list("quantity", flat=True)) == [-6, 6]


def test_apply_stock_is_idempotent(variant, stock):
    # given
    apply_stock(variant, {"Main": 4}, unsynced={})
    movements = StockMovement.objects.count()

    # when
    changed = apply_stock(variant, {"Main": 4}, unsynced={})

    # then
    assert changed is False
    assert StockMovement.objects.count() == movements


def test_apply_stock_zeroes_unmentioned_locations(variant, stock):
    apply_stock(variant, {"WH2": 1}, unsynced={})

    stock.refresh_from_db()
    assert stock.quantity == 0


def test_apply_stock_sets_backorder_flag(variant, stock):
    apply_stock(variant, {"Main": 10}, {"backorder": {"Main": True}}, unsynced={})

    stock.refresh_from_db()
    assert stock.backorderable is True
    assert not StockMovement.objects.exists()


def test_apply_stock_subtracts_unsynced_demand(variant, stock):
    apply_stock(variant, {"Main": 10}, unsynced={variant.pk: 3})

    stock.refresh_from_db()
    assert stock.quantity == 7


def test_unsynced_quantities_only_count_recent_importable_orders(
    order_with_lines, variant
):
    # given
    assert order_with_lines.import_state == ImportState.YES

    # when / then
    assert get_unsynced_quantities([variant.pk]) == {variant.pk: 2}

    with freeze_time(timezone.now() + timedelta(hours=13)):
        assert get_unsynced_quantities([variant.pk]) == {}

    order_with_lines.import_state = ImportState.DONE
    order_with_lines.save(update_fields=["import_state"])
    assert get_unsynced_quantities([variant.pk]) == {}


def test_apply_inventory_skips_unknown_skus(variant, stock):
    # given
    diagnostics = Diagnostics()
    records = [
        {"sku": "X", "stock": {"Main": 2}},
        {"sku": "missing", "stock": {"Main": 5}},
        {"sku": "X2", "corr_id": "c3", "stock": 5},
    ]

    # when
    updated = apply_inventory(records, diagnostics)

    # then
    assert updated == 1
    stock.refresh_from_db()
    assert stock.quantity == 2
    assert [entry["corr_id"] for entry in diagnostics] == ["c3"]
    assert diagnostics.failed("c3")
