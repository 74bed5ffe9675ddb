from decimal import Decimal

import pytest

from ..core.diagnostics import Diagnostics
from ..core.options import SyncOptions
from ..order import InventoryUnitState, ShipmentState
from ..order.models import InventoryUnit, LineItem, Order, Shipment
from ..payment import PaymentState
from ..payment.models import Payment
from ..product.models import Variant
from ..shipping import ShippingCalculator
from ..shipping.advisory import AdvisoryMethodResolver
from ..shipping.models import ShippingMethod
from ..warehouse.models import Stock, StockLocation
from .utils import ApiClient


@pytest.fixture
def stock_location(db):
    return StockLocation.objects.create(name="Main", admin_name="Main", is_default=True)


@pytest.fixture
def variant(db):
    return Variant.objects.create(
        sku="X", name="Shirt", price_amount=Decimal("10.00"), weight=Decimal("1.000")
    )


@pytest.fixture
def other_variant(db):
    return Variant.objects.create(
        sku="Y", name="Hat", price_amount=Decimal("7.50"), weight=Decimal("0.500")
    )


@pytest.fixture
def stock(stock_location, variant):
    return Stock.objects.create(location=stock_location, variant=variant, quantity=10)


@pytest.fixture
def shipping_method(db):
    return ShippingMethod.objects.create(
        name="Ground",
        admin_name="Ground",
        calculator=ShippingCalculator.FLAT_RATE,
        calculator_amount=Decimal("5.00"),
    )


@pytest.fixture
def options():
    return SyncOptions()


@pytest.fixture
def resolver(options):
    return AdvisoryMethodResolver(options)


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def order(db):
    return Order.objects.create(number="R100", email="customer@example.com")


@pytest.fixture
def shipment_factory(stock_location):
    def create_shipment(order, state=ShipmentState.PENDING, **kwargs):
        kwargs.setdefault("stock_location", stock_location)
        return Shipment.objects.create(order=order, state=state, **kwargs)

    return create_shipment


@pytest.fixture
def line_factory():
    def create_line(order, variant, quantity, shipment, price=None, state=None):
        line = LineItem.objects.create(
            order=order,
            variant=variant,
            quantity=quantity,
            unit_price_amount=price if price is not None else variant.price_amount,
        )
        InventoryUnit.objects.bulk_create(
            [
                InventoryUnit(
                    order=order,
                    line_item=line,
                    variant=variant,
                    shipment=shipment,
                    state=state or InventoryUnitState.UNFULFILLED,
                )
                for _ in range(quantity)
            ]
        )
        return line

    return create_line


@pytest.fixture
def order_with_lines(order, variant, shipping_method, shipment_factory, line_factory):
    shipment = shipment_factory(
        order, shipping_method=shipping_method, cost=Decimal("5.00")
    )
    line_factory(order, variant, 2, shipment, price=Decimal("10.00"))
    order.update_totals()
    return order


@pytest.fixture
def line_item(order_with_lines):
    return order_with_lines.line_items.get()


@pytest.fixture
def shipped_order(order, variant, shipment_factory, line_factory):
    shipment = shipment_factory(order, state=ShipmentState.SHIPPED)
    line_factory(order, variant, 5, shipment, state=InventoryUnitState.SHIPPED)
    order.update_totals()
    return order


@pytest.fixture
def payment_factory():
    def create_payment(order, amount, state=PaymentState.PENDING, **kwargs):
        return Payment.objects.create(
            order=order,
            amount=Decimal(amount),
            currency=order.currency,
            state=state,
            method_name=kwargs.pop("method_name", "CreditCard"),
            **kwargs,
        )

    return create_payment


@pytest.fixture
def api_client(client):
    return ApiClient(client)
