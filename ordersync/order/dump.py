"""Raw order snapshot returned to the external system.

The snapshot is deliberately close to the tables: every concrete column plus
a few looked-up values, so the external side can evolve its mapping without
changes here.
"""

import json

from django.core.serializers.json import DjangoJSONEncoder

from .models import Order


def _columns(instance) -> dict:
    return {
        field.attname: field.value_from_object(instance)
        for field in instance._meta.concrete_fields
    }


def _dump_shipment(shipment) -> dict:
    data = _columns(shipment)
    data["shipping_method_name"] = (
        shipment.shipping_method.name if shipment.shipping_method else None
    )
    data["carrier_name"] = shipment.carrier.name if shipment.carrier else None
    data["adjustments"] = [_columns(adj) for adj in shipment.adjustments.all()]
    return data


def _dump_line_item(line) -> dict:
    data = _columns(line)
    data["sku"] = line.variant.sku
    return data


def _dump_payment(payment) -> dict:
    data = _columns(payment)
    data["method_class"] = payment.method_name
    return data


def dump_order(order: Order) -> dict:
    data = _columns(order)
    data["outstanding_balance"] = order.outstanding_balance
    data["line_items"] = [
        _dump_line_item(line) for line in order.line_items.select_related("variant")
    ]
    data["adjustments"] = [
        _columns(adj) for adj in order.adjustments.filter(shipment__isnull=True)
    ]
    data["shipments"] = [
        _dump_shipment(shipment)
        for shipment in order.shipments.select_related("shipping_method", "carrier")
    ]
    data["payments"] = [_dump_payment(payment) for payment in order.payments.all()]
    data["return_authorizations"] = [
        _columns(rma) for rma in order.return_authorizations.all()
    ]
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))
