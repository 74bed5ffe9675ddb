"""Settle the payments of an order against its outstanding balance.

Runs after the order transaction commits so slow gateways never hold the
order lock. Each enabled step loops while the balance calls for it; a payment
leaves the candidate pool the moment it is picked, whether the gateway call
then succeeds or fails, so no payment is attempted twice in one call.
"""

import logging

import attrs
from prices import Money

from ..core.options import SyncOptions
from ..core.prices import zero_money
from ..order.models import Order
from . import GatewayError, gateway

logger = logging.getLogger(__name__)


@attrs.define
class SettlementResult:
    errors: list[str] = attrs.field(factory=list)
    status: list[dict] = attrs.field(factory=list)

    def as_dict(self) -> dict:
        return {"errors": list(self.errors), "status": list(self.status)}


class PaymentPool:
    def __init__(self, payments):
        self._available = list(payments)

    def pick(self, predicate):
        for payment in self._available:
            if predicate(payment):
                self._available.remove(payment)
                return payment
        return None


def _balance(order: Order) -> Money:
    order.update_totals()
    return order.get_balance()


def _attempt(result: SettlementResult, action, *args):
    try:
        action(*args)
    except GatewayError as exc:
        result.errors.append(exc.message)


def release_payments(order: Order, options: SyncOptions) -> SettlementResult:
    """Give back the money of a canceled order.

    Pending payments are voided and completed ones credited in full.
    """
    result = SettlementResult()
    pool = PaymentPool(order.payments.filter(parent__isnull=True).order_by("pk"))
    while options.ok_void:
        payment = pool.pick(lambda p: p.can_void())
        if payment is None:
            break
        _attempt(result, gateway.void, payment)
    while options.ok_refund:
        payment = pool.pick(lambda p: p.can_credit())
        if payment is None:
            break
        _attempt(result, gateway.credit, payment, payment.credit_allowed)
    if result.errors:
        logger.warning("Order %s released with errors: %s", order, result.errors)
    return result


def settle_payments(
    order: Order, options: SyncOptions, result: SettlementResult | None = None
) -> SettlementResult:
    if result is None:
        result = SettlementResult()

    if not order.is_canceled():
        zero = zero_money(order.currency)
        pool = PaymentPool(order.payments.filter(parent__isnull=True).order_by("pk"))

        while options.ok_capture and _balance(order) > zero:
            balance = order.get_balance()
            payment = pool.pick(
                lambda p: p.can_capture() and p.get_amount() <= balance
            )
            if payment is None:
                break
            _attempt(result, gateway.capture, payment)

        while options.ok_partial_capture and _balance(order) > zero:
            balance = order.get_balance()
            payment = pool.pick(
                lambda p: p.can_partially_capture() and p.get_amount() > balance
            )
            if payment is None:
                break
            payment.amount = balance.amount
            _attempt(result, gateway.capture, payment, balance.amount)

        while options.ok_void and _balance(order) <= zero:
            payment = pool.pick(lambda p: p.can_void())
            if payment is None:
                break
            _attempt(result, gateway.void, payment)

        while options.ok_refund and _balance(order) < zero:
            balance = order.get_balance()
            payment = pool.pick(lambda p: p.can_credit())
            if payment is None:
                break
            _attempt(result, gateway.credit, payment, -balance.amount)

        order.update_totals()

    for payment in order.payments.filter(amount__gt=0).order_by("pk"):
        result.status.append(
            {
                "id": payment.pk,
                "state": payment.state,
                "amount": payment.amount,
                "credit": abs(payment.offsets_total),
            }
        )
    if result.errors:
        logger.warning("Order %s settled with errors: %s", order, result.errors)
    return result
