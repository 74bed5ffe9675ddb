"""Payment gateway seam.

The adapter named by `settings.PAYMENT_GATEWAY` moves the money; the
functions below keep the local payment records and the transaction audit
trail in step with whatever the adapter reports.
"""

import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

from . import GatewayError, PaymentState, TransactionKind
from .models import Payment, Transaction

logger = logging.getLogger(__name__)


class BaseGateway:
    """Adapter interface; every call returns a transaction token or raises."""

    def capture(self, payment: Payment, amount: Decimal) -> str:
        raise NotImplementedError

    def void(self, payment: Payment) -> str:
        raise NotImplementedError

    def refund(self, payment: Payment, amount: Decimal) -> str:
        raise NotImplementedError


class DummyGateway(BaseGateway):
    def _token(self):
        return f"dummy-{uuid.uuid4()}"

    def capture(self, payment, amount):
        return self._token()

    def void(self, payment):
        return self._token()

    def refund(self, payment, amount):
        return self._token()


def get_gateway() -> BaseGateway:
    return import_string(settings.PAYMENT_GATEWAY)()


def _record(payment, kind, amount, token="", error=""):
    return Transaction.objects.create(
        payment=payment,
        kind=kind,
        amount=amount,
        is_success=not error,
        token=token,
        error=error,
    )


def _call(payment, kind, amount, func, *args):
    try:
        token = func(payment, *args)
    except GatewayError as exc:
        logger.exception("Gateway %s of payment %s failed", kind, payment.pk)
        _record(payment, kind, amount, error=exc.message)
        raise
    _record(payment, kind, amount, token=token)
    return token


def capture(payment: Payment, amount: Decimal | None = None):
    amount = payment.amount if amount is None else amount
    _call(payment, TransactionKind.CAPTURE, amount, get_gateway().capture, amount)
    payment.state = PaymentState.COMPLETED
    payment.save(update_fields=["state", "amount", "updated_at"])
    logger.info("Captured %s on payment %s", amount, payment.pk)


def void(payment: Payment):
    _call(payment, TransactionKind.VOID, payment.amount, get_gateway().void)
    payment.state = PaymentState.VOIDED
    payment.save(update_fields=["state", "updated_at"])
    logger.info("Voided payment %s", payment.pk)


def credit(payment: Payment, amount: Decimal) -> Payment:
    """Return up to `amount` of a completed payment as an offset payment."""
    amount = min(amount, payment.credit_allowed)
    if amount <= 0:
        raise GatewayError(f"Payment {payment.pk} has nothing left to credit")
    _call(payment, TransactionKind.REFUND, amount, get_gateway().refund, amount)
    offset = Payment.objects.create(
        order_id=payment.order_id,
        parent=payment,
        amount=-amount,
        currency=payment.currency,
        state=PaymentState.COMPLETED,
        method_name=payment.method_name,
    )
    logger.info("Credited %s on payment %s", amount, payment.pk)
    return offset
