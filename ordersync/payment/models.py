from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.utils.timezone import now
from prices import Money

from ..order.models import Order
from . import PaymentState, TransactionKind


class Payment(models.Model):
    """A payment towards an order.

    Credits are recorded as offset payments: completed children of the
    credited payment with a negative amount.
    """

    order = models.ForeignKey(Order, related_name="payments", on_delete=models.PROTECT)
    parent = models.ForeignKey(
        "self", related_name="offsets", null=True, blank=True, on_delete=models.CASCADE
    )
    amount = models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    currency = models.CharField(max_length=settings.DEFAULT_CURRENCY_CODE_LENGTH)
    state = models.CharField(
        max_length=32, choices=PaymentState.CHOICES, default=PaymentState.CHECKOUT
    )
    method_name = models.CharField(max_length=255, blank=True, default="")
    response_code = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(default=now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("pk",)

    def __repr__(self):
        return f"<Payment {self.pk} {self.amount} {self.state}>"

    def save(self, *args, **kwargs):
        if not self.currency:
            self.currency = self.order.currency
        super().save(*args, **kwargs)

    def get_amount(self) -> Money:
        return Money(self.amount, self.currency)

    @property
    def offsets_total(self) -> Decimal:
        total = self.offsets.aggregate(total=Sum("amount"))["total"]
        return total or Decimal("0.00")

    @property
    def credit_allowed(self) -> Decimal:
        return self.amount + self.offsets_total

    def is_pending(self) -> bool:
        return self.state == PaymentState.PENDING

    def is_completed(self) -> bool:
        return self.state == PaymentState.COMPLETED

    def can_capture(self) -> bool:
        return self.is_pending() and self.amount > 0

    def can_partially_capture(self) -> bool:
        return self.can_capture()

    def can_void(self) -> bool:
        return self.is_pending() and self.amount > 0

    def can_credit(self) -> bool:
        return (
            self.is_completed() and self.parent_id is None and self.credit_allowed > 0
        )


class Transaction(models.Model):
    """Audit row for every gateway call, successful or not."""

    payment = models.ForeignKey(
        Payment, related_name="transactions", on_delete=models.PROTECT
    )
    kind = models.CharField(max_length=32, choices=TransactionKind.CHOICES)
    amount = models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    is_success = models.BooleanField(default=False)
    token = models.CharField(max_length=512, blank=True, default="")
    error = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("pk",)

    def __repr__(self):
        return f"<Transaction {self.kind} {self.amount} success={self.is_success}>"
