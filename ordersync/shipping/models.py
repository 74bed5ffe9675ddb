from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from . import ShippingCalculator


class ShippingMethod(models.Model):
    name = models.CharField(max_length=255)
    admin_name = models.CharField(max_length=255, blank=True, default="")
    calculator = models.CharField(
        max_length=32,
        choices=ShippingCalculator.CHOICES,
        default=ShippingCalculator.FLAT_RATE,
    )
    calculator_amount = models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )

    class Meta:
        ordering = ("pk",)
        constraints = [
            models.UniqueConstraint(
                fields=["admin_name"],
                condition=Q(calculator=ShippingCalculator.ADVISORY),
                name="unique_advisory_shipping_method_admin_name",
            )
        ]

    def __str__(self):
        return self.name

    @property
    def is_advisory(self) -> bool:
        return self.calculator == ShippingCalculator.ADVISORY


class Carrier(models.Model):
    name = models.CharField(max_length=255, unique=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name
