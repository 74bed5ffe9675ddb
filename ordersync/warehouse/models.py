from django.db import models
from django.utils.timezone import now

from ..product.models import Variant
from . import StockMovementOriginator


class StockLocation(models.Model):
    name = models.CharField(max_length=255, unique=True)
    admin_name = models.CharField(max_length=255, blank=True, default="")
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ("pk",)

    def __str__(self):
        return self.name


class Stock(models.Model):
    """On-hand quantity of one variant at one location."""

    location = models.ForeignKey(
        StockLocation, related_name="stocks", on_delete=models.CASCADE
    )
    variant = models.ForeignKey(
        Variant, related_name="stocks", on_delete=models.CASCADE
    )
    quantity = models.IntegerField(default=0)
    backorderable = models.BooleanField(default=False)

    class Meta:
        ordering = ("pk",)
        constraints = [
            models.UniqueConstraint(
                fields=["location", "variant"], name="unique_stock_location_variant"
            )
        ]

    def __str__(self):
        return f"{self.variant} @ {self.location}: {self.quantity}"


class StockMovement(models.Model):
    stock = models.ForeignKey(Stock, related_name="movements", on_delete=models.CASCADE)
    quantity = models.IntegerField()
    originator = models.CharField(
        max_length=32,
        choices=StockMovementOriginator.CHOICES,
        default=StockMovementOriginator.INVENTORY_PUSH,
    )
    created_at = models.DateTimeField(default=now, editable=False)

    class Meta:
        ordering = ("created_at", "pk")
