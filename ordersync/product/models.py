from decimal import Decimal

from django.conf import settings
from django.db import models

from ..core.models import ModelWithMetadata


class VariantQueryset(models.QuerySet["Variant"]):
    def by_sku(self, skus) -> dict[str, "Variant"]:
        """Map each known SKU to its variant; unknown SKUs are left out."""
        skus = {str(sku) for sku in skus if sku not in (None, "")}
        return {variant.sku: variant for variant in self.filter(sku__in=skus)}


VariantManager = models.Manager.from_queryset(VariantQueryset)


class Variant(ModelWithMetadata):
    sku = models.CharField(max_length=255, unique=True)
    name = models.CharField(max_length=255, blank=True, default="")
    price_amount = models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    cost_price_amount = models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        null=True,
        blank=True,
    )
    weight = models.DecimalField(
        max_digits=8, decimal_places=3, default=Decimal("0.000")
    )

    objects = VariantManager()

    class Meta:
        ordering = ("sku",)

    def __str__(self):
        return self.sku

    def __repr__(self):
        return f"<Variant {self.sku!r}>"
