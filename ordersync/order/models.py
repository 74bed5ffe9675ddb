import secrets
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Count, Q
from django.utils.timezone import now
from prices import Money

from ..core.extensions import ExtensibleMixin
from ..core.models import ModelWithMetadata
from ..payment import PaymentState
from ..product.models import Variant
from ..shipping import calculators
from ..shipping.models import Carrier, ShippingMethod
from ..warehouse.models import StockLocation
from . import (
    AdjustmentKind,
    AdjustmentState,
    ImportState,
    InventoryUnitState,
    OrderStatus,
    ReturnAuthorizationState,
    ShipmentState,
)


def get_default_import_state():
    return ImportState.YES if settings.ORDERSYNC_IMPORT_BY_DEFAULT else ImportState.NO


def get_default_currency():
    return settings.DEFAULT_CURRENCY


def amount_field(**kwargs):
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(
        max_digits=settings.DEFAULT_MAX_DIGITS,
        decimal_places=settings.DEFAULT_DECIMAL_PLACES,
        **kwargs,
    )


class OrderQueryset(models.QuerySet["Order"]):
    def importable(self):
        """Complete orders the external system has not exported yet."""
        return self.filter(
            import_state=ImportState.YES, status=OrderStatus.COMPLETE
        ).exclude(completed_at__isnull=True)


OrderManager = models.Manager.from_queryset(OrderQueryset)


class Order(ExtensibleMixin, ModelWithMetadata):
    number = models.CharField(max_length=32, unique=True)
    status = models.CharField(
        max_length=32, default=OrderStatus.COMPLETE, choices=OrderStatus.CHOICES
    )
    import_state = models.CharField(
        max_length=8,
        default=get_default_import_state,
        choices=ImportState.CHOICES,
        db_index=True,
    )
    currency = models.CharField(
        max_length=settings.DEFAULT_CURRENCY_CODE_LENGTH,
        default=get_default_currency,
    )
    email = models.EmailField(blank=True, default="")
    customer_note = models.TextField(blank=True, default="")

    item_total = amount_field()
    shipment_total = amount_field()
    adjustment_total = amount_field()
    additional_tax_total = amount_field()
    promo_total = amount_field()
    total = amount_field()
    payment_total = amount_field()

    created_at = models.DateTimeField(default=now, editable=False)
    updated_at = models.DateTimeField(auto_now=True, editable=False)
    completed_at = models.DateTimeField(default=now, null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    objects = OrderManager()

    EXTENSION_FIELDS = ("email", "customer_note")

    class Meta:
        ordering = ("-pk",)

    def __str__(self):
        return self.number

    def __repr__(self):
        return f"<Order {self.number!r}>"

    def is_canceled(self) -> bool:
        return self.status == OrderStatus.CANCELED

    @property
    def outstanding_balance(self) -> Decimal:
        """Money still owed by the customer; negative when overpaid."""
        if self.is_canceled():
            return -self.payment_total
        return self.total - self.payment_total

    def get_balance(self) -> Money:
        return Money(self.outstanding_balance, self.currency)

    def shipped_shipments(self):
        return self.shipments.filter(state=ShipmentState.SHIPPED)

    def update_totals(self):
        """Recalculate the denormalized order totals.

        Shipments whose cost is still open are repriced from their shipping
        method; closed costs and closed adjustments keep their values.
        """
        lines = self.line_items.all()
        item_total = sum((line.amount for line in lines), Decimal("0.00"))

        shipment_total = Decimal("0.00")
        for shipment in self.shipments.exclude(state=ShipmentState.CANCELED):
            shipment.update_cost()
            shipment_total += shipment.cost

        adjustment_total = Decimal("0.00")
        tax_total = Decimal("0.00")
        promo_total = Decimal("0.00")
        for adjustment in self.adjustments.all():
            adjustment_total += adjustment.amount
            if adjustment.kind == AdjustmentKind.TAX:
                tax_total += adjustment.amount
            elif adjustment.kind == AdjustmentKind.PROMOTION:
                promo_total += adjustment.amount

        payment_total = sum(
            (
                payment.amount
                for payment in self.payments.filter(state=PaymentState.COMPLETED)
            ),
            Decimal("0.00"),
        )

        values = {
            "item_total": item_total,
            "shipment_total": shipment_total,
            "adjustment_total": adjustment_total,
            "additional_tax_total": tax_total,
            "promo_total": promo_total,
            "total": item_total + shipment_total + adjustment_total,
            "payment_total": payment_total,
        }
        changed_fields = [
            name for name, value in values.items() if getattr(self, name) != value
        ]
        for name in changed_fields:
            setattr(self, name, values[name])
        if changed_fields:
            self.save(update_fields=[*changed_fields, "updated_at"])
        return bool(changed_fields)


class LineItem(ExtensibleMixin, ModelWithMetadata):
    order = models.ForeignKey(
        Order, related_name="line_items", editable=False, on_delete=models.CASCADE
    )
    variant = models.ForeignKey(
        Variant, related_name="line_items", on_delete=models.PROTECT
    )
    quantity = models.PositiveIntegerField(default=1)
    # Units destroyed because they will never ship; the customer is refunded
    # through an adjustment and the line keeps its ordered quantity.
    quantity_canceled = models.PositiveIntegerField(default=0)
    currency = models.CharField(
        max_length=settings.DEFAULT_CURRENCY_CODE_LENGTH,
        default=get_default_currency,
    )
    unit_price_amount = amount_field()
    cost_price_amount = amount_field(null=True, blank=True, default=None)
    estimated_ship_date = models.DateField(null=True, blank=True)
    gift_message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=now, editable=False)

    EXTENSION_FIELDS = ("gift_message",)

    class Meta:
        ordering = ("created_at", "pk")

    def __str__(self):
        return f"{self.variant} x {self.quantity}"

    @property
    def amount(self) -> Decimal:
        return self.unit_price_amount * self.quantity

    def unfulfilled_units(self):
        return self.inventory_units.filter(
            state=InventoryUnitState.UNFULFILLED
        ).order_by("-pk")

    @property
    def quantity_unfulfilled(self) -> int:
        return self.unfulfilled_units().count()


def generate_shipment_number() -> str:
    while True:
        number = "H" + "".join(secrets.choice("0123456789") for _ in range(11))
        if not Shipment.objects.filter(number=number).exists():
            return number


class ShipmentQueryset(models.QuerySet["Shipment"]):
    def unshipped(self):
        return self.exclude(state__in=ShipmentState.TERMINAL)

    def empty(self):
        return self.annotate(unit_count=Count("inventory_units")).filter(
            unit_count=0
        )


ShipmentManager = models.Manager.from_queryset(ShipmentQueryset)


class Shipment(ExtensibleMixin, ModelWithMetadata):
    order = models.ForeignKey(
        Order, related_name="shipments", editable=False, on_delete=models.CASCADE
    )
    number = models.CharField(max_length=64, unique=True, default=generate_shipment_number)
    state = models.CharField(
        max_length=32, default=ShipmentState.PENDING, choices=ShipmentState.CHOICES
    )
    stock_location = models.ForeignKey(
        StockLocation, related_name="shipments", on_delete=models.PROTECT
    )
    shipping_method = models.ForeignKey(
        ShippingMethod,
        related_name="shipments",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    cost = amount_field()
    # A closed cost was asserted externally and is not repriced.
    cost_state = models.CharField(
        max_length=8, default=AdjustmentState.OPEN, choices=AdjustmentState.CHOICES
    )
    tracking = models.CharField(max_length=255, blank=True, default="")
    tracking_url = models.CharField(max_length=255, blank=True, default="")
    carrier = models.ForeignKey(
        Carrier, related_name="shipments", null=True, blank=True, on_delete=models.SET_NULL
    )
    weight = models.DecimalField(max_digits=8, decimal_places=3, null=True, blank=True)
    created_at = models.DateTimeField(default=now)
    shipped_at = models.DateTimeField(null=True, blank=True)

    objects = ShipmentManager()

    EXTENSION_FIELDS = ("tracking_url", "weight")
    EXTENSION_ASSOCIATIONS = ("carrier",)
    EXTENSION_HOOKS = {"weight_oz": "set_weight_from_ounces"}

    class Meta:
        ordering = ("pk",)

    def __str__(self):
        return self.number

    def __repr__(self):
        return f"<Shipment {self.number!r} {self.state}>"

    @property
    def is_terminal(self) -> bool:
        return self.state in ShipmentState.TERMINAL

    def set_weight_from_ounces(self, value) -> bool:
        weight = (Decimal(str(value)) * Decimal("0.0283495")).quantize(Decimal("0.001"))
        if self.weight == weight:
            return False
        self.weight = weight
        return True

    def native_cost(self) -> Decimal:
        if self.shipping_method is None:
            return Decimal("0.00")
        quantity = self.inventory_units.count()
        return calculators.compute(self.shipping_method, quantity)

    def update_cost(self) -> bool:
        if self.cost_state == AdjustmentState.CLOSED:
            return False
        cost = self.native_cost()
        if cost == self.cost:
            return False
        self.cost = cost
        self.save(update_fields=["cost"])
        return True

    def adjustment_total(self) -> Decimal:
        return sum(
            (adjustment.amount for adjustment in self.adjustments.all()),
            Decimal("0.00"),
        )


class InventoryUnit(models.Model):
    order = models.ForeignKey(
        Order, related_name="inventory_units", on_delete=models.CASCADE
    )
    line_item = models.ForeignKey(
        LineItem, related_name="inventory_units", on_delete=models.CASCADE
    )
    variant = models.ForeignKey(
        Variant, related_name="inventory_units", on_delete=models.PROTECT
    )
    shipment = models.ForeignKey(
        Shipment,
        related_name="inventory_units",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    return_authorization = models.ForeignKey(
        "ReturnAuthorization",
        related_name="inventory_units",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    state = models.CharField(
        max_length=32,
        default=InventoryUnitState.UNFULFILLED,
        choices=InventoryUnitState.CHOICES,
    )
    created_at = models.DateTimeField(default=now, editable=False)

    class Meta:
        ordering = ("pk",)

    def __repr__(self):
        return f"<InventoryUnit {self.pk} {self.variant_id} {self.state}>"


class Adjustment(models.Model):
    """A monetary line on an order.

    Order level adjustments are keyed by label: an order never holds two of
    them with the same label. Adjustments attached to a shipment carry costs
    that belong to that shipment only.
    """

    order = models.ForeignKey(
        Order, related_name="adjustments", on_delete=models.CASCADE
    )
    shipment = models.ForeignKey(
        Shipment,
        related_name="adjustments",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
    )
    label = models.CharField(max_length=255)
    amount = amount_field()
    kind = models.CharField(max_length=32, choices=AdjustmentKind.CHOICES)
    state = models.CharField(
        max_length=8, default=AdjustmentState.OPEN, choices=AdjustmentState.CHOICES
    )
    created_at = models.DateTimeField(default=now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("created_at", "pk")
        constraints = [
            models.UniqueConstraint(
                fields=["order", "label"],
                condition=Q(shipment__isnull=True),
                name="unique_order_adjustment_label",
            )
        ]

    def __repr__(self):
        return f"<Adjustment {self.label!r} {self.amount} {self.state}>"

    @property
    def is_closed(self) -> bool:
        return self.state == AdjustmentState.CLOSED


class ReturnAuthorization(models.Model):
    order = models.ForeignKey(
        Order, related_name="return_authorizations", on_delete=models.CASCADE
    )
    number = models.CharField(max_length=64)
    state = models.CharField(
        max_length=32,
        default=ReturnAuthorizationState.AUTHORIZED,
        choices=ReturnAuthorizationState.CHOICES,
    )
    amount = amount_field()
    stock_location = models.ForeignKey(
        StockLocation,
        related_name="return_authorizations",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # For received returns: number of the open RMA they were received against.
    source_number = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(default=now, editable=False)
    received_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("created_at", "pk")
        constraints = [
            models.UniqueConstraint(
                fields=["order", "number"], name="unique_order_rma_number"
            )
        ]

    def __str__(self):
        return self.number

    @property
    def is_received(self) -> bool:
        return self.state == ReturnAuthorizationState.RECEIVED

    def quantities(self) -> dict[int, int]:
        """Variant id -> number of units this authorization claims."""
        rows = (
            self.inventory_units.values("variant_id")
            .annotate(quantity=Count("pk"))
            .order_by()
        )
        return {row["variant_id"]: row["quantity"] for row in rows}

    def total_quantity(self) -> int:
        return self.inventory_units.count()

    def set_quantity(self, variant_id: int, quantity: int) -> int:
        """Make this authorization claim exactly `quantity` units of a variant.

        Additional units come from shipped units no other authorization claims.
        Returns the number of units claimed afterwards, which is lower than
        requested when not enough shipped units are free.
        """
        claimed = list(
            self.inventory_units.filter(variant_id=variant_id).order_by("-pk")
        )
        quantity = max(quantity, 0)
        if quantity < len(claimed):
            release = [unit.pk for unit in claimed[: len(claimed) - quantity]]
            InventoryUnit.objects.filter(pk__in=release).update(
                return_authorization=None
            )
            return quantity
        if quantity > len(claimed):
            free = list(
                InventoryUnit.objects.filter(
                    order_id=self.order_id,
                    variant_id=variant_id,
                    state=InventoryUnitState.SHIPPED,
                    return_authorization__isnull=True,
                )
                .order_by("pk")
                .values_list("pk", flat=True)[: quantity - len(claimed)]
            )
            InventoryUnit.objects.filter(pk__in=free).update(return_authorization=self)
            return len(claimed) + len(free)
        return quantity

    def receive(self):
        self.inventory_units.update(state=InventoryUnitState.RETURNED)
        self.state = ReturnAuthorizationState.RECEIVED
        self.received_at = now()
        self.save(update_fields=["state", "received_at"])
