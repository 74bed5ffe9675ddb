from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import ordersync.order.models


def amount(**kwargs):
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(decimal_places=2, max_digits=12, **kwargs)


ID = (
    "id",
    models.AutoField(
        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
    ),
)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("product", "0001_initial"),
        ("shipping", "0001_initial"),
        ("warehouse", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ID,
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("number", models.CharField(max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("complete", "Complete"), ("canceled", "Canceled")],
                        default="complete",
                        max_length=32,
                    ),
                ),
                (
                    "import_state",
                    models.CharField(
                        choices=[
                            ("no", "Not importable"),
                            ("yes", "Waiting for import"),
                            ("done", "Exported"),
                        ],
                        db_index=True,
                        default=ordersync.order.models.get_default_import_state,
                        max_length=8,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=ordersync.order.models.get_default_currency,
                        max_length=3,
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("customer_note", models.TextField(blank=True, default="")),
                ("item_total", amount()),
                ("shipment_total", amount()),
                ("adjustment_total", amount()),
                ("additional_tax_total", amount()),
                ("promo_total", amount()),
                ("total", amount()),
                ("payment_total", amount()),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True, default=django.utils.timezone.now, null=True
                    ),
                ),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={"ordering": ("-pk",)},
        ),
        migrations.CreateModel(
            name="LineItem",
            fields=[
                ID,
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("quantity_canceled", models.PositiveIntegerField(default=0)),
                (
                    "currency",
                    models.CharField(
                        default=ordersync.order.models.get_default_currency,
                        max_length=3,
                    ),
                ),
                ("unit_price_amount", amount()),
                ("cost_price_amount", amount(blank=True, null=True, default=None)),
                ("estimated_ship_date", models.DateField(blank=True, null=True)),
                ("gift_message", models.TextField(blank=True, default="")),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="order.order",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="line_items",
                        to="product.variant",
                    ),
                ),
            ],
            options={"ordering": ("created_at", "pk")},
        ),
        migrations.CreateModel(
            name="Shipment",
            fields=[
                ID,
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "number",
                    models.CharField(
                        default=ordersync.order.models.generate_shipment_number,
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("ready", "Ready"),
                            ("shipped", "Shipped"),
                            ("canceled", "Canceled"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                ("cost", amount()),
                (
                    "cost_state",
                    models.CharField(
                        choices=[("open", "Open"), ("closed", "Closed")],
                        default="open",
                        max_length=8,
                    ),
                ),
                ("tracking", models.CharField(blank=True, default="", max_length=255)),
                (
                    "tracking_url",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "weight",
                    models.DecimalField(
                        blank=True, decimal_places=3, max_digits=8, null=True
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        editable=False,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="shipments",
                        to="order.order",
                    ),
                ),
                (
                    "stock_location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="shipments",
                        to="warehouse.stocklocation",
                    ),
                ),
                (
                    "shipping_method",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="shipments",
                        to="shipping.shippingmethod",
                    ),
                ),
                (
                    "carrier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="shipments",
                        to="shipping.carrier",
                    ),
                ),
            ],
            options={"ordering": ("pk",)},
        ),
        migrations.CreateModel(
            name="ReturnAuthorization",
            fields=[
                ID,
                ("number", models.CharField(max_length=64)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("authorized", "Authorized"),
                            ("received", "Received"),
                            ("canceled", "Canceled"),
                        ],
                        default="authorized",
                        max_length=32,
                    ),
                ),
                ("amount", amount()),
                (
                    "source_number",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="return_authorizations",
                        to="order.order",
                    ),
                ),
                (
                    "stock_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="return_authorizations",
                        to="warehouse.stocklocation",
                    ),
                ),
            ],
            options={"ordering": ("created_at", "pk")},
        ),
        migrations.AddConstraint(
            model_name="returnauthorization",
            constraint=models.UniqueConstraint(
                fields=("order", "number"), name="unique_order_rma_number"
            ),
        ),
        migrations.CreateModel(
            name="InventoryUnit",
            fields=[
                ID,
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("unfulfilled", "Unfulfilled"),
                            ("shipped", "Shipped"),
                            ("returned", "Returned"),
                        ],
                        default="unfulfilled",
                        max_length=32,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_units",
                        to="order.order",
                    ),
                ),
                (
                    "line_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_units",
                        to="order.lineitem",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_units",
                        to="product.variant",
                    ),
                ),
                (
                    "shipment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_units",
                        to="order.shipment",
                    ),
                ),
                (
                    "return_authorization",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_units",
                        to="order.returnauthorization",
                    ),
                ),
            ],
            options={"ordering": ("pk",)},
        ),
        migrations.CreateModel(
            name="Adjustment",
            fields=[
                ID,
                ("label", models.CharField(max_length=255)),
                ("amount", amount()),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("shipping", "Shipping"),
                            ("tax", "Tax"),
                            ("promotion", "Promotion"),
                            ("refund", "Refund"),
                            ("return", "Return"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[("open", "Open"), ("closed", "Closed")],
                        default="open",
                        max_length=8,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="adjustments",
                        to="order.order",
                    ),
                ),
                (
                    "shipment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="adjustments",
                        to="order.shipment",
                    ),
                ),
            ],
            options={"ordering": ("created_at", "pk")},
        ),
        migrations.AddConstraint(
            model_name="adjustment",
            constraint=models.UniqueConstraint(
                condition=models.Q(("shipment__isnull", True)),
                fields=("order", "label"),
                name="unique_order_adjustment_label",
            ),
        ),
    ]
