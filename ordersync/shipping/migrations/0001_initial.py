from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ShippingMethod",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "admin_name",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "calculator",
                    models.CharField(
                        choices=[
                            ("flat_rate", "Flat rate per shipment"),
                            ("per_item", "Flat rate per item"),
                            ("advisory", "Advisory (priced externally)"),
                        ],
                        default="flat_rate",
                        max_length=32,
                    ),
                ),
                (
                    "calculator_amount",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=12
                    ),
                ),
            ],
            options={
                "ordering": ("pk",),
            },
        ),
        migrations.AddConstraint(
            model_name="shippingmethod",
            constraint=models.UniqueConstraint(
                condition=models.Q(("calculator", "advisory")),
                fields=("admin_name",),
                name="unique_advisory_shipping_method_admin_name",
            ),
        ),
        migrations.CreateModel(
            name="Carrier",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255, unique=True)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
    ]
