from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("created", "Created"),
    ("pending_verification", "Pending Verification"),
    ("seller_contacted", "Seller Contacted"),
    ("seller_accepted", "Seller Accepted"),
    ("seller_rejected", "Seller Rejected"),
    ("buyer_contacted", "Buyer Contacted"),
    ("confirmed", "Confirmed"),
    ("buyer_rejected", "Buyer Rejected"),
    ("out_for_delivery", "Out For Delivery"),
    ("delivered", "Delivered"),
    ("completed", "Completed"),
]
NON_NEGATIVE = [django.core.validators.MinValueValidator(Decimal("0.00"))]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12, validators=NON_NEGATIVE)),
                ("delivery_charges", models.DecimalField(decimal_places=2, max_digits=12, validators=NON_NEGATIVE)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12, validators=NON_NEGATIVE)),
                (
                    "payment_method",
                    models.CharField(choices=[("online", "Online"), ("cod", "Cash on Delivery")], max_length=16),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("partially_paid", "Partially Paid"),
                            ("paid", "Paid"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("prepayment_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES, db_index=True, default="pending_verification", max_length=32
                    ),
                ),
                ("contact_attempts", models.PositiveIntegerField(default=0)),
                ("seller_response", models.TextField(blank=True)),
                ("buyer_response", models.TextField(blank=True)),
                ("reject_reason", models.TextField(blank=True)),
                ("note", models.TextField(blank=True)),
                ("delivery_address", models.JSONField(default=dict)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="seller_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["customer", "created_at"], name="orders_customer_created_idx"),
                    models.Index(fields=["seller", "created_at"], name="orders_seller_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total__gte", 0)), name="order_total_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("payment_method", "cod"), ("prepayment_amount__isnull", True), _connector="OR"
                        ),
                        name="order_prepayment_only_for_cod",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=0)),
                ("product_id", models.CharField(max_length=64)),
                ("title", models.CharField(max_length=255)),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("price", models.DecimalField(decimal_places=2, max_digits=12, validators=NON_NEGATIVE)),
                ("unit", models.CharField(blank=True, max_length=32)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order"
                    ),
                ),
            ],
            options={
                "ordering": ["order", "position", "id"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("from_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                (
                    "actor_role",
                    models.CharField(
                        choices=[
                            ("customer", "Customer"),
                            ("seller", "Seller"),
                            ("admin", "Admin"),
                            ("system", "System"),
                        ],
                        max_length=16,
                    ),
                ),
                ("note", models.TextField(blank=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_status_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="status_events", to="orders.order"
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["order", "created_at"], name="orders_event_order_created_idx"),
                ],
            },
        ),
    ]
