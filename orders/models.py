"""Order domain models.

`Order` holds the current verification state of one seller-order,
`OrderItem` is the line-item snapshot taken at checkout and
`OrderStatusEvent` is the append-only status history.
"""

from decimal import Decimal

from common.choices import ActorRole, OrderStatus, PaymentMethod, PaymentStatus
from common.models import TimeStampedModel
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

MONEY = {"max_digits": 12, "decimal_places": 2}

TERMINAL_STATUSES = frozenset({OrderStatus.SELLER_REJECTED, OrderStatus.BUYER_REJECTED, OrderStatus.COMPLETED})


class Order(TimeStampedModel):
    """One seller's slice of a customer checkout.

    Money fields are fixed at creation; `status` and `contact_attempts`
    only change through `orders.transitions`.
    """

    STATUS_CREATED = OrderStatus.CREATED
    STATUS_PENDING_VERIFICATION = OrderStatus.PENDING_VERIFICATION
    STATUS_SELLER_CONTACTED = OrderStatus.SELLER_CONTACTED
    STATUS_SELLER_ACCEPTED = OrderStatus.SELLER_ACCEPTED
    STATUS_SELLER_REJECTED = OrderStatus.SELLER_REJECTED
    STATUS_BUYER_CONTACTED = OrderStatus.BUYER_CONTACTED
    STATUS_CONFIRMED = OrderStatus.CONFIRMED
    STATUS_BUYER_REJECTED = OrderStatus.BUYER_REJECTED
    STATUS_OUT_FOR_DELIVERY = OrderStatus.OUT_FOR_DELIVERY
    STATUS_DELIVERED = OrderStatus.DELIVERED
    STATUS_COMPLETED = OrderStatus.COMPLETED
    STATUS_CHOICES = OrderStatus.choices

    customer = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="orders", on_delete=models.PROTECT)
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="seller_orders", on_delete=models.PROTECT)
    subtotal = models.DecimalField(**MONEY, validators=[MinValueValidator(Decimal("0.00"))])
    delivery_charges = models.DecimalField(**MONEY, validators=[MinValueValidator(Decimal("0.00"))])
    total = models.DecimalField(**MONEY, validators=[MinValueValidator(Decimal("0.00"))])
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )
    prepayment_amount = models.DecimalField(**MONEY, null=True, blank=True)
    status = models.CharField(
        max_length=32, choices=STATUS_CHOICES, default=OrderStatus.PENDING_VERIFICATION, db_index=True
    )
    contact_attempts = models.PositiveIntegerField(default=0)
    seller_response = models.TextField(blank=True)
    buyer_response = models.TextField(blank=True)
    reject_reason = models.TextField(blank=True)
    note = models.TextField(blank=True)
    delivery_address = models.JSONField(default=dict)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="orders_customer_created_idx"),
            models.Index(fields=["seller", "created_at"], name="orders_seller_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(total__gte=0), name="order_total_non_negative"),
            models.CheckConstraint(
                condition=models.Q(payment_method=PaymentMethod.COD) | models.Q(prepayment_amount__isnull=True),
                name="order_prepayment_only_for_cod",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order#{self.id} seller={self.seller_id} status={self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class OrderItem(models.Model):
    """Line item copied from the cart; never a live catalog reference."""

    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    position = models.PositiveIntegerField(default=0)
    product_id = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(**MONEY, validators=[MinValueValidator(Decimal("0.00"))])
    unit = models.CharField(max_length=32, blank=True)

    class Meta:
        ordering = ["order", "position", "id"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.title} x{self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class AppendOnlyError(Exception):
    """Raised on any attempt to rewrite or remove history."""


class OrderStatusEvent(TimeStampedModel):
    """Audit record of one successful status change."""

    order = models.ForeignKey(Order, related_name="status_events", on_delete=models.CASCADE)
    from_status = models.CharField(max_length=32, choices=OrderStatus.choices)
    to_status = models.CharField(max_length=32, choices=OrderStatus.choices)
    actor_role = models.CharField(max_length=16, choices=ActorRole.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="order_status_events", null=True, blank=True, on_delete=models.SET_NULL
    )
    note = models.TextField(blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="orders_event_order_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order#{self.order_id} {self.from_status}->{self.to_status}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise AppendOnlyError("Status events cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Status events cannot be deleted")
