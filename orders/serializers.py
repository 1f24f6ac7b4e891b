"""Serializers for the order workflow API.

Input serializers only check shape; business rules live in
`orders.services` and `orders.transitions`.
"""

from common.choices import OrderStatus, PaymentMethod, PaymentStatus
from rest_framework import serializers

from .models import Order, OrderItem, OrderStatusEvent


class DeliveryAddressSerializer(serializers.Serializer):
    address_line1 = serializers.CharField(max_length=255)
    address_line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=120)
    pin_code = serializers.CharField(max_length=16)


class CartLineSerializer(serializers.Serializer):
    seller_id = serializers.IntegerField(min_value=1)
    product_id = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")


class CheckoutSerializer(serializers.Serializer):
    """Validate a checkout request.

    Fields:
    - payment_method: `online` or `cod`
    - delivery_address: address snapshot stored on every created order
    - items: cart rows, each tagged with its `seller_id`
    """

    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    delivery_address = DeliveryAddressSerializer()
    items = CartLineSerializer(many=True, allow_empty=False)


class OrderTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    seller_response = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    buyer_response = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reject_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    contact_attempts = serializers.IntegerField(required=False, min_value=0, allow_null=True)


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ("product_id", "title", "quantity", "price", "unit", "line_total")


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for an order and its item snapshot."""

    customer_id = serializers.IntegerField(read_only=True)
    seller_id = serializers.IntegerField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = (
            "id",
            "customer_id",
            "seller_id",
            "items",
            "subtotal",
            "delivery_charges",
            "total",
            "payment_method",
            "payment_status",
            "prepayment_amount",
            "status",
            "contact_attempts",
            "seller_response",
            "buyer_response",
            "reject_reason",
            "note",
            "delivery_address",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class OrderStatusEventSerializer(serializers.ModelSerializer):
    actor_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = OrderStatusEvent
        fields = ("id", "from_status", "to_status", "actor_role", "actor_id", "note", "created_at")
        read_only_fields = fields


class CheckoutFailureSerializer(serializers.Serializer):
    seller_id = serializers.IntegerField()
    detail = serializers.CharField()
    code = serializers.CharField()


class CheckoutResultSerializer(serializers.Serializer):
    orders = OrderSerializer(many=True)
    failures = CheckoutFailureSerializer(many=True)


class TopSellerSerializer(serializers.Serializer):
    seller_id = serializers.IntegerField()
    shop_name = serializers.CharField()
    order_count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class RecentOrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    customer_id = serializers.IntegerField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class OrderAnalyticsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    pending_orders = serializers.IntegerField()
    completed_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_customers = serializers.IntegerField()
    total_sellers = serializers.IntegerField()
    recent_orders = RecentOrderSerializer(many=True)
    top_sellers = TopSellerSerializer(many=True)
