"""Read-only query helpers for orders.

Visibility is enforced here: customers only ever see their own orders,
sellers only orders addressed to them, admins see everything.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from common.choices import ActiveInactive, ActorRole, OrderStatus, UserRole
from django.contrib.auth import get_user_model
from django.db.models import Count, DecimalField, Q, QuerySet, Sum
from django.db.models.functions import Coalesce
from orders.exceptions import OrderNotFound
from orders.models import MONEY, Order, OrderStatusEvent

VERIFICATION_QUEUE = (
    OrderStatus.PENDING_VERIFICATION,
    OrderStatus.SELLER_CONTACTED,
    OrderStatus.SELLER_ACCEPTED,
    OrderStatus.BUYER_CONTACTED,
)


def _base_queryset() -> QuerySet[Order]:
    return Order.objects.select_related("customer", "seller").prefetch_related("items")


def get_orders_for(actor_id, role: str, status: Optional[str] = None) -> QuerySet[Order]:
    """Return the orders `actor_id` may see given `role`, newest first.

    Unknown roles get an empty queryset rather than an error.
    """

    qs = _base_queryset()
    if role == ActorRole.CUSTOMER:
        qs = qs.filter(customer_id=actor_id)
    elif role == ActorRole.SELLER:
        qs = qs.filter(seller_id=actor_id)
    elif role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
        return qs.none()
    if status:
        qs = qs.filter(status=status)
    return qs


def get_order(order_id) -> Order:
    """Return a single order or raise `OrderNotFound`."""

    try:
        return _base_queryset().get(pk=int(order_id))
    except (Order.DoesNotExist, TypeError, ValueError):
        raise OrderNotFound(order_id=order_id) from None


def get_order_for(actor, order_id) -> Order:
    """Scoped lookup: other parties' orders are reported as not found."""

    try:
        return get_orders_for(actor.id, actor.actor_role).get(pk=int(order_id))
    except (Order.DoesNotExist, TypeError, ValueError):
        raise OrderNotFound(order_id=order_id) from None


def list_status_events(order_id) -> QuerySet[OrderStatusEvent]:
    """History for an order, oldest first."""

    return OrderStatusEvent.objects.select_related("actor").filter(order_id=order_id).order_by("created_at", "id")


def latest_status_event(order_id) -> Optional[OrderStatusEvent]:
    return OrderStatusEvent.objects.filter(order_id=order_id).order_by("-created_at", "-id").first()


def order_analytics(recent_limit: int = 10, top_sellers_limit: int = 5) -> dict:
    """Aggregate figures for the admin dashboard.

    Revenue only counts completed orders.
    """

    zero = Decimal("0.00")
    completed = Q(status=OrderStatus.COMPLETED)
    totals = Order.objects.aggregate(
        total_orders=Count("id"),
        pending_orders=Count("id", filter=Q(status__in=VERIFICATION_QUEUE)),
        completed_orders=Count("id", filter=completed),
        total_revenue=Coalesce(Sum("total", filter=completed), zero, output_field=DecimalField(**MONEY)),
    )

    User = get_user_model()
    recent = Order.objects.order_by("-created_at", "-id").values("id", "customer_id", "total", "status", "created_at")[
        :recent_limit
    ]
    top = (
        Order.objects.values("seller_id", "seller__shop_name")
        .annotate(
            order_count=Count("id"),
            revenue=Coalesce(Sum("total", filter=completed), zero, output_field=DecimalField(**MONEY)),
        )
        .order_by("-order_count", "seller_id")[:top_sellers_limit]
    )
    return {
        **totals,
        "total_customers": User.objects.filter(role=UserRole.CUSTOMER).count(),
        "total_sellers": User.objects.filter(role=UserRole.SELLER, seller_status=ActiveInactive.ACTIVE).count(),
        "recent_orders": list(recent),
        "top_sellers": [
            {
                "seller_id": row["seller_id"],
                "shop_name": row["seller__shop_name"],
                "order_count": row["order_count"],
                "revenue": row["revenue"],
            }
            for row in top
        ],
    }
