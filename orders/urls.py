"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import (
    OrderAnalyticsView,
    OrderDetailView,
    OrderHistoryView,
    OrderListCreateView,
    OrderPaymentStatusView,
    OrdersHealthView,
)

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list"),
    path("health/", OrdersHealthView.as_view(), name="orders-health"),
    path("analytics/", OrderAnalyticsView.as_view(), name="order-analytics"),
    # str converter so malformed ids reach the view and answer 404
    path("<str:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<str:order_id>/history/", OrderHistoryView.as_view(), name="order-history"),
    path("<str:order_id>/payment-status/", OrderPaymentStatusView.as_view(), name="order-payment-status"),
]
