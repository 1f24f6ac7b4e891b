"""Order workflow API endpoints.

Customers check out and follow their orders, sellers see orders addressed
to them and move confirmed orders to delivery, admins drive verification.
"""

import logging

import sentry_sdk
from django.db import DatabaseError
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from orders.exceptions import OrderWorkflowError
from orders.permissions import IsCustomer, IsMarketplaceAdmin
from orders.selectors import get_order_for, get_orders_for, list_status_events, order_analytics
from orders.serializers import (
    CheckoutResultSerializer,
    CheckoutSerializer,
    OrderAnalyticsSerializer,
    OrderSerializer,
    OrderStatusEventSerializer,
    OrderTransitionSerializer,
    PaymentStatusSerializer,
)
from orders.services import checkout_cart, update_payment_status
from orders.transitions import transition_order
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

logger = logging.getLogger("marketplace.orders")

ErrorSerializer = inline_serializer(
    name="OrdersError", fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()}
)


def _error_response(exc: OrderWorkflowError) -> Response:
    return Response({"detail": exc.detail, "code": exc.code}, status=exc.status_code)


def _invalid_payload(errors) -> Response:
    return Response(
        {"detail": "Invalid payload", "code": "validation_error", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class OrdersHealthView(APIView):
    """Basic health endpoint for the orders app."""

    permission_classes = [AllowAny]
    throttle_scope = "orders"

    @extend_schema(tags=["Orders Endpoints"], summary="Orders health")
    def get(self, request, *args, **kwargs):
        return Response({"status": "ok"})


class OrderListCreateView(APIView):
    """List the caller's visible orders or check out a cart.

    Checkout creates one order per seller present in the cart.
    """

    throttle_scope = "orders"
    throttle_classes = [ScopedRateThrottle]

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsCustomer()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.request.method == "POST":
            self.throttle_scope = "orders_write"
        return super().get_throttles()

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="List orders",
        description="Customers see their own orders, sellers orders addressed to them, admins every order.",
        parameters=[OpenApiParameter(name="status", location=OpenApiParameter.QUERY, required=False, type=str)],
        responses={200: OrderSerializer(many=True)},
    )
    def get(self, request, *args, **kwargs):
        qs = get_orders_for(request.user.id, request.user.actor_role, status=request.query_params.get("status"))
        paginator = OrderPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(OrderSerializer(page, many=True).data)

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="Checkout cart",
        description=(
            "Splits the cart into one order per seller. Returns 201 when every seller-order was created, "
            "207 when only some were, and 400 when none were."
        ),
        request=CheckoutSerializer,
        responses={201: CheckoutResultSerializer, 207: CheckoutResultSerializer, 400: ErrorSerializer},
        examples=[
            OpenApiExample(
                "COD checkout",
                value={
                    "payment_method": "cod",
                    "delivery_address": {
                        "address_line1": "12 MG Road",
                        "city": "Pune",
                        "state": "MH",
                        "pin_code": "411001",
                    },
                    "items": [
                        {"seller_id": 7, "product_id": "p-1", "title": "Rice", "quantity": 2, "price": "100.00"},
                    ],
                },
                request_only=True,
            ),
        ],
    )
    def post(self, request, *args, **kwargs):
        s = CheckoutSerializer(data=request.data)
        if not s.is_valid():
            logger.warning(
                "orders_checkout_invalid_payload",
                extra={"user_id": request.user.id, "errors": s.errors},
            )
            return _invalid_payload(s.errors)
        body = s.validated_data
        try:
            result = checkout_cart(
                customer=request.user,
                lines=body["items"],
                payment_method=body["payment_method"],
                delivery_address=body["delivery_address"],
            )
        except OrderWorkflowError as exc:
            return _error_response(exc)

        data = CheckoutResultSerializer(result).data
        if not result.orders:
            return Response(
                {"detail": "No orders could be created", "code": "checkout_failed", **data},
                status=status.HTTP_400_BAD_REQUEST,
            )
        code = status.HTTP_207_MULTI_STATUS if result.failures else status.HTTP_201_CREATED
        return Response(data, status=code)


class OrderDetailView(APIView):
    """Read an order or request a status transition."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"
    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        if self.request.method == "PATCH":
            self.throttle_scope = "orders_write"
        return super().get_throttles()

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="Get order",
        responses={200: OrderSerializer, 404: ErrorSerializer},
    )
    def get(self, request, order_id: str, *args, **kwargs):
        try:
            order = get_order_for(request.user, order_id)
        except OrderWorkflowError as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="Transition order status",
        description=(
            "Moves the order to `status`. Verification steps are admin only. Accepting or rejecting needs the "
            "matching `seller_response`/`buyer_response`; rejecting also needs `reject_reason`. "
            "`contact_attempts`, when sent, must equal the count expected after the request."
        ),
        request=OrderTransitionSerializer,
        responses={
            200: OrderSerializer,
            400: ErrorSerializer,
            403: ErrorSerializer,
            404: ErrorSerializer,
            409: ErrorSerializer,
            503: ErrorSerializer,
        },
        examples=[
            OpenApiExample(
                "Contact seller",
                value={"status": "seller_contacted", "contact_attempts": 1},
                request_only=True,
            ),
            OpenApiExample(
                "Seller rejected",
                value={"status": "seller_rejected", "seller_response": "Out of stock", "reject_reason": "No stock"},
                request_only=True,
            ),
        ],
    )
    def patch(self, request, order_id: str, *args, **kwargs):
        s = OrderTransitionSerializer(data=request.data)
        if not s.is_valid():
            return _invalid_payload(s.errors)
        body = s.validated_data
        try:
            order = get_order_for(request.user, order_id)
            order = transition_order(
                order,
                body["status"],
                request.user.actor_role,
                payload=body,
                actor=request.user,
            )
        except OrderWorkflowError as exc:
            logger.info(
                "orders_transition_rejected",
                extra={"user_id": request.user.id, "order_id": order_id, "code": exc.code},
            )
            return _error_response(exc)
        except DatabaseError as exc:
            logger.exception(
                "orders_transition_failed",
                extra={"user_id": request.user.id, "order_id": order_id, "to_status": body["status"]},
            )
            sentry_sdk.capture_exception(exc)
            return Response(
                {"detail": "Order status could not be saved", "code": "storage_error"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(OrderSerializer(order).data)


class OrderHistoryView(APIView):
    """Status history of an order, oldest first."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"
    throttle_classes = [ScopedRateThrottle]

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="Order status history",
        responses={200: OrderStatusEventSerializer(many=True), 404: ErrorSerializer},
    )
    def get(self, request, order_id: str, *args, **kwargs):
        try:
            order = get_order_for(request.user, order_id)
        except OrderWorkflowError as exc:
            return _error_response(exc)
        return Response(OrderStatusEventSerializer(list_status_events(order.id), many=True).data)


class OrderPaymentStatusView(APIView):
    """Admin update of an order's payment status."""

    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]
    throttle_scope = "orders_write"
    throttle_classes = [ScopedRateThrottle]

    @extend_schema(
        tags=["Orders Endpoints"],
        summary="Update payment status",
        request=PaymentStatusSerializer,
        responses={200: OrderSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    )
    def patch(self, request, order_id: str, *args, **kwargs):
        s = PaymentStatusSerializer(data=request.data)
        if not s.is_valid():
            return _invalid_payload(s.errors)
        try:
            order = get_order_for(request.user, order_id)
            order = update_payment_status(
                order=order, payment_status=s.validated_data["payment_status"], actor=request.user
            )
        except OrderWorkflowError as exc:
            return _error_response(exc)
        return Response(OrderSerializer(order).data)


class OrderAnalyticsView(APIView):
    """Dashboard figures for admins."""

    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]
    throttle_scope = "orders"
    throttle_classes = [ScopedRateThrottle]

    @extend_schema(tags=["Orders Endpoints"], summary="Order analytics", responses={200: OrderAnalyticsSerializer})
    def get(self, request, *args, **kwargs):
        return Response(OrderAnalyticsSerializer(order_analytics()).data)
