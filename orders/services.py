"""Business logic for creating orders.

Covers the write side of the order record store (order creation and
history appends), payment status updates and the checkout aggregator that
turns a multi-seller cart into one order per seller.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

import sentry_sdk
from common.choices import ActorRole, OrderStatus, PaymentMethod, PaymentStatus, UserRole
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone
from orders.exceptions import OrderValidationError, OrderWorkflowError
from orders.models import Order, OrderItem, OrderStatusEvent

logger = logging.getLogger("marketplace.orders")

CENTS = Decimal("0.01")
ADDRESS_REQUIRED_FIELDS = ("address_line1", "city", "state", "pin_code")
ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "pin_code")


def to_money(value, field_name: str = "amount") -> Decimal:
    """Parse `value` into a non-negative two-place Decimal."""

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise OrderValidationError(f"{field_name} must be a decimal amount") from None
    if not amount.is_finite() or amount < 0:
        raise OrderValidationError(f"{field_name} must be a non-negative amount")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def delivery_charge() -> Decimal:
    """Flat delivery charge applied once per seller-order."""

    return to_money(getattr(settings, "ORDERS_DELIVERY_CHARGE", "50.00"), "ORDERS_DELIVERY_CHARGE")


def cod_prepayment_rate() -> Decimal:
    return Decimal(str(getattr(settings, "ORDERS_COD_PREPAYMENT_RATE", "0.20")))


def compute_prepayment(total: Decimal, payment_method: str) -> Optional[Decimal]:
    """Upfront share of a cash-on-delivery order; None for online payment.

    Computed once at creation and never reconciled with captured payments.
    """

    if payment_method != PaymentMethod.COD:
        return None
    return (total * cod_prepayment_rate()).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    """One cart row as submitted at checkout, tagged with its seller."""

    seller_id: int
    product_id: str
    title: str
    quantity: int
    price: Decimal
    unit: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class CheckoutFailure:
    seller_id: int
    detail: str
    code: str = "order_error"


@dataclass
class CheckoutResult:
    orders: List[Order] = field(default_factory=list)
    failures: List[CheckoutFailure] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.orders) and bool(self.failures)


def normalize_cart_lines(raw_lines: Iterable[Dict]) -> List[CartLine]:
    """Validate raw cart rows and coerce them into `CartLine`s."""

    lines = []
    for idx, raw in enumerate(raw_lines or []):
        if not isinstance(raw, dict):
            raise OrderValidationError(f"items[{idx}] must be an object")
        try:
            seller_id = int(raw.get("seller_id"))
            quantity = int(raw.get("quantity"))
        except (TypeError, ValueError):
            raise OrderValidationError(f"items[{idx}] needs integer seller_id and quantity") from None
        if quantity < 1:
            raise OrderValidationError(f"items[{idx}].quantity must be at least 1")
        product_id = str(raw.get("product_id") or "").strip()
        title = str(raw.get("title") or "").strip()
        if not product_id or not title:
            raise OrderValidationError(f"items[{idx}] needs product_id and title")
        lines.append(
            CartLine(
                seller_id=seller_id,
                product_id=product_id,
                title=title,
                quantity=quantity,
                price=to_money(raw.get("price"), f"items[{idx}].price"),
                unit=str(raw.get("unit") or "").strip(),
            )
        )
    if not lines:
        raise OrderValidationError("Cart is empty")
    return lines


def normalize_delivery_address(address) -> Dict[str, str]:
    """Snapshot the delivery address; the address book entry may change later."""

    if not isinstance(address, dict):
        raise OrderValidationError("delivery_address must be an object")
    snapshot = {name: str(address.get(name) or "").strip() for name in ADDRESS_FIELDS}
    missing = [name for name in ADDRESS_REQUIRED_FIELDS if not snapshot[name]]
    if missing:
        raise OrderValidationError(f"delivery_address missing: {', '.join(missing)}")
    return snapshot


def group_lines_by_seller(lines: Iterable[CartLine]) -> "OrderedDict[int, List[CartLine]]":
    groups: "OrderedDict[int, List[CartLine]]" = OrderedDict()
    for line in lines:
        groups.setdefault(line.seller_id, []).append(line)
    return groups


def append_status_event(
    *,
    order: Order,
    from_status: str,
    to_status: str,
    actor_role: str,
    actor=None,
    note: str = "",
) -> OrderStatusEvent:
    """Append one history row. History has no update or delete path."""

    return OrderStatusEvent.objects.create(
        order=order,
        from_status=from_status,
        to_status=to_status,
        actor_role=actor_role,
        actor=actor,
        note=note or "",
    )


@transaction.atomic
def create_order(
    *,
    customer,
    seller,
    lines: List[CartLine],
    payment_method: str,
    delivery_address: Dict,
    delivery_charges: Optional[Decimal] = None,
) -> Order:
    """Persist one seller-order with its item snapshot and first history row.

    Orders enter the verification queue directly at `pending_verification`.
    """

    if payment_method not in PaymentMethod.values:
        raise OrderValidationError("Unsupported payment method")
    if not lines:
        raise OrderValidationError("Order needs at least one item")
    if any(line.seller_id != seller.id for line in lines):
        raise OrderValidationError("All items of an order must belong to its seller")

    subtotal = sum((line.line_total for line in lines), Decimal("0.00")).quantize(CENTS, rounding=ROUND_HALF_UP)
    charges = delivery_charge() if delivery_charges is None else to_money(delivery_charges, "delivery_charges")
    total = subtotal + charges

    order = Order.objects.create(
        customer=customer,
        seller=seller,
        subtotal=subtotal,
        delivery_charges=charges,
        total=total,
        payment_method=payment_method,
        payment_status=PaymentStatus.PENDING,
        prepayment_amount=compute_prepayment(total, payment_method),
        status=OrderStatus.PENDING_VERIFICATION,
        delivery_address=normalize_delivery_address(delivery_address),
    )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                position=position,
                product_id=line.product_id,
                title=line.title,
                quantity=line.quantity,
                price=line.price,
                unit=line.unit,
            )
            for position, line in enumerate(lines)
        ]
    )
    append_status_event(
        order=order,
        from_status=OrderStatus.CREATED,
        to_status=OrderStatus.PENDING_VERIFICATION,
        actor_role=ActorRole.SYSTEM,
        actor=customer,
        note="Order placed",
    )
    logger.info(
        "order_created",
        extra={
            "order_id": order.id,
            "customer_id": customer.id,
            "seller_id": seller.id,
            "total": str(total),
            "payment_method": payment_method,
        },
    )
    return order


def _resolve_seller(seller_id: int):
    User = get_user_model()
    seller = User.objects.filter(pk=seller_id, role=UserRole.SELLER).first()
    if seller is None:
        raise OrderValidationError("Seller not found", seller_id=seller_id)
    if not seller.can_sell:
        raise OrderValidationError("Seller is not accepting orders", seller_id=seller_id)
    return seller


def checkout_cart(*, customer, lines, payment_method: str, delivery_address: Dict) -> CheckoutResult:
    """Split a cart into one independent order per seller.

    A failing seller group does not roll back its siblings; the result lists
    created orders and per-seller failures side by side.
    """

    if payment_method not in PaymentMethod.values:
        raise OrderValidationError("Unsupported payment method")
    lines = list(lines or [])
    if lines and all(isinstance(line, CartLine) for line in lines):
        cart = lines
    else:
        cart = normalize_cart_lines(lines)
    address = normalize_delivery_address(delivery_address)

    result = CheckoutResult()
    for seller_id, group in group_lines_by_seller(cart).items():
        try:
            seller = _resolve_seller(seller_id)
            order = create_order(
                customer=customer,
                seller=seller,
                lines=group,
                payment_method=payment_method,
                delivery_address=address,
            )
        except OrderWorkflowError as exc:
            logger.warning(
                "checkout_group_rejected",
                extra={"customer_id": customer.id, "seller_id": seller_id, "detail": exc.detail},
            )
            result.failures.append(CheckoutFailure(seller_id=seller_id, detail=exc.detail, code=exc.code))
            continue
        except DatabaseError as exc:
            logger.exception("checkout_group_failed", extra={"customer_id": customer.id, "seller_id": seller_id})
            sentry_sdk.capture_exception(exc)
            result.failures.append(
                CheckoutFailure(seller_id=seller_id, detail="Order could not be saved", code="storage_error")
            )
            continue
        result.orders.append(order)

    logger.info(
        "checkout_result",
        extra={
            "customer_id": customer.id,
            "created_order_ids": [o.id for o in result.orders],
            "failed_sellers": [f.seller_id for f in result.failures],
        },
    )
    return result


def update_payment_status(*, order: Order, payment_status: str, actor=None) -> Order:
    """Set payment status; independent of the order's verification status."""

    if payment_status not in PaymentStatus.values:
        raise OrderValidationError("Unsupported payment status")
    previous = order.payment_status
    Order.objects.filter(pk=order.pk).update(payment_status=payment_status, updated_at=timezone.now())
    order.refresh_from_db()
    logger.info(
        "order_payment_status_updated",
        extra={
            "order_id": order.id,
            "from": previous,
            "to": payment_status,
            "actor_id": getattr(actor, "id", None),
        },
    )
    return order
