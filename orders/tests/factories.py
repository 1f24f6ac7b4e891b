from decimal import Decimal

from common.choices import ActorRole, OrderStatus, PaymentMethod
from orders.services import CartLine, create_order
from orders.transitions import transition_order
from users.tests.factories import AdminFactory, CustomerFactory, SellerFactory

ADDRESS = {
    "address_line1": "12 MG Road",
    "address_line2": "Near Clock Tower",
    "city": "Pune",
    "state": "MH",
    "pin_code": "411001",
}

# Admin-driven happy path; each step carries the payload it needs.
HAPPY_PATH = [
    (OrderStatus.SELLER_CONTACTED, {}),
    (OrderStatus.SELLER_ACCEPTED, {"seller_response": "Stock available"}),
    (OrderStatus.BUYER_CONTACTED, {}),
    (OrderStatus.CONFIRMED, {"buyer_response": "Buyer confirmed by phone"}),
    (OrderStatus.OUT_FOR_DELIVERY, {}),
    (OrderStatus.DELIVERED, {}),
    (OrderStatus.COMPLETED, {}),
]


def cart_line(seller, price="100.00", quantity=1, product_id="p-1", title="Basmati Rice", unit="kg"):
    return CartLine(
        seller_id=seller.id,
        product_id=product_id,
        title=title,
        quantity=quantity,
        price=Decimal(price),
        unit=unit,
    )


def make_order(customer=None, seller=None, payment_method=PaymentMethod.ONLINE, lines=None):
    customer = customer or CustomerFactory()
    seller = seller or SellerFactory()
    lines = lines or [cart_line(seller, price="100.00", quantity=2), cart_line(seller, "50.00", 1, "p-2", "Dal")]
    return create_order(
        customer=customer,
        seller=seller,
        lines=lines,
        payment_method=payment_method,
        delivery_address=ADDRESS,
    )


def advance(order, target, admin=None):
    """Walk `order` along the happy path as an admin until it reaches `target`."""

    admin = admin or AdminFactory()
    for to_status, payload in HAPPY_PATH:
        if order.status == target:
            break
        order = transition_order(order, to_status, ActorRole.ADMIN, payload=payload, actor=admin)
    assert order.status == target
    return order
