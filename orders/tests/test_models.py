from decimal import Decimal

import pytest
from common.choices import OrderStatus
from orders.models import AppendOnlyError, OrderStatusEvent
from orders.tests.factories import make_order

pytestmark = pytest.mark.django_db


def test_status_events_are_append_only():
    order = make_order()
    event = OrderStatusEvent.objects.get(order=order)
    event.note = "rewritten"
    with pytest.raises(AppendOnlyError):
        event.save()
    with pytest.raises(AppendOnlyError):
        event.delete()
    event.refresh_from_db()
    assert event.note == "Order placed"
    assert event.to_status == OrderStatus.PENDING_VERIFICATION


def test_orderitem_line_total_property():
    order = make_order()
    first = order.items.order_by("position").first()
    assert first.line_total == Decimal("200.00")
