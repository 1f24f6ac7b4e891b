from itertools import product
from unittest.mock import patch

import pytest
from common.choices import ActorRole, OrderStatus
from django.db import DatabaseError
from orders.exceptions import (
    InvalidTransition,
    OrderNotFound,
    OrderValidationError,
    StaleState,
    TerminalState,
    TransitionForbidden,
)
from orders.models import TERMINAL_STATUSES, Order, OrderStatusEvent
from orders.selectors import latest_status_event
from orders.tests.factories import HAPPY_PATH, advance, make_order
from orders.transitions import TRANSITIONS, allowed_targets, apply_transition, get_rule, transition_order
from users.tests.factories import AdminFactory

pytestmark = pytest.mark.django_db

ALL_PAIRS = list(product(OrderStatus.values, OrderStatus.values))


def force_status(order, status):
    Order.objects.filter(pk=order.pk).update(status=status)
    order.refresh_from_db()
    return order


@pytest.mark.parametrize("from_status,to_status", ALL_PAIRS)
def test_only_allow_listed_transitions_succeed(from_status, to_status):
    order = force_status(make_order(), from_status)
    rule = get_rule(from_status, to_status)

    if rule is None:
        expected = TerminalState if from_status in TERMINAL_STATUSES else InvalidTransition
        with pytest.raises(expected):
            transition_order(order, to_status, ActorRole.ADMIN, payload={"note": "x"})
        order.refresh_from_db()
        assert order.status == from_status
        return

    role = sorted(rule.roles)[0]
    payload = {name: "provided" for name in rule.required}
    updated = transition_order(order, to_status, role, payload=payload)
    assert updated.status == to_status
    assert latest_status_event(order.id).to_status == to_status


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_terminal_states_reject_every_request(terminal):
    order = force_status(make_order(), terminal)
    assert order.is_terminal
    assert allowed_targets(terminal) == ()
    for to_status in OrderStatus.values:
        for role in ActorRole.values:
            with pytest.raises(TerminalState):
                transition_order(order, to_status, role, payload={"seller_response": "x", "reject_reason": "y"})


def test_contact_seller_twice_increments_counter_and_history():
    admin = AdminFactory()
    order = make_order()
    before = OrderStatusEvent.objects.filter(order=order).count()

    order = transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN, actor=admin)
    assert order.contact_attempts == 1
    order = transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN, actor=admin)
    assert order.contact_attempts == 2

    events = list(OrderStatusEvent.objects.filter(order=order).order_by("id"))[before:]
    assert [(e.from_status, e.to_status) for e in events] == [
        (OrderStatus.PENDING_VERIFICATION, OrderStatus.SELLER_CONTACTED),
        (OrderStatus.SELLER_CONTACTED, OrderStatus.SELLER_CONTACTED),
    ]
    assert all(e.actor_id == admin.id and e.actor_role == ActorRole.ADMIN for e in events)


def test_contact_buyer_counts_on_top_of_seller_contacts():
    order = advance(make_order(), OrderStatus.BUYER_CONTACTED)
    assert order.contact_attempts == 2
    order = transition_order(order, OrderStatus.BUYER_CONTACTED, ActorRole.ADMIN)
    assert order.contact_attempts == 3
    order = transition_order(order, OrderStatus.CONFIRMED, ActorRole.ADMIN, payload={"buyer_response": "ok"})
    assert order.contact_attempts == 3


def test_history_tracks_status_along_full_lifecycle():
    admin = AdminFactory()
    order = make_order()
    assert latest_status_event(order.id).to_status == order.status
    for to_status, payload in HAPPY_PATH:
        order = transition_order(order, to_status, ActorRole.ADMIN, payload=payload, actor=admin)
        assert latest_status_event(order.id).to_status == order.status
    assert order.status == OrderStatus.COMPLETED
    assert OrderStatusEvent.objects.filter(order=order).count() == len(HAPPY_PATH) + 1


@pytest.mark.parametrize(
    "from_status,to_status",
    [
        (OrderStatus.PENDING_VERIFICATION, OrderStatus.SELLER_CONTACTED),
        (OrderStatus.SELLER_CONTACTED, OrderStatus.SELLER_ACCEPTED),
        (OrderStatus.SELLER_CONTACTED, OrderStatus.SELLER_REJECTED),
        (OrderStatus.SELLER_ACCEPTED, OrderStatus.BUYER_CONTACTED),
        (OrderStatus.BUYER_CONTACTED, OrderStatus.CONFIRMED),
        (OrderStatus.BUYER_CONTACTED, OrderStatus.BUYER_REJECTED),
    ],
)
@pytest.mark.parametrize("role", [ActorRole.CUSTOMER, ActorRole.SELLER, ActorRole.SYSTEM])
def test_verification_steps_are_admin_only(from_status, to_status, role):
    order = force_status(make_order(), from_status)
    payload = {name: "x" for name in TRANSITIONS[from_status][to_status].required}
    with pytest.raises(TransitionForbidden):
        transition_order(order, to_status, role, payload=payload)
    order.refresh_from_db()
    assert order.status == from_status
    assert order.contact_attempts == 0


def test_fulfillment_roles():
    order = advance(make_order(), OrderStatus.CONFIRMED)
    with pytest.raises(TransitionForbidden):
        transition_order(order, OrderStatus.OUT_FOR_DELIVERY, ActorRole.CUSTOMER)
    order = transition_order(order, OrderStatus.OUT_FOR_DELIVERY, ActorRole.SELLER)
    order = transition_order(order, OrderStatus.DELIVERED, ActorRole.SELLER)
    with pytest.raises(TransitionForbidden):
        transition_order(order, OrderStatus.COMPLETED, ActorRole.SELLER)
    order = transition_order(order, OrderStatus.COMPLETED, ActorRole.CUSTOMER)
    assert order.status == OrderStatus.COMPLETED


def test_buyer_confirmation_requires_buyer_response():
    order = advance(make_order(), OrderStatus.BUYER_CONTACTED)
    with pytest.raises(OrderValidationError) as exc:
        transition_order(order, OrderStatus.CONFIRMED, ActorRole.ADMIN, payload={"note": "called buyer"})
    assert exc.value.context["missing"] == ["buyer_response"]
    with pytest.raises(OrderValidationError):
        transition_order(order, OrderStatus.CONFIRMED, ActorRole.ADMIN, payload={"buyer_response": "   "})
    order.refresh_from_db()
    assert order.status == OrderStatus.BUYER_CONTACTED


def test_rejections_require_reason():
    order = advance(make_order(), OrderStatus.SELLER_CONTACTED)
    with pytest.raises(OrderValidationError):
        transition_order(order, OrderStatus.SELLER_REJECTED, ActorRole.ADMIN, payload={"seller_response": "no"})
    order = transition_order(
        order,
        OrderStatus.SELLER_REJECTED,
        ActorRole.ADMIN,
        payload={"seller_response": "no", "reject_reason": "Out of stock", "note": "Seller declined"},
    )
    assert (order.seller_response, order.reject_reason, order.note) == ("no", "Out of stock", "Seller declined")
    assert latest_status_event(order.id).note == "Seller declined"


def test_seller_acceptance_requires_seller_response():
    order = advance(make_order(), OrderStatus.SELLER_CONTACTED)
    with pytest.raises(OrderValidationError):
        transition_order(order, OrderStatus.SELLER_ACCEPTED, ActorRole.ADMIN, payload={})


@pytest.mark.parametrize(
    "payload",
    [
        {"seller_response": "yes", "buyer_response": "yes"},
        {"buyer_response": "wrong party"},
        {"seller_response": "yes", "reject_reason": "not rejecting"},
    ],
)
def test_payload_fields_must_match_transition(payload):
    order = advance(make_order(), OrderStatus.SELLER_CONTACTED)
    with pytest.raises(OrderValidationError):
        transition_order(order, OrderStatus.SELLER_ACCEPTED, ActorRole.ADMIN, payload=payload)


def test_unknown_status_is_a_validation_error():
    with pytest.raises(OrderValidationError):
        transition_order(make_order(), "shipped", ActorRole.ADMIN)


def test_concurrent_verdicts_only_one_wins():
    order = advance(make_order(), OrderStatus.SELLER_CONTACTED)
    first = Order.objects.get(pk=order.pk)
    second = Order.objects.get(pk=order.pk)

    transition_order(first, OrderStatus.SELLER_ACCEPTED, ActorRole.ADMIN, payload={"seller_response": "yes"})
    with pytest.raises(StaleState):
        transition_order(
            second,
            OrderStatus.SELLER_REJECTED,
            ActorRole.ADMIN,
            payload={"seller_response": "no", "reject_reason": "changed mind"},
        )

    order.refresh_from_db()
    assert order.status == OrderStatus.SELLER_ACCEPTED
    assert order.reject_reason == ""
    assert latest_status_event(order.id).to_status == OrderStatus.SELLER_ACCEPTED


def test_concurrent_contact_attempts_are_not_lost():
    order = make_order()
    first = Order.objects.get(pk=order.pk)
    second = Order.objects.get(pk=order.pk)
    transition_order(first, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN)
    with pytest.raises(StaleState):
        transition_order(second, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN)
    order.refresh_from_db()
    assert order.contact_attempts == 1
    assert OrderStatusEvent.objects.filter(order=order, to_status=OrderStatus.SELLER_CONTACTED).count() == 1


def test_stale_contact_attempts_expectation_is_a_conflict():
    order = make_order()
    with pytest.raises(StaleState):
        transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN, payload={"contact_attempts": 5})
    order = transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN, payload={"contact_attempts": 1})
    assert order.contact_attempts == 1
    with pytest.raises(OrderValidationError):
        transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN, payload={"contact_attempts": "two"})


def test_history_failure_rolls_back_status_change():
    order = make_order()
    with patch.object(OrderStatusEvent.objects, "create", side_effect=DatabaseError("history down")):
        with pytest.raises(DatabaseError):
            transition_order(order, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN)
    order.refresh_from_db()
    assert order.status == OrderStatus.PENDING_VERIFICATION
    assert order.contact_attempts == 0
    assert latest_status_event(order.id).to_status == order.status


def test_apply_transition_by_id():
    order = make_order()
    updated = apply_transition(order.id, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN)
    assert updated.status == OrderStatus.SELLER_CONTACTED
    with pytest.raises(OrderNotFound):
        apply_transition(999999, OrderStatus.SELLER_CONTACTED, ActorRole.ADMIN)


def test_created_orders_can_be_queued_by_system():
    order = force_status(make_order(), OrderStatus.CREATED)
    assert allowed_targets(OrderStatus.CREATED, ActorRole.SYSTEM) == (OrderStatus.PENDING_VERIFICATION,)
    order = transition_order(order, OrderStatus.PENDING_VERIFICATION, ActorRole.SYSTEM)
    assert order.status == OrderStatus.PENDING_VERIFICATION
