"""Order status state machine.

`TRANSITIONS` is the single allow-list of status changes: for every source
status it maps each reachable target to the roles allowed to request it and
the payload fields it needs. `transition_order` is the only code path that
writes `Order.status`.

The write is a compare-and-set keyed on the status and contact counter read
by the caller, so two concurrent requests against the same snapshot cannot
both succeed. The history row is inserted in the same transaction.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from common.choices import ActorRole, OrderStatus
from django.db import transaction
from django.utils import timezone
from orders.exceptions import (
    InvalidTransition,
    OrderValidationError,
    StaleState,
    TerminalState,
    TransitionForbidden,
)
from orders.models import TERMINAL_STATUSES, Order
from orders.selectors import get_order
from orders.services import append_status_event

logger = logging.getLogger("marketplace.orders")

TEXT_FIELDS = ("note", "seller_response", "buyer_response", "reject_reason")
RESPONSE_FIELDS = ("seller_response", "buyer_response")


@dataclass(frozen=True)
class TransitionRule:
    roles: FrozenSet[str]
    required: Tuple[str, ...] = ()
    response_field: Optional[str] = None
    counts_contact: bool = False


_ADMIN = frozenset({ActorRole.ADMIN})


def _contact() -> TransitionRule:
    return TransitionRule(roles=_ADMIN, counts_contact=True)


def _seller_reply(*extra: str) -> TransitionRule:
    return TransitionRule(roles=_ADMIN, required=("seller_response", *extra), response_field="seller_response")


def _buyer_reply(*extra: str) -> TransitionRule:
    return TransitionRule(roles=_ADMIN, required=("buyer_response", *extra), response_field="buyer_response")


TRANSITIONS: Mapping[str, Mapping[str, TransitionRule]] = {
    OrderStatus.CREATED: {
        OrderStatus.PENDING_VERIFICATION: TransitionRule(roles=frozenset({ActorRole.SYSTEM, ActorRole.ADMIN})),
    },
    OrderStatus.PENDING_VERIFICATION: {
        OrderStatus.SELLER_CONTACTED: _contact(),
    },
    OrderStatus.SELLER_CONTACTED: {
        OrderStatus.SELLER_CONTACTED: _contact(),
        OrderStatus.SELLER_ACCEPTED: _seller_reply(),
        OrderStatus.SELLER_REJECTED: _seller_reply("reject_reason"),
    },
    OrderStatus.SELLER_ACCEPTED: {
        OrderStatus.BUYER_CONTACTED: _contact(),
    },
    OrderStatus.BUYER_CONTACTED: {
        OrderStatus.BUYER_CONTACTED: _contact(),
        OrderStatus.CONFIRMED: _buyer_reply(),
        OrderStatus.BUYER_REJECTED: _buyer_reply("reject_reason"),
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.OUT_FOR_DELIVERY: TransitionRule(roles=frozenset({ActorRole.ADMIN, ActorRole.SELLER})),
    },
    OrderStatus.OUT_FOR_DELIVERY: {
        OrderStatus.DELIVERED: TransitionRule(roles=frozenset({ActorRole.ADMIN, ActorRole.SELLER})),
    },
    OrderStatus.DELIVERED: {
        OrderStatus.COMPLETED: TransitionRule(roles=frozenset({ActorRole.ADMIN, ActorRole.CUSTOMER})),
    },
}


def get_rule(from_status: str, to_status: str) -> Optional[TransitionRule]:
    return TRANSITIONS.get(from_status, {}).get(to_status)


def allowed_targets(from_status: str, actor_role: Optional[str] = None) -> Tuple[str, ...]:
    """Statuses reachable from `from_status`, optionally only those `actor_role` may request."""

    rules = TRANSITIONS.get(from_status, {})
    return tuple(to for to, rule in rules.items() if actor_role is None or actor_role in rule.roles)


def _clean_payload(payload: Optional[Mapping]) -> Dict[str, str]:
    cleaned = {}
    for name in TEXT_FIELDS:
        value = (payload or {}).get(name)
        cleaned[name] = str(value).strip() if value is not None else ""
    return cleaned


def _validate_payload(rule: TransitionRule, fields: Dict[str, str]) -> Dict[str, str]:
    """Return the columns this transition writes, or raise `OrderValidationError`."""

    given = [name for name in RESPONSE_FIELDS if fields[name]]
    if len(given) > 1:
        raise OrderValidationError("Provide either seller_response or buyer_response, not both")
    if given and given[0] != rule.response_field:
        raise OrderValidationError(f"{given[0]} is not accepted for this transition")
    if fields["reject_reason"] and "reject_reason" not in rule.required:
        raise OrderValidationError("reject_reason is only accepted when rejecting")

    missing = [name for name in rule.required if not fields[name]]
    if missing:
        raise OrderValidationError(f"{', '.join(missing)} is required", missing=missing)

    return {name: value for name, value in fields.items() if value}


def _expected_attempts(payload: Optional[Mapping]) -> Optional[int]:
    raw = (payload or {}).get("contact_attempts")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise OrderValidationError("contact_attempts must be an integer") from None


def transition_order(
    order: Order,
    requested_status: str,
    actor_role: str,
    payload: Optional[Mapping] = None,
    actor=None,
) -> Order:
    """Move `order` to `requested_status` on behalf of `actor_role`.

    `order` is the snapshot the caller decided on; if the stored row no
    longer matches it, `StaleState` is raised and nothing is written.
    `payload` may carry `note`, `seller_response`, `buyer_response`,
    `reject_reason` and `contact_attempts` (the count the caller expects
    after this request).
    """

    try:
        requested = OrderStatus(requested_status)
    except ValueError:
        raise OrderValidationError("Unknown status", status=requested_status) from None
    current = order.status
    context = {"order_id": order.id, "from": current, "to": requested, "actor_role": actor_role}

    if current in TERMINAL_STATUSES:
        logger.warning("order_transition_terminal", extra=context)
        raise TerminalState(f"Order is already {current}", **context)
    rule = get_rule(current, requested)
    if rule is None:
        logger.warning("order_transition_invalid", extra=context)
        raise InvalidTransition(f"Cannot move order from {current} to {requested}", **context)
    if actor_role not in rule.roles:
        logger.warning("order_transition_forbidden", extra=context)
        raise TransitionForbidden(**context)

    updates = _validate_payload(rule, _clean_payload(payload))
    new_attempts = order.contact_attempts + (1 if rule.counts_contact else 0)
    expected = _expected_attempts(payload)
    if expected is not None and expected != new_attempts:
        logger.warning("order_transition_stale_counter", extra={**context, "expected": expected})
        raise StaleState(**context)

    with transaction.atomic():
        rows = Order.objects.filter(
            pk=order.pk,
            status=current,
            contact_attempts=order.contact_attempts,
        ).update(
            status=requested,
            contact_attempts=new_attempts,
            updated_at=timezone.now(),
            **updates,
        )
        if rows != 1:
            logger.warning("order_transition_conflict", extra=context)
            raise StaleState(**context)
        append_status_event(
            order=order,
            from_status=current,
            to_status=requested,
            actor_role=actor_role,
            actor=actor,
            note=updates.get("note", ""),
        )

    order.refresh_from_db()
    logger.info("order_transition", extra={**context, "contact_attempts": order.contact_attempts})
    return order


def apply_transition(
    order_id,
    requested_status: str,
    actor_role: str,
    payload: Optional[Mapping] = None,
    actor=None,
) -> Order:
    """Load the order by id and transition it. Raises `OrderNotFound` if absent."""

    return transition_order(get_order(order_id), requested_status, actor_role, payload=payload, actor=actor)
