"""Errors raised by the order workflow.

Each error carries the HTTP status the API answers with and a short
machine-readable `code`. None of them are retried by the core.
"""

from rest_framework import status


class OrderWorkflowError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "order_error"
    default_detail = "Unable to process order request."

    def __init__(self, detail=None, **context):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)


class OrderValidationError(OrderWorkflowError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Invalid order payload."


class InvalidTransition(OrderWorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"
    default_detail = "Requested status is not reachable from the current status."


class TransitionForbidden(OrderWorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "You are not allowed to perform this transition."


class TerminalState(OrderWorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "terminal_state"
    default_detail = "Order is in a terminal status."


class StaleState(OrderWorkflowError):
    """Lost an optimistic-concurrency race; re-read the order and retry.

    Also exported as `Conflict`.
    """

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Order was modified concurrently. Refresh and retry."


Conflict = StaleState


class OrderNotFound(OrderWorkflowError):
    # Also used for orders outside the caller's visibility.
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Order not found"
