"""
Order status lifecycle.

Orders start PENDING. Only owners move orders between statuses; the graph is
currently complete (any status may follow any other, including COMPLETED back
to PENDING) and lives in ALLOWED_TRANSITIONS so it can be narrowed.
"""
from django.db import models

from portal.core.context import ROLE_OWNER
from .exceptions import StatusTransitionError, TransitionNotPermitted


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'In Arrears'
    PROCESSING = 'PROCESSING', 'In Process'
    COMPLETED = 'COMPLETED', 'Invoiced'
    CANCELLED = 'CANCELLED', 'Cancelled'


INITIAL_STATUS = OrderStatus.PENDING

STATUS_LABELS = {
    OrderStatus.PENDING: 'In Arrears',
    OrderStatus.PROCESSING: 'In Process',
    OrderStatus.COMPLETED: 'Invoiced',
    OrderStatus.CANCELLED: 'Cancelled',
}

STATUS_COLORS = {
    OrderStatus.PENDING: 'orange',
    OrderStatus.PROCESSING: 'blue',
    OrderStatus.COMPLETED: 'purple',
    OrderStatus.CANCELLED: 'red',
}

UNKNOWN_STATUS_COLOR = 'gray'

ALLOWED_TRANSITIONS = {
    status: frozenset(OrderStatus.values) for status in OrderStatus.values
}


def status_label(code):
    return STATUS_LABELS.get(code, str(code))


def status_badge(code):
    """(label, color) for a status code; unknown codes show as themselves in gray"""
    if code in STATUS_LABELS:
        return STATUS_LABELS[code], STATUS_COLORS[code]
    return str(code), UNKNOWN_STATUS_COLOR


def _require_known(code):
    if code not in OrderStatus.values:
        raise StatusTransitionError(f'Unknown order status: {code!r}')


def check_transition(current, target, role):
    """Raise unless an actor with this role may move an order from current to target"""
    _require_known(current)
    _require_known(target)
    if role != ROLE_OWNER:
        raise TransitionNotPermitted('Only owners can change an order status.')
    if target not in ALLOWED_TRANSITIONS[current]:
        raise StatusTransitionError(f'Cannot move an order from {current} to {target}.')


def can_transition(current, target, role):
    try:
        check_transition(current, target, role)
    except StatusTransitionError:
        return False
    return True


def check_initial_status(status, role):
    """Client users may only create orders in the initial status"""
    _require_known(status)
    if role != ROLE_OWNER and status != INITIAL_STATUS:
        raise TransitionNotPermitted(f'New orders must start as {INITIAL_STATUS}.')
