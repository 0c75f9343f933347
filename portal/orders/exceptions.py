"""Errors raised by the ordering core. All are validation errors."""


class OrderingError(ValueError):
    """Base class for ordering validation errors"""


class PricingError(OrderingError):
    """Malformed price, quantity or tax rate"""


class CartError(OrderingError):
    """Invalid cart operation (unknown line, bad quantity)"""


class ActionNotPermitted(OrderingError):
    """The actor's role may not perform this action"""


class StatusTransitionError(OrderingError):
    """Unknown status or a transition outside the status graph"""


class TransitionNotPermitted(StatusTransitionError, ActionNotPermitted):
    """The actor's role may not perform this status change"""
