"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Failures of the checkout commit additionally derive from CommitError; every
one of them leaves storage exactly as it was before the call.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class CommitError(DomainException):
    """Base class for failures of the checkout commit."""

    retryable = False


class EmptyCart(CommitError):
    """The checkout contained no line items."""


class InsufficientAvailability(CommitError):
    """A line could not be reserved against its availability counter."""

    def __init__(self, item_ref, requested: int, available: int) -> None:
        self.item_ref = item_ref
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient availability for {item_ref} "
            f"(need {requested}, have {available} available)"
        )


class DiscountInvalid(CommitError):
    """The discount code cannot be applied to this checkout."""

    def __init__(self, code: str, reason: str) -> None:
        self.code = code
        self.reason = reason
        super().__init__(f"Discount code '{code}' is not valid ({reason})")


class OwnerResolutionError(CommitError):
    """The owner token does not identify an account or a guest."""


class TransactionTimeout(CommitError):
    """The unit of work could not acquire its locks in time."""

    retryable = True


class IllegalStateTransition(DomainException):
    """An order status or payment status change is not allowed."""

    def __init__(self, dimension: str, current: str, requested: str, detail: str = "") -> None:
        self.dimension = dimension
        self.current = current
        self.requested = requested
        message = f"Cannot move {dimension} from {current} to {requested}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


_USER_MESSAGES: dict[type[DomainException], str] = {
    EmptyCart: "Your cart is empty.",
    InsufficientAvailability: (
        "One or more items are no longer available in the requested quantity. "
        "Please refresh your cart and try again."
    ),
    DiscountInvalid: "This discount code cannot be applied to your order.",
    OwnerResolutionError: "We could not identify who is placing this order.",
    TransactionTimeout: "The store is busy right now. Please try again.",
    IllegalStateTransition: "This order cannot be changed in that way.",
    EntityNotFoundError: "The requested record was not found.",
    ValidationError: "Some of the submitted details are invalid.",
}


def user_message(exc: DomainException) -> str:
    """Map an error onto one of a fixed set of human-readable reasons."""
    for cls in type(exc).__mro__:
        if cls in _USER_MESSAGES:
            return _USER_MESSAGES[cls]
    return "Something went wrong while processing your request."
