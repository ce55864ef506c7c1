"""
Domain Errors

Typed errors raised by the scheduling and booking domains. They are
returned to the immediate caller and never retried internally.
"""


class DomainError(Exception):
    """Base class for all domain errors"""


class ValidationError(DomainError, ValueError):
    """
    Malformed input: bad window, out-of-bounds window, unknown timezone,
    invalid date or a preferred-time count outside 1..3.
    """


class UnavailableError(DomainError):
    """A requested time or date range conflicts with existing availability."""


class BookingConflictError(UnavailableError):
    """Raised when a property is busy for the requested dates."""


class NotFoundError(DomainError, LookupError):
    """Referenced booking or payment does not exist."""


class IllegalTransitionError(DomainError):
    """Attempted status move that is not in the transition table."""

    def __init__(self, current, event, message: str | None = None):
        self.current = current
        self.event = event
        super().__init__(
            message or f"Illegal transition from {_value(current)} on {_value(event)}"
        )


class MismatchError(DomainError):
    """
    Payment amount or currency does not match the booking expectation.

    Carries the payment record (already marked failed) so the caller can
    persist it and flag the booking for manual review.
    """

    def __init__(
        self,
        message: str,
        *,
        payment=None,
        expected_amount_minor: int | None = None,
        received_amount_minor: int | None = None,
        expected_currency: str | None = None,
        received_currency: str | None = None,
    ):
        super().__init__(message)
        self.payment = payment
        self.expected_amount_minor = expected_amount_minor
        self.received_amount_minor = received_amount_minor
        self.expected_currency = expected_currency
        self.received_currency = received_currency


def _value(item) -> str:
    return str(getattr(item, 'value', item))
