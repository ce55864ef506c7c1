"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts in minor units with currency
- DateRange: Represents a range of dates (check-in to check-out)
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError


def normalize_currency(currency: str | None) -> str:
    """Upper-case ISO 4217 code, e.g. ' ngn ' -> 'NGN'"""
    return str(currency or '').strip().upper()


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are integers in the currency's minor unit (kobo, cents).
    Immutable and supports addition and subtraction.
    """
    amount_minor: int
    currency: str = 'NGN'

    def __post_init__(self):
        if not isinstance(self.amount_minor, int) or isinstance(self.amount_minor, bool):
            raise ValidationError("Amount must be an integer number of minor units")
        if self.amount_minor < 0:
            raise ValidationError("Amount cannot be negative")
        currency = normalize_currency(self.currency)
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Unsupported currency: {self.currency}")
        object.__setattr__(self, 'currency', currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount_minor + other.amount_minor, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount_minor - other.amount_minor, self.currency)

    def matches(self, amount_minor: int, currency: str | None) -> bool:
        """True when the given amount and currency are exactly this money"""
        return (
            amount_minor == self.amount_minor
            and normalize_currency(currency) == self.currency
        )

    def __str__(self):
        return f"{self.amount_minor / 100:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount_minor}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for booking periods, availability checks, etc.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValidationError(
                f"Start date ({self.start_date}) must be before end date ({self.end_date})"
            )

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Two ranges overlap if they share any dates.
        Note: end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        # Overlap formula: start1 < end2 AND end1 > start2
        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    def contains(self, check_date: date) -> bool:
        """
        Check if a date is within this range

        Note: start_date is inclusive, end_date is exclusive
        """
        return self.start_date <= check_date < self.end_date

    def __len__(self) -> int:
        """Number of nights in this range"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
