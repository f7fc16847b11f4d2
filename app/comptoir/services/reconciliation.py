"""Cash drawer reconciliation arithmetic.

The expected drawer content is the opening float plus the cash sales of the
day; the difference is what was counted minus what was expected. Amounts are
handled as :class:`~decimal.Decimal` so the difference is exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from app.comptoir.core.error_catalog import AppError, ErrorCatalog

ZERO = Decimal("0")


class Variance(str, Enum):
    SURPLUS = "surplus"
    SHORTAGE = "shortage"
    EXACT = "exact"


@dataclass(frozen=True)
class Reconciliation:
    starting_cash: Decimal
    cash_sales: Decimal
    expected_total: Decimal
    actual_total: Decimal
    difference: Decimal
    variance: Variance
    tolerance: Decimal


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    try:
        # str() keeps 350.5 as 350.5 instead of its binary float expansion
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {value!r}") from exc


def expected_total(starting_cash, cash_sales) -> Decimal:
    return to_decimal(starting_cash) + to_decimal(cash_sales)


def classify_variance(difference, tolerance) -> Variance:
    """Surplus above ``tolerance``, shortage below ``-tolerance``, exact otherwise."""
    difference = to_decimal(difference)
    tolerance = to_decimal(tolerance)
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    if difference > tolerance:
        return Variance.SURPLUS
    if difference < -tolerance:
        return Variance.SHORTAGE
    return Variance.EXACT


def reconcile(*, starting_cash, cash_sales, actual_total, tolerance) -> Reconciliation:
    expected = expected_total(starting_cash, cash_sales)
    actual = to_decimal(actual_total)
    difference = actual - expected
    return Reconciliation(
        starting_cash=to_decimal(starting_cash),
        cash_sales=to_decimal(cash_sales),
        expected_total=expected,
        actual_total=actual,
        difference=difference,
        variance=classify_variance(difference, tolerance),
        tolerance=to_decimal(tolerance),
    )


def ensure_non_negative_amount(value, field: str) -> Decimal:
    if value is None:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": f"{field} is required"})
    try:
        amount = to_decimal(value)
    except ValueError as exc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": f"{field} must be a number"}) from exc
    if not amount.is_finite():
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": f"{field} must be a number"})
    if amount < 0:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": f"{field} must be greater than or equal to 0"})
    return amount
