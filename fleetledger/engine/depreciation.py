"""Vehicle valuation under a fixed annual declining-balance depreciation rate.

Pure functions. No I/O.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from fleetledger.errors import InvalidLoanInputError

TWO_PLACES = Decimal("0.01")


def validate_rate(annual_rate: Decimal) -> None:
    if annual_rate < 0 or annual_rate >= 1:
        raise InvalidLoanInputError(
            f"Depreciation rate must be a fraction in [0, 1), got {annual_rate}"
        )


def operational_years(purchase_year: int, today: date) -> int:
    """Years in service, counting the current year. At least 1."""
    return max(1, today.year - purchase_year + 1)


def depreciated_value(initial_value: Decimal, annual_rate: Decimal, years: int) -> Decimal:
    """Value after `years` full years: initial * (1 - rate) ** years."""
    validate_rate(annual_rate)
    if years <= 0:
        return initial_value
    factor = (1 - annual_rate) ** years
    return (initial_value * factor).quantize(TWO_PLACES, ROUND_HALF_UP)


def current_vehicle_value(
    initial_value: Decimal,
    annual_rate: Decimal,
    purchase_year: int,
    today: date,
) -> Decimal:
    return depreciated_value(initial_value, annual_rate, operational_years(purchase_year, today))


def apply_year_of_depreciation(value: Decimal, annual_rate: Decimal) -> Decimal:
    return (value * (1 - annual_rate)).quantize(TWO_PLACES, ROUND_HALF_UP)
