from datetime import date

import pytest

from fleetledger.engine.dates import add_months, months_between, next_anchor_date
from fleetledger.errors import InvalidLoanInputError


class TestAddMonths:
    def test_simple(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_zero(self):
        assert add_months(date(2024, 1, 15), 0) == date(2024, 1, 15)

    def test_year_rollover(self):
        assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)

    def test_clamps_to_leap_february(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_clamps_to_regular_february(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_clamping_does_not_stick(self):
        # Always measured from the start date, so March gets its 31st back
        assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)

    def test_negative(self):
        assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)


class TestMonthsBetween:
    def test_same_month(self):
        assert months_between(date(2024, 1, 1), date(2024, 1, 31)) == 0

    def test_across_years(self):
        assert months_between(date(2023, 11, 20), date(2024, 2, 1)) == 3

    def test_backwards(self):
        assert months_between(date(2024, 3, 1), date(2024, 1, 1)) == -2


class TestNextAnchorDate:
    def test_without_due_day(self):
        assert next_anchor_date(date(2024, 5, 10)) == date(2024, 6, 10)

    def test_due_day_later_this_month(self):
        assert next_anchor_date(date(2024, 5, 10), 15) == date(2024, 5, 15)

    def test_due_day_already_passed(self):
        assert next_anchor_date(date(2024, 5, 10), 5) == date(2024, 6, 5)

    def test_due_day_is_today(self):
        assert next_anchor_date(date(2024, 5, 10), 10) == date(2024, 6, 10)

    def test_due_day_clamped_to_month_end(self):
        assert next_anchor_date(date(2024, 2, 10), 31) == date(2024, 2, 29)

    def test_due_day_clamped_next_month(self):
        assert next_anchor_date(date(2024, 1, 31), 30) == date(2024, 2, 29)

    @pytest.mark.parametrize("due_day", [0, 32, 40])
    def test_invalid_due_day(self, due_day):
        with pytest.raises(InvalidLoanInputError):
            next_anchor_date(date(2024, 5, 10), due_day)
