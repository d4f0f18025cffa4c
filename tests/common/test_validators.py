from datetime import date
from decimal import Decimal

import pytest

from attendance_payroll.common.datetime_utils import is_working_day, iter_days, month_bounds
from attendance_payroll.common.validators import (
    optional_non_negative,
    require_email,
    require_int_in_range,
    require_non_negative,
    require_percentage,
)
from attendance_payroll.core.exceptions import ValidationError


def test_email_is_normalized():
    assert require_email("  Budi@Kampus.AC.id ") == "budi@kampus.ac.id"


@pytest.mark.parametrize("value", ["", "budi", "budi@", "budi@kampus", "a b@c.d"])
def test_invalid_email_rejected(value):
    with pytest.raises(ValidationError):
        require_email(value)


def test_percentage_bounds():
    assert require_percentage("12.5", "Persen") == Decimal("12.5")
    with pytest.raises(ValidationError):
        require_percentage(101, "Persen")
    with pytest.raises(ValidationError):
        require_percentage("-1", "Persen")


def test_optional_non_negative_treats_blank_as_none():
    assert optional_non_negative("", "Gaji") is None
    assert optional_non_negative(None, "Gaji") is None
    with pytest.raises(ValidationError):
        optional_non_negative("abc", "Gaji")


def test_int_range():
    assert require_int_in_range("23", "Jam", 0, 23) == 23
    with pytest.raises(ValidationError):
        require_int_in_range(24, "Jam", 0, 23)


def test_month_bounds_handles_leap_year():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    with pytest.raises(ValidationError):
        month_bounds(2024, 13)
    with pytest.raises(ValidationError):
        month_bounds(0, 1)
    with pytest.raises(ValidationError):
        month_bounds(10000, 12)


def test_working_days_are_monday_to_friday():
    week = list(iter_days(date(2026, 2, 2), date(2026, 2, 8)))
    assert [is_working_day(d) for d in week] == [True, True, True, True, True, False, False]


@pytest.mark.parametrize("value", ["NaN", "nan", "Infinity", "-inf", Decimal("NaN")])
def test_non_finite_numbers_rejected(value):
    with pytest.raises(ValidationError):
        require_non_negative(value, "Jumlah")
    with pytest.raises(ValidationError):
        require_percentage(value, "Persen")
