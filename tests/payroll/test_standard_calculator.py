from __future__ import annotations

from datetime import date
from decimal import Decimal

from attendance_payroll.attendance.model import AttendanceRecap
from attendance_payroll.core.enums import DeductionCalculationType, PayslipItemType
from attendance_payroll.payroll.calculator.standard_calculator import StandardPayrollCalculator, money
from attendance_payroll.payroll.model import DeductionType, UserAllowance, UserDeduction

D = Decimal


def recap(*, hari_kerja=20, hadir=15, terlambat=2, alpha=3) -> AttendanceRecap:
    return AttendanceRecap(
        user_id=1,
        period_start=date(2026, 2, 1),
        period_end=date(2026, 2, 28),
        total_hari_kerja=hari_kerja,
        total_hadir=hadir,
        total_terlambat=terlambat,
        total_alpha=alpha,
    )


def dtype(type_id, name, calc, *, amount=None, pct=None) -> DeductionType:
    return DeductionType(
        deduction_type_id=type_id,
        name=name,
        calculation_type=calc,
        rule_amount=D(amount) if amount is not None else None,
        rule_percentage=D(pct) if pct is not None else None,
    )


DEDUCTION_TYPES = [
    dtype(1, "Potongan Terlambat", DeductionCalculationType.PER_LATE_INSTANCE, amount="25000"),
    dtype(2, "Potongan Alpha", DeductionCalculationType.PERCENTAGE_ALPHA_DAY, pct="100"),
    dtype(3, "BPJS", DeductionCalculationType.MANDATORY_PERCENTAGE, pct="2"),
    dtype(4, "Denda Alpha", DeductionCalculationType.PER_ALPHA_DAY, amount="0"),
    dtype(5, "Koperasi", DeductionCalculationType.FIXED_USER),
    dtype(6, "Pajak", DeductionCalculationType.PERCENTAGE_USER, pct="5"),
]


def test_full_payslip_calculation():
    allowances = [
        UserAllowance(1, 1, 1, D("500000"), allowance_type_name="Transport"),
        UserAllowance(2, 1, 2, D("0"), allowance_type_name="Makan"),
    ]
    user_deductions = [UserDeduction(1, 1, 5, assigned_amount=D("100000"), deduction_type_name="Koperasi")]

    slip = StandardPayrollCalculator().calculate(
        user_id=1,
        base_salary=D("5000000"),
        recap=recap(),
        allowances=allowances,
        deduction_types=DEDUCTION_TYPES,
        user_deductions=user_deductions,
    )

    assert slip.base_salary == D("5000000.00")
    assert slip.total_allowance == D("500000.00")
    assert slip.gross_pay == D("5500000.00")
    # 110000 (BPJS) + 100000 (Koperasi) + 750000 (3 alpha x 250000) + 50000 (2 x 25000)
    assert slip.total_deduction == D("1010000.00")
    assert slip.net_pay == D("4490000.00")
    assert (slip.attendance_days, slip.late_days, slip.alpha_days, slip.working_days) == (17, 2, 3, 20)

    assert [(i.item_type, i.description, i.amount) for i in slip.items] == [
        (PayslipItemType.ALLOWANCE, "Transport", D("500000.00")),
        (PayslipItemType.DEDUCTION, "BPJS", D("110000.00")),
        (PayslipItemType.DEDUCTION, "Koperasi", D("100000.00")),
        (PayslipItemType.DEDUCTION, "Potongan Alpha", D("750000.00")),
        (PayslipItemType.DEDUCTION, "Potongan Terlambat", D("50000.00")),
    ]


def test_perfect_attendance_has_only_mandatory_deduction():
    slip = StandardPayrollCalculator().calculate(
        user_id=1,
        base_salary=D("4000000"),
        recap=recap(hadir=20, terlambat=0, alpha=0),
        allowances=[],
        deduction_types=DEDUCTION_TYPES,
        user_deductions=[],
    )
    assert slip.total_deduction == D("80000.00")
    assert slip.net_pay == D("3920000.00")
    assert [i.description for i in slip.items] == ["BPJS"]


def test_percentage_user_falls_back_to_type_percentage():
    calc = StandardPayrollCalculator()
    pajak = DEDUCTION_TYPES[5]

    fallback = calc.deduction_amount(
        pajak,
        base_salary=D("3000000"),
        gross_pay=D("3000000"),
        recap=recap(),
        user_deduction=UserDeduction(1, 1, 6),
    )
    assigned = calc.deduction_amount(
        pajak,
        base_salary=D("3000000"),
        gross_pay=D("3000000"),
        recap=recap(),
        user_deduction=UserDeduction(1, 1, 6, assigned_percentage=D("2.5")),
    )

    assert fallback == D("150000.00")
    assert assigned == D("75000.00")


def test_alpha_percentage_with_no_working_days_uses_one_day():
    calc = StandardPayrollCalculator()
    amount = calc.deduction_amount(
        dtype(9, "Alpha", DeductionCalculationType.PERCENTAGE_ALPHA_DAY, pct="50"),
        base_salary=D("1000000"),
        gross_pay=D("1000000"),
        recap=recap(hari_kerja=0, alpha=1),
        user_deduction=None,
    )
    assert amount == D("500000.00")


def test_money_rounds_half_up():
    assert money(D("0.125")) == D("0.13")
    assert money(D("83333.33325")) == D("83333.33")
