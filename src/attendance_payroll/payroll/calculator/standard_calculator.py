from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ...attendance.model import AttendanceRecap
from ...core.enums import DeductionCalculationType, PayslipItemType
from ..model import CalculatedPayslip, DeductionType, PayslipLine, UserAllowance, UserDeduction
from .base import PayrollCalculator

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _d(value: Optional[Decimal]) -> Decimal:
    return Decimal(value) if value is not None else ZERO


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule set.

    gross = base salary + every allowance; each deduction type contributes
    according to its calculation type; net = gross - deductions. Amounts are
    rounded half-up to cents and only positive deductions become line items.
    """

    def deduction_amount(
        self,
        deduction_type: DeductionType,
        *,
        base_salary: Decimal,
        gross_pay: Decimal,
        recap: AttendanceRecap,
        user_deduction: Optional[UserDeduction],
    ) -> Decimal:
        calc = deduction_type.calculation_type

        if calc == DeductionCalculationType.FIXED_USER:
            if user_deduction is None:
                return ZERO
            return money(_d(user_deduction.assigned_amount))

        if calc == DeductionCalculationType.PERCENTAGE_USER:
            if user_deduction is None:
                return ZERO
            pct = user_deduction.assigned_percentage
            if pct is None:
                pct = deduction_type.rule_percentage
            return money(base_salary * _d(pct) / HUNDRED)

        if calc == DeductionCalculationType.PER_LATE_INSTANCE:
            return money(_d(deduction_type.rule_amount) * recap.total_terlambat)

        if calc == DeductionCalculationType.PER_ALPHA_DAY:
            return money(_d(deduction_type.rule_amount) * recap.total_alpha)

        if calc == DeductionCalculationType.PERCENTAGE_ALPHA_DAY:
            daily_salary = base_salary / max(recap.total_hari_kerja, 1)
            return money(daily_salary * _d(deduction_type.rule_percentage) / HUNDRED * recap.total_alpha)

        if calc == DeductionCalculationType.MANDATORY_PERCENTAGE:
            return money(gross_pay * _d(deduction_type.rule_percentage) / HUNDRED)

        raise ValueError(f"Unsupported calculation type: {calc!r}")

    def calculate(
        self,
        *,
        user_id: int,
        base_salary: Decimal,
        recap: AttendanceRecap,
        allowances: Sequence[UserAllowance],
        deduction_types: Sequence[DeductionType],
        user_deductions: Sequence[UserDeduction],
    ) -> CalculatedPayslip:
        base_salary = money(base_salary)
        items: list[PayslipLine] = []

        total_allowance = ZERO
        for allowance in allowances:
            amount = money(_d(allowance.amount))
            if amount <= 0:
                continue
            total_allowance += amount
            items.append(PayslipLine(PayslipItemType.ALLOWANCE, allowance.allowance_type_name, amount))

        gross_pay = base_salary + total_allowance

        by_type = {ud.deduction_type_id: ud for ud in user_deductions}
        total_deduction = ZERO
        for deduction_type in sorted(deduction_types, key=lambda t: t.name.lower()):
            amount = self.deduction_amount(
                deduction_type,
                base_salary=base_salary,
                gross_pay=gross_pay,
                recap=recap,
                user_deduction=by_type.get(deduction_type.deduction_type_id),
            )
            if amount <= 0:
                continue
            total_deduction += amount
            items.append(PayslipLine(PayslipItemType.DEDUCTION, deduction_type.name, amount))

        return CalculatedPayslip(
            user_id=int(user_id),
            base_salary=base_salary,
            total_allowance=money(total_allowance),
            gross_pay=money(gross_pay),
            total_deduction=money(total_deduction),
            net_pay=money(gross_pay - total_deduction),
            attendance_days=recap.total_masuk,
            late_days=recap.total_terlambat,
            alpha_days=recap.total_alpha,
            working_days=recap.total_hari_kerja,
            items=tuple(items),
        )
