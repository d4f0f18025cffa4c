from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence

from ...attendance.model import AttendanceRecap
from ..model import CalculatedPayslip, DeductionType, UserAllowance, UserDeduction


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
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
        raise NotImplementedError
