from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import DeductionCalculationType, PayrollRunStatus, PayslipItemType


@dataclass(frozen=True)
class AllowanceType:
    allowance_type_id: int
    name: str
    description: Optional[str] = None
    is_fixed: bool = True


@dataclass(frozen=True)
class UserAllowance:
    user_allowance_id: int
    user_id: int
    allowance_type_id: int
    amount: Decimal
    allowance_type_name: str = ""


@dataclass(frozen=True)
class DeductionType:
    """Jenis potongan; ``calculation_type`` menentukan rumusnya."""

    deduction_type_id: int
    name: str
    calculation_type: DeductionCalculationType
    description: Optional[str] = None
    rule_amount: Optional[Decimal] = None
    rule_percentage: Optional[Decimal] = None
    is_mandatory: bool = False


@dataclass(frozen=True)
class UserDeduction:
    user_deduction_id: int
    user_id: int
    deduction_type_id: int
    assigned_amount: Optional[Decimal] = None
    assigned_percentage: Optional[Decimal] = None
    deduction_type_name: str = ""


@dataclass(frozen=True)
class PayslipLine:
    item_type: PayslipItemType
    description: str
    amount: Decimal


@dataclass(frozen=True)
class CalculatedPayslip:
    """Result of the payroll calculation for one employee, before it is stored."""

    user_id: int
    base_salary: Decimal
    total_allowance: Decimal
    gross_pay: Decimal
    total_deduction: Decimal
    net_pay: Decimal
    attendance_days: int
    late_days: int
    alpha_days: int
    working_days: int
    items: tuple[PayslipLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PayrollRun:
    payroll_run_id: int
    period_start: date
    period_end: date
    execution_date: datetime
    status: PayrollRunStatus
    executed_by_id: Optional[int] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class PayslipItem:
    payslip_item_id: int
    payslip_id: int
    item_type: PayslipItemType
    description: str
    amount: Decimal


@dataclass(frozen=True)
class Payslip:
    payslip_id: int
    payroll_run_id: int
    user_id: int
    base_salary: Decimal
    total_allowance: Decimal
    gross_pay: Decimal
    total_deduction: Decimal
    net_pay: Decimal
    attendance_days: int
    late_days: int
    alpha_days: int
    working_days: int
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    run_status: Optional[PayrollRunStatus] = None
    created_at: Optional[datetime] = None
    items: tuple[PayslipItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FailedPayslip:
    user_id: int
    reason: str

    def __str__(self) -> str:
        return f"{self.user_id} ({self.reason})"


@dataclass(frozen=True)
class PayrollRunResult:
    payroll_run_id: int
    status: PayrollRunStatus
    processed_users: int
    successful_payslips: int
    failed: tuple[FailedPayslip, ...] = field(default_factory=tuple)

    @property
    def failed_user_ids(self) -> list[str]:
        return [str(f) for f in self.failed]


@dataclass(frozen=True)
class RunEmployee:
    """Employee included in a payroll run, with the payslip generated for them."""

    user_id: int
    name: str
    payslip: Payslip
