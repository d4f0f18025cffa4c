from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import DeductionCalculationType, PayrollRunStatus
from .model import (
    AllowanceType,
    CalculatedPayslip,
    DeductionType,
    PayrollRun,
    Payslip,
    UserAllowance,
    UserDeduction,
)


class CompensationRepository(Protocol):
    # Allowance types
    def list_allowance_types(self) -> Sequence[AllowanceType]:
        raise NotImplementedError

    def get_allowance_type(self, allowance_type_id: int) -> Optional[AllowanceType]:
        raise NotImplementedError

    def get_allowance_type_by_name(self, name: str) -> Optional[AllowanceType]:
        raise NotImplementedError

    def create_allowance_type(self, *, name: str, description: Optional[str], is_fixed: bool) -> int:
        raise NotImplementedError

    def update_allowance_type(
        self, allowance_type_id: int, *, name: str, description: Optional[str], is_fixed: bool
    ) -> bool:
        raise NotImplementedError

    def delete_allowance_type(self, allowance_type_id: int) -> bool:
        raise NotImplementedError

    # User allowances
    def list_user_allowances(self, user_id: int) -> Sequence[UserAllowance]:
        raise NotImplementedError

    def get_user_allowance(self, user_allowance_id: int) -> Optional[UserAllowance]:
        raise NotImplementedError

    def find_user_allowance(self, user_id: int, allowance_type_id: int) -> Optional[UserAllowance]:
        raise NotImplementedError

    def create_user_allowance(self, *, user_id: int, allowance_type_id: int, amount: Decimal) -> int:
        raise NotImplementedError

    def update_user_allowance(self, user_allowance_id: int, *, amount: Decimal) -> bool:
        raise NotImplementedError

    def delete_user_allowance(self, user_allowance_id: int) -> bool:
        raise NotImplementedError

    # Deduction types
    def list_deduction_types(self) -> Sequence[DeductionType]:
        raise NotImplementedError

    def get_deduction_type(self, deduction_type_id: int) -> Optional[DeductionType]:
        raise NotImplementedError

    def get_deduction_type_by_name(self, name: str) -> Optional[DeductionType]:
        raise NotImplementedError

    def create_deduction_type(
        self,
        *,
        name: str,
        description: Optional[str],
        calculation_type: DeductionCalculationType,
        rule_amount: Optional[Decimal],
        rule_percentage: Optional[Decimal],
        is_mandatory: bool,
    ) -> int:
        raise NotImplementedError

    def update_deduction_type(
        self,
        deduction_type_id: int,
        *,
        name: str,
        description: Optional[str],
        calculation_type: DeductionCalculationType,
        rule_amount: Optional[Decimal],
        rule_percentage: Optional[Decimal],
        is_mandatory: bool,
    ) -> bool:
        raise NotImplementedError

    def delete_deduction_type(self, deduction_type_id: int) -> bool:
        raise NotImplementedError

    def count_user_deductions(self, deduction_type_id: int) -> int:
        raise NotImplementedError

    # User deductions
    def list_user_deductions(self, user_id: int) -> Sequence[UserDeduction]:
        raise NotImplementedError

    def get_user_deduction(self, user_deduction_id: int) -> Optional[UserDeduction]:
        raise NotImplementedError

    def find_user_deduction(self, user_id: int, deduction_type_id: int) -> Optional[UserDeduction]:
        raise NotImplementedError

    def create_user_deduction(
        self,
        *,
        user_id: int,
        deduction_type_id: int,
        assigned_amount: Optional[Decimal],
        assigned_percentage: Optional[Decimal],
    ) -> int:
        raise NotImplementedError

    def update_user_deduction(
        self,
        user_deduction_id: int,
        *,
        assigned_amount: Optional[Decimal],
        assigned_percentage: Optional[Decimal],
    ) -> bool:
        raise NotImplementedError

    def delete_user_deduction(self, user_deduction_id: int) -> bool:
        raise NotImplementedError


class PayrollRepository(Protocol):
    def create_run(
        self,
        *,
        period_start: date,
        period_end: date,
        execution_date: datetime,
        executed_by_id: int,
    ) -> int:
        raise NotImplementedError

    def get_run(self, payroll_run_id: int) -> Optional[PayrollRun]:
        raise NotImplementedError

    def list_runs(
        self, *, status: Optional[PayrollRunStatus] = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> Sequence[PayrollRun]:
        raise NotImplementedError

    def mark_approved(self, payroll_run_id: int, *, approved_by_id: int, approved_at: datetime) -> bool:
        """Only transitions a PENDING_APPROVAL run."""

        raise NotImplementedError

    def mark_rejected(
        self,
        payroll_run_id: int,
        *,
        rejected_by_id: int,
        rejected_at: datetime,
        rejection_reason: str,
    ) -> bool:
        """Only transitions a PENDING_APPROVAL run."""

        raise NotImplementedError

    def create_payslip(self, *, payroll_run_id: int, payslip: CalculatedPayslip) -> int:
        """Store the payslip together with its line items."""

        raise NotImplementedError

    def get_payslip(self, payslip_id: int) -> Optional[Payslip]:
        raise NotImplementedError

    def list_payslips_for_run(self, payroll_run_id: int) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_payslips_for_user(
        self,
        user_id: int,
        *,
        run_status: Optional[PayrollRunStatus] = None,
    ) -> Sequence[Payslip]:
        raise NotImplementedError
