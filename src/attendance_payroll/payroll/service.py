from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Iterable, Optional, Sequence

from ..attendance.recap import AttendanceRecapService
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import PayrollRunStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    CalculatedPayslip,
    DeductionType,
    FailedPayslip,
    PayrollRun,
    PayrollRunResult,
    Payslip,
    RunEmployee,
)
from .repository import CompensationRepository, PayrollRepository

logger = logging.getLogger(__name__)

NON_PAYROLL_ROLES = frozenset({Role.SUPER_ADMIN, Role.YAYASAN})
PAYROLL_VIEWERS = frozenset({Role.SUPER_ADMIN, Role.YAYASAN})


class PayrollService:
    """Payroll runs: generation by the Super Admin, approval by the Yayasan."""

    def __init__(
        self,
        payroll: PayrollRepository,
        compensation: CompensationRepository,
        users: UserRepository,
        recap: AttendanceRecapService,
        *,
        calculator: PayrollCalculator | None = None,
        transaction: Callable[[], ContextManager[Any]] | None = None,
        savepoint: Callable[[str], ContextManager[Any]] | None = None,
    ):
        self._payroll = payroll
        self._compensation = compensation
        self._users = users
        self._recap = recap
        self._calculator = calculator or StandardPayrollCalculator()
        self._transaction = transaction or nullcontext
        self._savepoint = savepoint or nullcontext

    @staticmethod
    def _require_role(current_role: Role, allowed: Iterable[Role]) -> None:
        if current_role not in allowed:
            raise AuthorizationError("Anda tidak memiliki akses")

    @staticmethod
    def _check_period(period_start: date, period_end: date) -> None:
        if period_start is None or period_end is None:
            raise ValidationError("Periode awal dan akhir wajib diisi")
        if period_start > period_end:
            raise ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir")

    def calculate_payslip_for_user(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
        *,
        deduction_types: Optional[Sequence[DeductionType]] = None,
        today: Optional[date] = None,
    ) -> Optional[CalculatedPayslip]:
        """Calculate (without storing) the payslip of one employee.

        Returns None when the user does not exist or has no base salary.
        """

        self._check_period(period_start, period_end)
        user = self._users.get_by_id(int(user_id))
        if not user or user.base_salary is None:
            return None

        recap = self._recap.get_recap(user.user_id, period_start, period_end, today=today)
        if deduction_types is None:
            deduction_types = self._compensation.list_deduction_types()

        return self._calculator.calculate(
            user_id=user.user_id,
            base_salary=user.base_salary,
            recap=recap,
            allowances=self._compensation.list_user_allowances(user.user_id),
            deduction_types=deduction_types,
            user_deductions=self._compensation.list_user_deductions(user.user_id),
        )

    def create_payroll_run(
        self,
        *,
        current_role: Role,
        executed_by_id: int,
        period_start: date,
        period_end: date,
        user_ids: Optional[Iterable[int]] = None,
        now: Optional[datetime] = None,
    ) -> PayrollRunResult:
        self._require_role(current_role, {Role.SUPER_ADMIN})
        self._check_period(period_start, period_end)
        now = now or now_local()

        wanted = {int(uid) for uid in user_ids} if user_ids is not None else None

        failed: list[FailedPayslip] = []
        successful = 0
        with self._transaction():
            run_id = self._payroll.create_run(
                period_start=period_start,
                period_end=period_end,
                execution_date=now,
                executed_by_id=int(executed_by_id),
            )

            candidates = [
                u
                for u in self._users.list_users()
                if u.base_salary is not None
                and u.role not in NON_PAYROLL_ROLES
                and (wanted is None or u.user_id in wanted)
            ]
            logger.info("Payroll run %s: %s user(s) to process", run_id, len(candidates))

            deduction_types = self._compensation.list_deduction_types()
            for user in candidates:
                try:
                    payslip = self.calculate_payslip_for_user(
                        user.user_id,
                        period_start,
                        period_end,
                        deduction_types=deduction_types,
                        today=now.date(),
                    )
                    if payslip is None:
                        logger.warning("Payroll run %s: skipping user %s", run_id, user.user_id)
                        failed.append(FailedPayslip(user.user_id, "Skipped"))
                        continue
                    # header and items are kept or dropped together
                    with self._savepoint(f"payslip_{int(user.user_id)}"):
                        self._payroll.create_payslip(payroll_run_id=run_id, payslip=payslip)
                except Exception:
                    logger.exception("Payroll run %s: calculation failed for user %s", run_id, user.user_id)
                    failed.append(FailedPayslip(user.user_id, "Error"))
                    continue
                successful += 1

        logger.info(
            "Payroll run %s created: %s payslip(s), %s failed/skipped", run_id, successful, len(failed)
        )
        return PayrollRunResult(
            payroll_run_id=run_id,
            status=PayrollRunStatus.PENDING_APPROVAL,
            processed_users=len(candidates),
            successful_payslips=successful,
            failed=tuple(failed),
        )

    def list_runs(self, *, current_role: Role, status: Optional[PayrollRunStatus] = None) -> Sequence[PayrollRun]:
        self._require_role(current_role, PAYROLL_VIEWERS)
        return self._payroll.list_runs(status=status)

    def get_run(self, *, current_role: Role, run_id: int) -> PayrollRun:
        self._require_role(current_role, PAYROLL_VIEWERS)
        run = self._payroll.get_run(int(run_id))
        if not run:
            raise NotFoundError("Payroll run tidak ditemukan")
        return run

    def list_run_employees(self, *, current_role: Role, run_id: int) -> Sequence[RunEmployee]:
        run = self.get_run(current_role=current_role, run_id=run_id)
        employees = []
        for payslip in self._payroll.list_payslips_for_run(run.payroll_run_id):
            user = self._users.get_by_id(payslip.user_id)
            employees.append(RunEmployee(payslip.user_id, user.name if user else "Nama Tidak Diketahui", payslip))
        return sorted(employees, key=lambda e: e.name.lower())

    def approve_run(self, *, current_role: Role, run_id: int, approver_id: int, now: Optional[datetime] = None) -> None:
        self._require_role(current_role, {Role.YAYASAN})
        run = self._get_pending_run(run_id)
        if not self._payroll.mark_approved(run.payroll_run_id, approved_by_id=int(approver_id), approved_at=now or now_local()):
            raise ValidationError("Payroll run sudah diproses")
        logger.info("Payroll run %s approved by %s", run.payroll_run_id, approver_id)

    def reject_run(
        self,
        *,
        current_role: Role,
        run_id: int,
        approver_id: int,
        rejection_reason: str,
        now: Optional[datetime] = None,
    ) -> None:
        self._require_role(current_role, {Role.YAYASAN})
        reason = require_non_empty(rejection_reason, "Alasan penolakan")
        run = self._get_pending_run(run_id)
        ok = self._payroll.mark_rejected(
            run.payroll_run_id,
            rejected_by_id=int(approver_id),
            rejected_at=now or now_local(),
            rejection_reason=reason,
        )
        if not ok:
            raise ValidationError("Payroll run sudah diproses")
        logger.info("Payroll run %s rejected by %s", run.payroll_run_id, approver_id)

    def _get_pending_run(self, run_id: int) -> PayrollRun:
        run = self._payroll.get_run(int(run_id))
        if not run:
            raise NotFoundError("Payroll run tidak ditemukan")
        if run.status != PayrollRunStatus.PENDING_APPROVAL:
            raise ValidationError(f"Payroll run berstatus {run.status.value}, tidak dapat diproses lagi")
        return run

    def get_payslip(self, *, current_role: Role, user_id: int, payslip_id: int) -> Payslip:
        """Admins and the Yayasan see any payslip; an employee only their own approved ones."""

        payslip = self._payroll.get_payslip(int(payslip_id))
        if not payslip:
            raise NotFoundError("Slip gaji tidak ditemukan")
        if current_role in PAYROLL_VIEWERS:
            return payslip
        if payslip.user_id != int(user_id) or payslip.run_status != PayrollRunStatus.APPROVED:
            raise NotFoundError("Slip gaji tidak ditemukan")
        return payslip

    def list_my_payslips(
        self,
        user_id: int,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Sequence[Payslip]:
        """Payslips of approved runs, optionally for the month a run period starts in."""

        if month is not None and (int(month) < 1 or int(month) > 12):
            raise ValidationError("Bulan harus antara 1 dan 12")
        if month is not None and year is None:
            raise ValidationError("Tahun wajib diisi jika bulan diisi")

        payslips = self._payroll.list_payslips_for_user(int(user_id), run_status=PayrollRunStatus.APPROVED)
        if year is not None:
            payslips = [p for p in payslips if p.period_start and p.period_start.year == int(year)]
        if month is not None:
            payslips = [p for p in payslips if p.period_start.month == int(month)]
        return payslips
