from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import PayrollRunStatus, PayslipItemType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, to_decimal_or_none
from .model import CalculatedPayslip, PayrollRun, Payslip, PayslipItem
from .repository import PayrollRepository

_RUN_COLUMNS = """
    payroll_run_id, period_start, period_end, execution_date, status, executed_by_id,
    approved_by_id, approved_at, rejected_by_id, rejected_at, rejection_reason
"""

_PAYSLIP_SELECT = """
    SELECT p.payslip_id, p.payroll_run_id, p.user_id, p.base_salary, p.total_allowance, p.gross_pay,
           p.total_deduction, p.net_pay, p.attendance_days, p.late_days, p.alpha_days, p.working_days,
           p.created_at, r.period_start, r.period_end, r.status AS run_status
    FROM payslips p
    JOIN payroll_runs r ON r.payroll_run_id = p.payroll_run_id
"""


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_run(r: Dict[str, Any]) -> PayrollRun:
    return PayrollRun(
        payroll_run_id=int(r["payroll_run_id"]),
        period_start=r["period_start"],
        period_end=r["period_end"],
        execution_date=r["execution_date"],
        status=PayrollRunStatus(r["status"]),
        executed_by_id=_optional_int(r.get("executed_by_id")),
        approved_by_id=_optional_int(r.get("approved_by_id")),
        approved_at=r.get("approved_at"),
        rejected_by_id=_optional_int(r.get("rejected_by_id")),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
    )


def _row_to_payslip(r: Dict[str, Any], items: Iterable[PayslipItem] = ()) -> Payslip:
    return Payslip(
        payslip_id=int(r["payslip_id"]),
        payroll_run_id=int(r["payroll_run_id"]),
        user_id=int(r["user_id"]),
        base_salary=to_decimal_or_none(r["base_salary"]),
        total_allowance=to_decimal_or_none(r["total_allowance"]),
        gross_pay=to_decimal_or_none(r["gross_pay"]),
        total_deduction=to_decimal_or_none(r["total_deduction"]),
        net_pay=to_decimal_or_none(r["net_pay"]),
        attendance_days=int(r["attendance_days"]),
        late_days=int(r["late_days"]),
        alpha_days=int(r["alpha_days"]),
        working_days=int(r.get("working_days") or 0),
        period_start=r.get("period_start"),
        period_end=r.get("period_end"),
        run_status=PayrollRunStatus(r["run_status"]) if r.get("run_status") else None,
        created_at=r.get("created_at"),
        items=tuple(items),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_run(
        self,
        *,
        period_start: date,
        period_end: date,
        execution_date: datetime,
        executed_by_id: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_runs(period_start, period_end, execution_date, status, executed_by_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (period_start, period_end, execution_date, PayrollRunStatus.PENDING_APPROVAL.value, int(executed_by_id)),
            )
            return int(cur.lastrowid)

    def get_run(self, payroll_run_id: int) -> Optional[PayrollRun]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RUN_COLUMNS} FROM payroll_runs WHERE payroll_run_id=%s", (int(payroll_run_id),))
            r = fetchone(cur)
            return _row_to_run(r) if r else None

    def list_runs(
        self, *, status: Optional[PayrollRunStatus] = None, limit: int = DEFAULT_LIST_LIMIT
    ) -> Sequence[PayrollRun]:
        sql = f"SELECT {_RUN_COLUMNS} FROM payroll_runs"
        params: list = []
        if status is not None:
            sql += " WHERE status=%s"
            params.append(status.value)
        sql += " ORDER BY execution_date DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_run(r) for r in fetchall(cur)]

    def mark_approved(self, payroll_run_id: int, *, approved_by_id: int, approved_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_runs
                SET status=%s, approved_by_id=%s, approved_at=%s,
                    rejected_by_id=NULL, rejected_at=NULL, rejection_reason=NULL
                WHERE payroll_run_id=%s AND status=%s
                """,
                (
                    PayrollRunStatus.APPROVED.value,
                    int(approved_by_id),
                    approved_at,
                    int(payroll_run_id),
                    PayrollRunStatus.PENDING_APPROVAL.value,
                ),
            )
            return cur.rowcount > 0

    def mark_rejected(
        self,
        payroll_run_id: int,
        *,
        rejected_by_id: int,
        rejected_at: datetime,
        rejection_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_runs
                SET status=%s, rejected_by_id=%s, rejected_at=%s, rejection_reason=%s,
                    approved_by_id=NULL, approved_at=NULL
                WHERE payroll_run_id=%s AND status=%s
                """,
                (
                    PayrollRunStatus.REJECTED.value,
                    int(rejected_by_id),
                    rejected_at,
                    rejection_reason,
                    int(payroll_run_id),
                    PayrollRunStatus.PENDING_APPROVAL.value,
                ),
            )
            return cur.rowcount > 0

    def create_payslip(self, *, payroll_run_id: int, payslip: CalculatedPayslip) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payslips(
                    payroll_run_id, user_id, base_salary, total_allowance, gross_pay, total_deduction,
                    net_pay, attendance_days, late_days, alpha_days, working_days
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(payroll_run_id),
                    payslip.user_id,
                    payslip.base_salary,
                    payslip.total_allowance,
                    payslip.gross_pay,
                    payslip.total_deduction,
                    payslip.net_pay,
                    payslip.attendance_days,
                    payslip.late_days,
                    payslip.alpha_days,
                    payslip.working_days,
                ),
            )
            payslip_id = int(cur.lastrowid)
            if payslip.items:
                cur.executemany(
                    "INSERT INTO payslip_items(payslip_id, item_type, description, amount) VALUES(%s,%s,%s,%s)",
                    [(payslip_id, i.item_type.value, i.description, i.amount) for i in payslip.items],
                )
            return payslip_id

    def _items_for(self, cur, payslip_ids: Sequence[int]) -> dict[int, list[PayslipItem]]:
        by_payslip: dict[int, list[PayslipItem]] = {pid: [] for pid in payslip_ids}
        if not payslip_ids:
            return by_payslip
        cur.execute(
            f"""
            SELECT payslip_item_id, payslip_id, item_type, description, amount
            FROM payslip_items
            WHERE payslip_id IN ({in_clause(payslip_ids)})
            ORDER BY payslip_item_id
            """,
            tuple(payslip_ids),
        )
        for r in fetchall(cur):
            by_payslip[int(r["payslip_id"])].append(
                PayslipItem(
                    payslip_item_id=int(r["payslip_item_id"]),
                    payslip_id=int(r["payslip_id"]),
                    item_type=PayslipItemType(r["item_type"]),
                    description=r["description"],
                    amount=to_decimal_or_none(r["amount"]),
                )
            )
        return by_payslip

    def _select_payslips(self, where: str, params: tuple) -> list[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_PAYSLIP_SELECT + where, params)
            rows = fetchall(cur)
            items = self._items_for(cur, [int(r["payslip_id"]) for r in rows])
            return [_row_to_payslip(r, items[int(r["payslip_id"])]) for r in rows]

    def get_payslip(self, payslip_id: int) -> Optional[Payslip]:
        found = self._select_payslips(" WHERE p.payslip_id=%s", (int(payslip_id),))
        return found[0] if found else None

    def list_payslips_for_run(self, payroll_run_id: int) -> Sequence[Payslip]:
        return self._select_payslips(" WHERE p.payroll_run_id=%s ORDER BY p.user_id", (int(payroll_run_id),))

    def list_payslips_for_user(
        self,
        user_id: int,
        *,
        run_status: Optional[PayrollRunStatus] = None,
    ) -> Sequence[Payslip]:
        where = " WHERE p.user_id=%s"
        params: list = [int(user_id)]
        if run_status is not None:
            where += " AND r.status=%s"
            params.append(run_status.value)
        where += " ORDER BY r.period_start DESC"
        return self._select_payslips(where, tuple(params))
