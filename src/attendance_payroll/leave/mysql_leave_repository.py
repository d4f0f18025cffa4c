from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, LeaveRequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = """
    request_id, user_id, leave_type, start_date, end_date, reason, attachment_url,
    status, requested_at, processed_by_id, processed_at, rejection_reason
"""


def _row_to_request(r: Dict[str, Any]) -> LeaveRequest:
    processed_by = r.get("processed_by_id")
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        leave_type=AttendanceStatus(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=LeaveRequestStatus(r["status"]),
        requested_at=r["requested_at"],
        attachment_url=r.get("attachment_url"),
        processed_by_id=int(processed_by) if processed_by is not None else None,
        processed_at=r.get("processed_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        leave_type: AttendanceStatus,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: Optional[str],
        requested_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, leave_type, start_date, end_date, reason, attachment_url, status, requested_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    reason,
                    attachment_url,
                    LeaveRequestStatus.PENDING_APPROVAL.value,
                    requested_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_requests(
        self,
        *,
        status: Optional[LeaveRequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        where = []
        params: list = []
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        if user_id is not None:
            where.append("user_id=%s")
            params.append(int(user_id))

        sql = f"SELECT {_COLUMNS} FROM leave_requests"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY requested_at DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_request(r) for r in fetchall(cur)]

    def mark_approved(self, request_id: int, *, processed_by: int, processed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, processed_by_id=%s, processed_at=%s, rejection_reason=NULL
                WHERE request_id=%s AND status=%s
                """,
                (
                    LeaveRequestStatus.APPROVED.value,
                    int(processed_by),
                    processed_at,
                    int(request_id),
                    LeaveRequestStatus.PENDING_APPROVAL.value,
                ),
            )
            return cur.rowcount > 0

    def mark_rejected(
        self,
        request_id: int,
        *,
        processed_by: int,
        processed_at: datetime,
        rejection_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, processed_by_id=%s, processed_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    LeaveRequestStatus.REJECTED.value,
                    int(processed_by),
                    processed_at,
                    rejection_reason,
                    int(request_id),
                    LeaveRequestStatus.PENDING_APPROVAL.value,
                ),
            )
            return cur.rowcount > 0
