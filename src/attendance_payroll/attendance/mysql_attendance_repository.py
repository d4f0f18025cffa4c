from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float_or_none
from .model import AttendanceRecord, ClockInput
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, clock_in, clock_out, status, clock_in_status,
    latitude_in, longitude_in, latitude_out, longitude_out, selfie_in_url, selfie_out_url,
    notes, device_model, device_os, is_mock_location_in, is_mock_location_out,
    gps_accuracy_in, gps_accuracy_out
"""


def _optional_bool(value: Any) -> Optional[bool]:
    return None if value is None else bool(value)


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    clock_in_status = r.get("clock_in_status")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
        status=AttendanceStatus(r["status"]),
        clock_in_status=AttendanceStatus(clock_in_status) if clock_in_status else None,
        latitude_in=to_float_or_none(r.get("latitude_in")),
        longitude_in=to_float_or_none(r.get("longitude_in")),
        latitude_out=to_float_or_none(r.get("latitude_out")),
        longitude_out=to_float_or_none(r.get("longitude_out")),
        selfie_in_url=r.get("selfie_in_url"),
        selfie_out_url=r.get("selfie_out_url"),
        notes=r.get("notes"),
        device_model=r.get("device_model"),
        device_os=r.get("device_os"),
        is_mock_location_in=_optional_bool(r.get("is_mock_location_in")),
        is_mock_location_out=_optional_bool(r.get("is_mock_location_out")),
        gps_accuracy_in=to_float_or_none(r.get("gps_accuracy_in")),
        gps_accuracy_out=to_float_or_none(r.get("gps_accuracy_out")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND work_date=%s
                ORDER BY clock_in ASC
                LIMIT 1
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        return self.list_between(start, end, user_id=user_id)

    def list_between(self, start: date, end: date, *, user_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE work_date BETWEEN %s AND %s"
        params: list = [start, end]
        if user_id is not None:
            sql += " AND user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY work_date ASC, clock_in ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        status: AttendanceStatus,
        data: ClockInput,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    user_id, work_date, clock_in, status, clock_in_status,
                    latitude_in, longitude_in, selfie_in_url, notes,
                    device_model, device_os, is_mock_location_in, gps_accuracy_in
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    work_date,
                    clock_in,
                    status.value,
                    status.value,
                    data.latitude,
                    data.longitude,
                    data.selfie_url,
                    data.notes,
                    data.device_model,
                    data.device_os,
                    data.is_mock_location,
                    data.gps_accuracy,
                ),
            )
            return int(cur.lastrowid)

    def update_clock_out(self, *, attendance_id: int, clock_out: datetime, data: ClockInput) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET clock_out=%s, status=%s, latitude_out=%s, longitude_out=%s, selfie_out_url=%s,
                    notes=%s, device_model=%s, device_os=%s, is_mock_location_out=%s, gps_accuracy_out=%s
                WHERE attendance_id=%s AND clock_out IS NULL
                """,
                (
                    clock_out,
                    AttendanceStatus.SELESAI.value,
                    data.latitude,
                    data.longitude,
                    data.selfie_url,
                    data.notes,
                    data.device_model,
                    data.device_os,
                    data.is_mock_location,
                    data.gps_accuracy,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def create_manual(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str] = None,
        selfie_in_url: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, work_date, clock_in, status, notes, selfie_in_url)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), work_date, clock_in, status.value, notes, selfie_in_url),
            )
            return int(cur.lastrowid)

    def reset_with_status(
        self,
        *,
        attendance_id: int,
        clock_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET clock_in=%s, clock_out=NULL, status=%s, clock_in_status=NULL, notes=%s,
                    latitude_in=NULL, longitude_in=NULL, latitude_out=NULL, longitude_out=NULL
                WHERE attendance_id=%s
                """,
                (clock_in, status.value, notes, int(attendance_id)),
            )
            return cur.rowcount > 0
