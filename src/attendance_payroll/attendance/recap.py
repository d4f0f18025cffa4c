"""Daily status derivation and period recap.

Every calendar day resolves to one derived status:

* non-working day -> LIBUR
* working day after ``today`` -> BELUM
* working day without a record -> ALPHA
* leave and ALPHA records keep their stored status
* record with a clock-out -> SELESAI (the clock-in HADIR/TERLAMBAT is kept
  in ``clock_in_status`` for counting)
* open HADIR/TERLAMBAT records keep their stored status
* any other open record is re-derived against the late deadline

Each working day up to ``today`` counts once toward ``total_hari_kerja`` and
once in exactly one of the hadir/terlambat/alpha/izin/sakit/cuti buckets.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import is_working_day, iter_days, month_bounds, now_local
from ..core.enums import CLOCK_IN_STATUSES, LEAVE_STATUSES, AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..settings.model import AttendanceSetting
from ..settings.service import AttendanceSettingsService
from ..users.repository import UserRepository
from .model import AttendanceRecap, AttendanceRecord, DailyAttendance, MonthlyReportEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_ABSENCE_STATUSES = LEAVE_STATUSES | {AttendanceStatus.ALPHA}


def _clock_in_status(record: AttendanceRecord, setting: AttendanceSetting) -> AttendanceStatus:
    if record.clock_in_status in CLOCK_IN_STATUSES:
        return record.clock_in_status
    if record.clock_in > setting.late_deadline_on(record.work_date):
        return AttendanceStatus.TERLAMBAT
    return AttendanceStatus.HADIR


def resolve_daily_status(
    day: date,
    record: Optional[AttendanceRecord],
    setting: AttendanceSetting,
    *,
    today: date,
) -> DailyAttendance:
    if not is_working_day(day):
        return DailyAttendance(day=day, status=AttendanceStatus.LIBUR)
    if day > today:
        return DailyAttendance(day=day, status=AttendanceStatus.BELUM)
    if record is None:
        return DailyAttendance(day=day, status=AttendanceStatus.ALPHA)

    clock_in_status: Optional[AttendanceStatus] = None
    if record.status in _ABSENCE_STATUSES:
        status = record.status
    elif record.clock_out is not None:
        status = AttendanceStatus.SELESAI
        clock_in_status = _clock_in_status(record, setting)
    elif record.status in CLOCK_IN_STATUSES:
        status = record.status
        clock_in_status = status
    else:
        status = _clock_in_status(record, setting)
        clock_in_status = status

    return DailyAttendance(
        day=day,
        status=status,
        clock_in_status=clock_in_status,
        clock_in=record.clock_in,
        clock_out=record.clock_out,
        latitude_in=record.latitude_in,
        longitude_in=record.longitude_in,
        latitude_out=record.latitude_out,
        longitude_out=record.longitude_out,
        notes=record.notes,
    )


def _bucket(daily: DailyAttendance) -> Optional[AttendanceStatus]:
    if daily.status in (AttendanceStatus.LIBUR, AttendanceStatus.BELUM):
        return None
    if daily.status == AttendanceStatus.SELESAI:
        return daily.clock_in_status
    return daily.status


def summarize(
    user_id: int,
    start: date,
    end: date,
    days: Iterable[DailyAttendance],
) -> AttendanceRecap:
    detail = tuple(days)
    counts: Counter = Counter()
    working = 0
    for daily in detail:
        bucket = _bucket(daily)
        if bucket is None:
            continue
        working += 1
        counts[bucket] += 1

    return AttendanceRecap(
        user_id=int(user_id),
        period_start=start,
        period_end=end,
        total_hari_kerja=working,
        total_hadir=counts[AttendanceStatus.HADIR],
        total_terlambat=counts[AttendanceStatus.TERLAMBAT],
        total_alpha=counts[AttendanceStatus.ALPHA],
        total_izin=counts[AttendanceStatus.IZIN],
        total_sakit=counts[AttendanceStatus.SAKIT],
        total_cuti=counts[AttendanceStatus.CUTI],
        detail_per_hari=detail,
    )


class AttendanceRecapService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        settings: AttendanceSettingsService,
    ):
        self._attendance = attendance
        self._users = users
        self._settings = settings

    def get_daily_status(self, user_id: int, day: date, *, today: Optional[date] = None) -> DailyAttendance:
        today = today or now_local().date()
        record = None
        if is_working_day(day) and day <= today:
            record = self._attendance.get_for_user_and_date(int(user_id), day)
        return resolve_daily_status(day, record, self._settings.get(), today=today)

    def get_recap(self, user_id: int, start: date, end: date, *, today: Optional[date] = None) -> AttendanceRecap:
        if start > end:
            raise ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir")
        today = today or now_local().date()
        setting = self._settings.get()

        first_by_day: dict[date, AttendanceRecord] = {}
        for record in self._attendance.list_for_user_between(int(user_id), start, end):
            current = first_by_day.get(record.work_date)
            if current is None or record.clock_in < current.clock_in:
                first_by_day[record.work_date] = record

        days = (
            resolve_daily_status(day, first_by_day.get(day), setting, today=today)
            for day in iter_days(start, end)
        )
        return summarize(user_id, start, end, days)

    def get_monthly_recap(
        self, user_id: int, year: int, month: int, *, today: Optional[date] = None
    ) -> AttendanceRecap:
        """Recap for a calendar month (``month`` is 1-12)."""
        start, end = month_bounds(int(year), int(month))
        return self.get_recap(user_id, start, end, today=today)

    def build_monthly_report(
        self,
        *,
        current_role: Role,
        year: int,
        month: int,
        today: Optional[date] = None,
    ) -> Sequence[MonthlyReportEntry]:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses ke laporan bulanan")
        month_bounds(int(year), int(month))

        employees = self._users.list_users(role=Role.EMPLOYEE)
        if not employees:
            raise NotFoundError("Tidak ada data pegawai")

        entries: list[MonthlyReportEntry] = []
        for user in sorted(employees, key=lambda u: u.name.lower()):
            try:
                recap = self.get_monthly_recap(user.user_id, year, month, today=today)
            except Exception as exc:
                logger.exception("Monthly recap failed for user %s (%s-%02d)", user.user_id, year, int(month))
                entries.append(MonthlyReportEntry(user.user_id, user.name, user.email, error=str(exc)))
                continue
            entries.append(MonthlyReportEntry(user.user_id, user.name, user.email, recap=recap))
        return entries
