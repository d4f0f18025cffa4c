from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, ClockInput


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_between(self, start: date, end: date, *, user_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_clock_in(
        self,
        *,
        user_id: int,
        work_date: date,
        clock_in: datetime,
        status: AttendanceStatus,
        data: ClockInput,
    ) -> int:
        raise NotImplementedError

    def update_clock_out(self, *, attendance_id: int, clock_out: datetime, data: ClockInput) -> bool:
        """Close an open record and mark it SELESAI."""

        raise NotImplementedError

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
        """Record created by an admin or an approved leave, without a real clock-in."""

        raise NotImplementedError

    def reset_with_status(
        self,
        *,
        attendance_id: int,
        clock_in: datetime,
        status: AttendanceStatus,
        notes: Optional[str],
    ) -> bool:
        """Admin override: clear clock-out and coordinates, keep only the new status."""

        raise NotImplementedError
