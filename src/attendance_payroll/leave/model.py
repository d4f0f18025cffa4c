from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, LeaveRequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """Pengajuan izin/sakit/cuti."""

    request_id: int
    user_id: int
    leave_type: AttendanceStatus
    start_date: date
    end_date: date
    reason: str
    status: LeaveRequestStatus
    requested_at: datetime
    attachment_url: Optional[str] = None
    processed_by_id: Optional[int] = None
    processed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
