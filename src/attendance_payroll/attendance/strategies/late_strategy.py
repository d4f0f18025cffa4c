from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSetting
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Clock-in after work start plus tolerance."""

    def decide_clock_in(self, *, now: datetime, setting: AttendanceSetting) -> StatusDecision:
        minutes = int((now - setting.late_deadline_on(now.date())).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.TERLAMBAT, note=f"Terlambat {max(minutes, 1)} menit")
