from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSetting
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Clock-in at or before the late deadline."""

    def decide_clock_in(self, *, now: datetime, setting: AttendanceSetting) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HADIR)
