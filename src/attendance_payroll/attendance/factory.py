from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..settings.model import AttendanceSetting
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the clock-in strategy from the configured work hours."""

    def for_clock_in(self, *, now: datetime, setting: AttendanceSetting) -> AttendanceStrategy:
        if now > setting.late_deadline_on(now.date()):
            return LateStrategy()
        return OnTimeStrategy()
