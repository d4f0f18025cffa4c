from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import at_time
from ..core.constants import (
    DEFAULT_LATE_TOLERANCE_MINUTES,
    DEFAULT_WORK_END_HOUR,
    DEFAULT_WORK_END_MINUTE,
    DEFAULT_WORK_START_HOUR,
    DEFAULT_WORK_START_MINUTE,
    SETTINGS_ID,
)


@dataclass(frozen=True)
class AttendanceSetting:
    """Pengaturan jam kerja dan kunci lokasi (satu baris global)."""

    setting_id: str = SETTINGS_ID
    work_start_hour: int = DEFAULT_WORK_START_HOUR
    work_start_minute: int = DEFAULT_WORK_START_MINUTE
    late_tolerance_minutes: int = DEFAULT_LATE_TOLERANCE_MINUTES
    work_end_hour: int = DEFAULT_WORK_END_HOUR
    work_end_minute: int = DEFAULT_WORK_END_MINUTE
    is_location_lock_active: bool = False
    target_latitude: Optional[float] = None
    target_longitude: Optional[float] = None
    allowed_radius_meters: Optional[int] = None
    updated_at: Optional[datetime] = None

    def work_start_on(self, day: date) -> datetime:
        return at_time(day, self.work_start_hour, self.work_start_minute)

    def work_end_on(self, day: date) -> datetime:
        return at_time(day, self.work_end_hour, self.work_end_minute)

    def late_deadline_on(self, day: date) -> datetime:
        return self.work_start_on(day) + timedelta(minutes=self.late_tolerance_minutes)

    @property
    def start_minute_of_day(self) -> int:
        return self.work_start_hour * 60 + self.work_start_minute

    @property
    def end_minute_of_day(self) -> int:
        return self.work_end_hour * 60 + self.work_end_minute

    @property
    def location_lock_configured(self) -> bool:
        return (
            self.target_latitude is not None
            and self.target_longitude is not None
            and self.allowed_radius_meters is not None
        )
