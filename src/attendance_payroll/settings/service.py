from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from ..common.validators import require_int_in_range
from ..core.constants import SETTINGS_ID
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import AttendanceSetting
from .repository import AttendanceSettingRepository

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class AttendanceSettingsService:
    """Read and update the global attendance settings."""

    def __init__(self, settings: AttendanceSettingRepository):
        self._settings = settings

    def get(self) -> AttendanceSetting:
        """Return the settings row, creating it with defaults on first use."""

        setting = self._settings.get(SETTINGS_ID)
        if setting is None:
            setting = AttendanceSetting(setting_id=SETTINGS_ID)
            self._settings.save(setting)
            logger.info("Created default attendance settings")
        return setting

    def update(
        self,
        *,
        current_role: Role,
        work_start_hour: Any = _UNSET,
        work_start_minute: Any = _UNSET,
        late_tolerance_minutes: Any = _UNSET,
        work_end_hour: Any = _UNSET,
        work_end_minute: Any = _UNSET,
        is_location_lock_active: Any = _UNSET,
        target_latitude: Any = _UNSET,
        target_longitude: Any = _UNSET,
        allowed_radius_meters: Any = _UNSET,
    ) -> AttendanceSetting:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Hanya Super Admin yang dapat mengubah pengaturan absensi")

        changes: dict[str, Any] = {}
        if work_start_hour is not _UNSET:
            changes["work_start_hour"] = require_int_in_range(work_start_hour, "Jam masuk", 0, 23)
        if work_start_minute is not _UNSET:
            changes["work_start_minute"] = require_int_in_range(work_start_minute, "Menit masuk", 0, 59)
        if late_tolerance_minutes is not _UNSET:
            changes["late_tolerance_minutes"] = require_int_in_range(
                late_tolerance_minutes, "Toleransi keterlambatan", 0, 24 * 60
            )
        if work_end_hour is not _UNSET:
            changes["work_end_hour"] = require_int_in_range(work_end_hour, "Jam pulang", 0, 23)
        if work_end_minute is not _UNSET:
            changes["work_end_minute"] = require_int_in_range(work_end_minute, "Menit pulang", 0, 59)
        if is_location_lock_active is not _UNSET:
            changes["is_location_lock_active"] = bool(is_location_lock_active)
        if target_latitude is not _UNSET:
            changes["target_latitude"] = _coordinate(target_latitude, "Latitude", 90)
        if target_longitude is not _UNSET:
            changes["target_longitude"] = _coordinate(target_longitude, "Longitude", 180)
        if allowed_radius_meters is not _UNSET:
            changes["allowed_radius_meters"] = _radius(allowed_radius_meters)

        if not changes:
            raise ValidationError("Tidak ada data yang diperbarui")

        updated = replace(self.get(), **changes)
        if updated.end_minute_of_day <= updated.start_minute_of_day:
            raise ValidationError("Jam pulang harus setelah jam masuk")

        self._settings.save(updated)
        logger.info("Attendance settings updated: %s", sorted(changes))
        return updated


def _coordinate(value: Any, field_name: str, limit: int) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} harus berupa angka")
    if number < -limit or number > limit:
        raise ValidationError(f"{field_name} harus antara -{limit} dan {limit}")
    return number


def _radius(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        radius = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Radius harus berupa bilangan bulat")
    if radius <= 0:
        raise ValidationError("Radius harus lebih dari 0 meter")
    return radius
