from __future__ import annotations

from typing import Optional

import pytest

from attendance_payroll.core.constants import SETTINGS_ID
from attendance_payroll.core.enums import Role
from attendance_payroll.core.exceptions import AuthorizationError, ValidationError
from attendance_payroll.settings.model import AttendanceSetting
from attendance_payroll.settings.service import AttendanceSettingsService


class InMemorySettings:
    def __init__(self, setting: Optional[AttendanceSetting] = None):
        self.rows: dict[str, AttendanceSetting] = {}
        self.saves = 0
        if setting:
            self.rows[setting.setting_id] = setting

    def get(self, setting_id: str) -> Optional[AttendanceSetting]:
        return self.rows.get(setting_id)

    def save(self, setting: AttendanceSetting) -> None:
        self.saves += 1
        self.rows[setting.setting_id] = setting


def test_get_creates_defaults_once():
    repo = InMemorySettings()
    svc = AttendanceSettingsService(repo)

    first = svc.get()
    second = svc.get()

    assert first.setting_id == SETTINGS_ID
    assert (first.work_start_hour, first.work_start_minute) == (8, 0)
    assert first.late_tolerance_minutes == 15
    assert (first.work_end_hour, first.work_end_minute) == (17, 0)
    assert first.is_location_lock_active is False
    assert second == first
    assert repo.saves == 1


def test_update_changes_only_given_fields():
    repo = InMemorySettings()
    svc = AttendanceSettingsService(repo)

    updated = svc.update(current_role=Role.SUPER_ADMIN, work_start_hour="7", late_tolerance_minutes=10)

    assert updated.work_start_hour == 7
    assert updated.late_tolerance_minutes == 10
    assert updated.work_end_hour == 17
    assert repo.get(SETTINGS_ID) == updated


def test_update_requires_super_admin():
    svc = AttendanceSettingsService(InMemorySettings())
    with pytest.raises(AuthorizationError):
        svc.update(current_role=Role.YAYASAN, work_start_hour=7)


@pytest.mark.parametrize(
    "changes",
    [
        {"work_start_hour": 24},
        {"work_start_minute": 60},
        {"work_end_minute": -1},
        {"late_tolerance_minutes": -5},
        {"allowed_radius_meters": 0},
        {"target_latitude": 91},
        {"target_longitude": "abc"},
    ],
)
def test_update_rejects_out_of_range_values(changes):
    svc = AttendanceSettingsService(InMemorySettings())
    with pytest.raises(ValidationError):
        svc.update(current_role=Role.SUPER_ADMIN, **changes)


def test_work_end_must_follow_work_start():
    svc = AttendanceSettingsService(InMemorySettings())
    with pytest.raises(ValidationError):
        svc.update(current_role=Role.SUPER_ADMIN, work_start_hour=18)


def test_configure_location_lock():
    svc = AttendanceSettingsService(InMemorySettings())
    updated = svc.update(
        current_role=Role.SUPER_ADMIN,
        is_location_lock_active=True,
        target_latitude="-5.1477",
        target_longitude=119.4327,
        allowed_radius_meters="150",
    )
    assert updated.is_location_lock_active is True
    assert updated.location_lock_configured
    assert updated.allowed_radius_meters == 150
