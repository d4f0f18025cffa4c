from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from attendance_payroll.attendance.model import AttendanceRecord, ClockInput
from attendance_payroll.attendance.service import AttendanceService
from attendance_payroll.core.enums import AttendanceStatus, Role
from attendance_payroll.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from attendance_payroll.settings.model import AttendanceSetting
from attendance_payroll.users.model import User


class FixedSettings:
    def __init__(self, setting: AttendanceSetting | None = None):
        self.setting = setting or AttendanceSetting()

    def get(self) -> AttendanceSetting:
        return self.setting


class InMemoryUsers:
    def __init__(self):
        self.users = {
            1: User(user_id=1, name="Budi", email="budi@kampus.ac.id", password_hash="x", role=Role.EMPLOYEE),
        }

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def _new_id(self) -> int:
        rid = self._next_id
        self._next_id += 1
        return rid

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        for r in self.records.values():
            if r.user_id == user_id and r.work_date == work_date:
                return r
        return None

    def list_for_user_between(self, user_id, start, end):
        return [r for r in self.records.values() if r.user_id == user_id and start <= r.work_date <= end]

    def list_between(self, start, end, *, user_id=None):
        return [
            r
            for r in self.records.values()
            if start <= r.work_date <= end and (user_id is None or r.user_id == user_id)
        ]

    def create_clock_in(self, *, user_id, work_date, clock_in, status, data: ClockInput) -> int:
        rid = self._new_id()
        self.records[rid] = AttendanceRecord(
            attendance_id=rid,
            user_id=user_id,
            work_date=work_date,
            clock_in=clock_in,
            clock_out=None,
            status=status,
            clock_in_status=status,
            latitude_in=data.latitude,
            longitude_in=data.longitude,
            selfie_in_url=data.selfie_url,
            notes=data.notes,
            device_model=data.device_model,
            device_os=data.device_os,
        )
        return rid

    def update_clock_out(self, *, attendance_id, clock_out, data: ClockInput) -> bool:
        current = self.records[attendance_id]
        if current.clock_out is not None:
            return False
        self.records[attendance_id] = replace(
            current,
            clock_out=clock_out,
            status=AttendanceStatus.SELESAI,
            latitude_out=data.latitude,
            longitude_out=data.longitude,
            selfie_out_url=data.selfie_url,
            notes=data.notes,
        )
        return True

    def create_manual(self, *, user_id, work_date, clock_in, status, notes=None, selfie_in_url=None) -> int:
        rid = self._new_id()
        self.records[rid] = AttendanceRecord(
            attendance_id=rid,
            user_id=user_id,
            work_date=work_date,
            clock_in=clock_in,
            clock_out=None,
            status=status,
            notes=notes,
            selfie_in_url=selfie_in_url,
        )
        return rid

    def reset_with_status(self, *, attendance_id, clock_in, status, notes) -> bool:
        current = self.records[attendance_id]
        self.records[attendance_id] = replace(
            current,
            clock_in=clock_in,
            clock_out=None,
            status=status,
            clock_in_status=None,
            latitude_in=None,
            longitude_in=None,
            latitude_out=None,
            longitude_out=None,
            notes=notes,
        )
        return True


def make_service(setting: AttendanceSetting | None = None):
    attendance = InMemoryAttendance()
    svc = AttendanceService(attendance, InMemoryUsers(), FixedSettings(setting))
    return svc, attendance


SELFIE = ClockInput(selfie_url="/uploads/selfie-1.jpg", latitude=-6.2, longitude=106.8, device_model="Pixel 7")
MONDAY = date(2026, 2, 2)


def at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 2, 2, hour, minute, second)


def test_clock_in_before_work_start_is_rejected():
    svc, _ = make_service()
    with pytest.raises(ValidationError) as exc:
        svc.clock_in(1, SELFIE, now=at(7, 59))
    assert exc.value.code == "CLOCK_IN_TOO_EARLY"


def test_clock_in_requires_selfie():
    svc, _ = make_service()
    with pytest.raises(ValidationError) as exc:
        svc.clock_in(1, ClockInput(selfie_url="  "), now=at(8, 5))
    assert exc.value.code == "SELFIE_REQUIRED"


def test_clock_in_on_time_and_late():
    svc, attendance = make_service()
    on_time = svc.clock_in(1, SELFIE, now=at(8, 15))
    assert on_time.status == AttendanceStatus.HADIR
    assert on_time.notes is None

    svc2, _ = make_service()
    late = svc2.clock_in(1, SELFIE, now=at(9, 0))
    assert late.status == AttendanceStatus.TERLAMBAT
    assert late.notes == "Terlambat 45 menit"
    assert attendance.records[on_time.attendance_id].device_model == "Pixel 7"


def test_clock_in_keeps_user_notes():
    svc, _ = make_service()
    rec = svc.clock_in(1, replace(SELFIE, notes="macet"), now=at(9, 0))
    assert rec.notes == "macet"


def test_clock_in_twice_is_conflict():
    svc, _ = make_service()
    svc.clock_in(1, SELFIE, now=at(8, 1))
    with pytest.raises(ConflictError) as exc:
        svc.clock_in(1, SELFIE, now=at(8, 30))
    assert exc.value.code == "ALREADY_CLOCKED_IN"


def test_clock_in_after_leave_recorded_is_conflict():
    svc, _ = make_service()
    svc.set_status(current_role=Role.SUPER_ADMIN, user_id=1, day=MONDAY, status="sakit")
    with pytest.raises(ConflictError) as exc:
        svc.clock_in(1, SELFIE, now=at(8, 1))
    assert exc.value.code == "ALREADY_RECORDED"


def test_clock_in_unknown_user():
    svc, _ = make_service()
    with pytest.raises(NotFoundError):
        svc.clock_in(99, SELFIE, now=at(8, 1))


def test_location_lock_not_configured():
    svc, _ = make_service(AttendanceSetting(is_location_lock_active=True))
    with pytest.raises(ValidationError) as exc:
        svc.clock_in(1, SELFIE, now=at(8, 1))
    assert exc.value.code == "LOCATION_LOCK_NOT_CONFIGURED"


def test_location_lock_requires_coordinates():
    setting = AttendanceSetting(
        is_location_lock_active=True, target_latitude=-6.2, target_longitude=106.8, allowed_radius_meters=100
    )
    svc, _ = make_service(setting)
    with pytest.raises(ValidationError) as exc:
        svc.clock_in(1, ClockInput(selfie_url="/s.jpg"), now=at(8, 1))
    assert exc.value.code == "LOCATION_REQUIRED_FOR_LOCK"


def test_location_lock_radius():
    setting = AttendanceSetting(
        is_location_lock_active=True, target_latitude=-6.2, target_longitude=106.8, allowed_radius_meters=100
    )
    svc, _ = make_service(setting)
    # ~111 m north of the office
    far = replace(SELFIE, latitude=-6.199, longitude=106.8)
    with pytest.raises(ValidationError) as exc:
        svc.clock_in(1, far, now=at(8, 1))
    assert exc.value.code == "OUT_OF_ALLOWED_RADIUS"

    near = replace(SELFIE, latitude=-6.2005, longitude=106.8)
    assert svc.clock_in(1, near, now=at(8, 1)).status == AttendanceStatus.HADIR


def test_clock_out_flow():
    svc, attendance = make_service()
    rec = svc.clock_in(1, replace(SELFIE, notes="rapat pagi"), now=at(8, 20))

    with pytest.raises(ValidationError) as exc:
        svc.clock_out(1, SELFIE, now=at(16, 59))
    assert exc.value.code == "CLOCK_OUT_TOO_EARLY"

    with pytest.raises(ValidationError) as exc:
        svc.clock_out(1, ClockInput(selfie_url="/out.jpg"), now=at(17, 0))
    assert exc.value.code == "LOCATION_REQUIRED"

    out = svc.clock_out(1, replace(SELFIE, selfie_url="/out.jpg", device_model=None), now=at(17, 3))
    assert out.status == AttendanceStatus.SELESAI
    assert out.clock_in_status == AttendanceStatus.TERLAMBAT
    assert out.clock_out == at(17, 3)
    assert out.notes == "rapat pagi"
    assert out.device_model == "Pixel 7"
    assert attendance.records[rec.attendance_id].selfie_out_url == "/out.jpg"

    with pytest.raises(NotFoundError) as exc:
        svc.clock_out(1, SELFIE, now=at(17, 30))
    assert exc.value.code == "NO_ACTIVE_CLOCK_IN"


def test_clock_out_without_clock_in():
    svc, _ = make_service()
    with pytest.raises(NotFoundError):
        svc.clock_out(1, SELFIE, now=at(17, 30))


def test_set_status_overrides_existing_record():
    svc, attendance = make_service()
    rec = svc.clock_in(1, SELFIE, now=at(8, 1))
    svc.clock_out(1, SELFIE, now=at(17, 1))

    rid = svc.set_status(current_role=Role.SUPER_ADMIN, user_id=1, day=MONDAY, status=AttendanceStatus.CUTI, notes="cuti")

    assert rid == rec.attendance_id
    updated = attendance.records[rid]
    assert updated.status == AttendanceStatus.CUTI
    assert updated.clock_out is None
    assert updated.clock_in == datetime(2026, 2, 2)
    assert updated.latitude_in is None


def test_set_status_rejects_non_admin_and_clock_statuses():
    svc, _ = make_service()
    with pytest.raises(AuthorizationError):
        svc.set_status(current_role=Role.YAYASAN, user_id=1, day=MONDAY, status="IZIN")
    with pytest.raises(ValidationError):
        svc.set_status(current_role=Role.SUPER_ADMIN, user_id=1, day=MONDAY, status="HADIR")
    with pytest.raises(ValidationError):
        svc.set_status(current_role=Role.SUPER_ADMIN, user_id=1, day=MONDAY, status="LEMBUR")


def test_list_attendances_access():
    svc, _ = make_service()
    svc.clock_in(1, SELFIE, now=at(8, 1))
    with pytest.raises(AuthorizationError):
        svc.list_attendances(current_role=Role.EMPLOYEE, start=MONDAY, end=MONDAY)
    assert len(svc.list_attendances(current_role=Role.REKTOR, start=MONDAY, end=MONDAY)) == 1
    assert len(svc.list_my_attendances(1, start=MONDAY, end=MONDAY)) == 1
    assert svc.get_today_record(1, MONDAY) is not None
    assert svc.get_today_record(1, date(2026, 2, 3)) is None


def test_concurrent_second_clock_out_is_conflict():
    class RacingAttendance(InMemoryAttendance):
        def update_clock_out(self, *, attendance_id, clock_out, data):
            # another request closed the record after it was read
            return False

    attendance = RacingAttendance()
    svc = AttendanceService(attendance, InMemoryUsers(), FixedSettings())
    svc.clock_in(1, SELFIE, now=at(8, 1))

    with pytest.raises(ConflictError) as exc:
        svc.clock_out(1, SELFIE, now=at(17, 1))
    assert exc.value.code == "ALREADY_CLOCKED_OUT"
