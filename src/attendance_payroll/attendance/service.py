from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..common.datetime_utils import now_local, start_of_day
from ..common.geo import distance_in_meters
from ..common.validators import optional_text
from ..core.enums import ADMIN_SETTABLE_STATUSES, CLOCK_IN_STATUSES, AttendanceStatus, Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..settings.model import AttendanceSetting
from ..settings.service import AttendanceSettingsService
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, ClockInput
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _fmt_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def _parse_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Status absensi tidak valid")


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        settings: AttendanceSettingsService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        transaction: Callable[[], ContextManager[Any]] | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._settings = settings
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._transaction = transaction or nullcontext

    def _require_user(self, user_id: int) -> None:
        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("Pegawai tidak ditemukan")

    @staticmethod
    def _check_location(setting: AttendanceSetting, data: ClockInput) -> None:
        if not setting.is_location_lock_active:
            return
        if not setting.location_lock_configured:
            raise ValidationError(
                "Kunci lokasi aktif tetapi titik lokasi atau radius belum diatur",
                code="LOCATION_LOCK_NOT_CONFIGURED",
            )
        if data.latitude is None or data.longitude is None:
            raise ValidationError("Lokasi wajib dikirim saat kunci lokasi aktif", code="LOCATION_REQUIRED_FOR_LOCK")

        distance = distance_in_meters(
            float(data.latitude), float(data.longitude), setting.target_latitude, setting.target_longitude
        )
        if distance > setting.allowed_radius_meters:
            raise ValidationError(
                f"Anda berada {distance:.0f} m dari lokasi kantor (maksimal {setting.allowed_radius_meters} m)",
                code="OUT_OF_ALLOWED_RADIUS",
            )

    def clock_in(self, user_id: int, data: ClockInput, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        setting = self._settings.get()

        if now < setting.work_start_on(today):
            raise ValidationError(
                "Belum waktunya absen masuk (mulai "
                f"{_fmt_clock(setting.work_start_hour, setting.work_start_minute)})",
                code="CLOCK_IN_TOO_EARLY",
            )
        if not optional_text(data.selfie_url):
            raise ValidationError("Foto selfie wajib untuk absen masuk", code="SELFIE_REQUIRED")
        self._check_location(setting, data)
        self._require_user(user_id)

        existing = self._attendance.get_for_user_and_date(int(user_id), today)
        if existing:
            if existing.is_open and existing.status in CLOCK_IN_STATUSES:
                raise ConflictError("Anda sudah absen masuk hari ini dan belum absen keluar", code="ALREADY_CLOCKED_IN")
            raise ConflictError("Absensi hari ini sudah tercatat", code="ALREADY_RECORDED")

        strategy = self._factory.for_clock_in(now=now, setting=setting)
        decision = strategy.decide_clock_in(now=now, setting=setting)
        data = replace(data, notes=optional_text(data.notes) or decision.note)

        attendance_id = self._attendance.create_clock_in(
            user_id=int(user_id),
            work_date=today,
            clock_in=now,
            status=decision.status,
            data=data,
        )
        logger.info("User %s clocked in at %s (%s)", user_id, now.isoformat(timespec="seconds"), decision.status.value)
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=int(user_id),
            work_date=today,
            clock_in=now,
            clock_out=None,
            status=decision.status,
            clock_in_status=decision.status,
            latitude_in=data.latitude,
            longitude_in=data.longitude,
            selfie_in_url=data.selfie_url,
            notes=data.notes,
            device_model=data.device_model,
            device_os=data.device_os,
            is_mock_location_in=data.is_mock_location,
            gps_accuracy_in=data.gps_accuracy,
        )

    def clock_out(self, user_id: int, data: ClockInput, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        setting = self._settings.get()

        if now < setting.work_end_on(today):
            raise ValidationError(
                "Belum waktunya absen keluar (mulai "
                f"{_fmt_clock(setting.work_end_hour, setting.work_end_minute)})",
                code="CLOCK_OUT_TOO_EARLY",
            )
        if data.latitude is None or data.longitude is None:
            raise ValidationError("Lokasi wajib dikirim untuk absen keluar", code="LOCATION_REQUIRED")
        if not optional_text(data.selfie_url):
            raise ValidationError("Foto selfie wajib untuk absen keluar", code="SELFIE_REQUIRED")

        record = self._attendance.get_for_user_and_date(int(user_id), today)
        if not record or not record.is_open or record.status not in CLOCK_IN_STATUSES:
            raise NotFoundError("Tidak ada absen masuk yang aktif hari ini", code="NO_ACTIVE_CLOCK_IN")

        data = replace(
            data,
            notes=optional_text(data.notes) or record.notes,
            device_model=data.device_model or record.device_model,
            device_os=data.device_os or record.device_os,
        )
        if not self._attendance.update_clock_out(attendance_id=record.attendance_id, clock_out=now, data=data):
            raise ConflictError("Absen keluar sudah tercatat", code="ALREADY_CLOCKED_OUT")

        logger.info("User %s clocked out at %s", user_id, now.isoformat(timespec="seconds"))
        return replace(
            record,
            clock_out=now,
            status=AttendanceStatus.SELESAI,
            clock_in_status=record.clock_in_status or record.status,
            latitude_out=data.latitude,
            longitude_out=data.longitude,
            selfie_out_url=data.selfie_url,
            notes=data.notes,
            device_model=data.device_model,
            device_os=data.device_os,
            is_mock_location_out=data.is_mock_location,
            gps_accuracy_out=data.gps_accuracy,
        )

    def set_status(
        self,
        *,
        current_role: Role,
        user_id: int,
        day: date,
        status: Any,
        notes: Optional[str] = None,
    ) -> int:
        """Admin override of one day's status (leave or ALPHA only)."""

        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Hanya Super Admin yang dapat mengubah status absensi")

        status = _parse_status(status)
        if status not in ADMIN_SETTABLE_STATUSES:
            raise ValidationError(f"Status {status.value} tidak dapat diatur manual")
        self._require_user(user_id)

        notes = optional_text(notes)
        with self._transaction():
            existing = self._attendance.get_for_user_and_date(int(user_id), day)
            if existing:
                self._attendance.reset_with_status(
                    attendance_id=existing.attendance_id,
                    clock_in=start_of_day(day),
                    status=status,
                    notes=notes,
                )
                attendance_id = existing.attendance_id
            else:
                attendance_id = self._attendance.create_manual(
                    user_id=int(user_id),
                    work_date=day,
                    clock_in=start_of_day(day),
                    status=status,
                    notes=notes,
                )

        logger.info("Status of user %s on %s set to %s", user_id, day.isoformat(), status.value)
        return attendance_id

    def list_attendances(
        self,
        *,
        current_role: Role,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if current_role == Role.EMPLOYEE:
            raise AuthorizationError("Anda tidak memiliki akses")
        if start > end:
            raise ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir")
        return self._attendance.list_between(start, end, user_id=user_id)

    def list_my_attendances(self, user_id: int, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        if start > end:
            raise ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir")
        return self._attendance.list_for_user_between(int(user_id), start, end)

    def get_today_record(self, user_id: int, today: date | None = None) -> Optional[AttendanceRecord]:
        """Get today's attendance record for a user"""
        return self._attendance.get_for_user_and_date(int(user_id), today or now_local().date())
