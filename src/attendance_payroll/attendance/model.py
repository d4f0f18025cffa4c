from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Entitas domain: satu catatan absensi per pegawai per hari.

    ``clock_in_status`` keeps the HADIR/TERLAMBAT decision made at clock-in so it
    survives the switch to SELESAI on clock-out.
    """

    attendance_id: int
    user_id: int
    work_date: date
    clock_in: datetime
    clock_out: Optional[datetime]
    status: AttendanceStatus
    clock_in_status: Optional[AttendanceStatus] = None
    latitude_in: Optional[float] = None
    longitude_in: Optional[float] = None
    latitude_out: Optional[float] = None
    longitude_out: Optional[float] = None
    selfie_in_url: Optional[str] = None
    selfie_out_url: Optional[str] = None
    notes: Optional[str] = None
    device_model: Optional[str] = None
    device_os: Optional[str] = None
    is_mock_location_in: Optional[bool] = None
    is_mock_location_out: Optional[bool] = None
    gps_accuracy_in: Optional[float] = None
    gps_accuracy_out: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True)
class ClockInput:
    """Data captured by the client at clock-in or clock-out."""

    selfie_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    device_model: Optional[str] = None
    device_os: Optional[str] = None
    is_mock_location: Optional[bool] = None
    gps_accuracy: Optional[float] = None


@dataclass(frozen=True)
class DailyAttendance:
    """Status turunan untuk satu hari kalender."""

    day: date
    status: AttendanceStatus
    clock_in_status: Optional[AttendanceStatus] = None
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    latitude_in: Optional[float] = None
    longitude_in: Optional[float] = None
    latitude_out: Optional[float] = None
    longitude_out: Optional[float] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecap:
    """Rekap absensi untuk satu pegawai dalam satu periode."""

    user_id: int
    period_start: date
    period_end: date
    total_hari_kerja: int = 0
    total_hadir: int = 0
    total_terlambat: int = 0
    total_alpha: int = 0
    total_izin: int = 0
    total_sakit: int = 0
    total_cuti: int = 0
    detail_per_hari: tuple[DailyAttendance, ...] = field(default_factory=tuple)

    @property
    def total_masuk(self) -> int:
        """Days the employee actually showed up (on time or late)."""
        return self.total_hadir + self.total_terlambat


@dataclass(frozen=True)
class MonthlyReportEntry:
    user_id: int
    name: str
    email: str
    recap: Optional[AttendanceRecap] = None
    error: Optional[str] = None
