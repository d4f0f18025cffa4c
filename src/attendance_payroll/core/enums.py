from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Peran pengguna untuk otorisasi."""

    SUPER_ADMIN = "SUPER_ADMIN"
    YAYASAN = "YAYASAN"
    REKTOR = "REKTOR"
    PR1 = "PR1"
    PR2 = "PR2"
    EMPLOYEE = "EMPLOYEE"


class AttendanceStatus(str, Enum):
    """Status absensi.

    BELUM and LIBUR are only ever derived for a calendar day, never stored.
    """

    HADIR = "HADIR"
    TERLAMBAT = "TERLAMBAT"
    SELESAI = "SELESAI"
    ALPHA = "ALPHA"
    IZIN = "IZIN"
    SAKIT = "SAKIT"
    CUTI = "CUTI"
    BELUM = "BELUM"
    LIBUR = "LIBUR"


CLOCK_IN_STATUSES = frozenset({AttendanceStatus.HADIR, AttendanceStatus.TERLAMBAT})
LEAVE_STATUSES = frozenset({AttendanceStatus.IZIN, AttendanceStatus.SAKIT, AttendanceStatus.CUTI})
ADMIN_SETTABLE_STATUSES = LEAVE_STATUSES | {AttendanceStatus.ALPHA}


class LeaveRequestStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PayrollRunStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DeductionCalculationType(str, Enum):
    """Cara menghitung sebuah jenis potongan."""

    FIXED_USER = "FIXED_USER"
    PERCENTAGE_USER = "PERCENTAGE_USER"
    PER_LATE_INSTANCE = "PER_LATE_INSTANCE"
    PER_ALPHA_DAY = "PER_ALPHA_DAY"
    PERCENTAGE_ALPHA_DAY = "PERCENTAGE_ALPHA_DAY"
    MANDATORY_PERCENTAGE = "MANDATORY_PERCENTAGE"


USER_ASSIGNED_DEDUCTIONS = frozenset({DeductionCalculationType.FIXED_USER, DeductionCalculationType.PERCENTAGE_USER})


class PayslipItemType(str, Enum):
    ALLOWANCE = "ALLOWANCE"
    DEDUCTION = "DEDUCTION"
