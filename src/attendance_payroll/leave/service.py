from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_days, now_local, start_of_day
from ..common.validators import optional_text, require_non_empty
from ..core.enums import LEAVE_STATUSES, AttendanceStatus, LeaveRequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import LeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


def _parse_leave_type(value: Any) -> AttendanceStatus:
    try:
        leave_type = value if isinstance(value, AttendanceStatus) else AttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        leave_type = None
    if leave_type not in LEAVE_STATUSES:
        raise ValidationError("Jenis pengajuan harus IZIN, SAKIT atau CUTI")
    return leave_type


class LeaveService:
    """Pengajuan izin/sakit/cuti dan persetujuannya oleh Yayasan."""

    def __init__(
        self,
        requests: LeaveRequestRepository,
        attendance: AttendanceRepository,
        *,
        transaction: Callable[[], ContextManager[Any]] | None = None,
    ):
        self._requests = requests
        self._attendance = attendance
        self._transaction = transaction or nullcontext

    @staticmethod
    def _require_approver(current_role: Role) -> None:
        if current_role != Role.YAYASAN:
            raise AuthorizationError("Hanya Yayasan yang dapat memproses pengajuan")

    def _get_pending(self, request_id: int) -> LeaveRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Pengajuan tidak ditemukan")
        if req.status != LeaveRequestStatus.PENDING_APPROVAL:
            raise ValidationError("Pengajuan sudah diproses")
        return req

    def submit(
        self,
        *,
        user_id: int,
        leave_type: Any,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: Optional[str] = None,
        now: datetime | None = None,
    ) -> int:
        leave_type = _parse_leave_type(leave_type)
        reason = require_non_empty(reason, "Alasan")
        if start_date is None or end_date is None:
            raise ValidationError("Tanggal mulai dan tanggal akhir wajib diisi")
        if start_date > end_date:
            raise ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir")

        request_id = self._requests.create(
            user_id=int(user_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment_url=optional_text(attachment_url),
            requested_at=now or now_local(),
        )
        logger.info("Leave request %s submitted by user %s (%s)", request_id, user_id, leave_type.value)
        return request_id

    def list_pending(self, *, current_role: Role) -> Sequence[LeaveRequest]:
        self._require_approver(current_role)
        return self._requests.list_requests(status=LeaveRequestStatus.PENDING_APPROVAL)

    def list_for_user(self, user_id: int) -> Sequence[LeaveRequest]:
        return self._requests.list_requests(user_id=int(user_id))

    def approve(
        self,
        *,
        current_role: Role,
        request_id: int,
        approver_id: int,
        now: datetime | None = None,
    ) -> None:
        """Approve a pending request and mark every day of its range with the leave status."""

        self._require_approver(current_role)
        now = now or now_local()

        with self._transaction():
            req = self._get_pending(request_id)
            if not self._requests.mark_approved(req.request_id, processed_by=int(approver_id), processed_at=now):
                raise ValidationError("Pengajuan sudah diproses")

            notes = f"Disetujui: {req.reason}"
            for day in iter_days(req.start_date, req.end_date):
                existing = self._attendance.get_for_user_and_date(req.user_id, day)
                if existing:
                    self._attendance.reset_with_status(
                        attendance_id=existing.attendance_id,
                        clock_in=start_of_day(day),
                        status=req.leave_type,
                        notes=notes,
                    )
                else:
                    self._attendance.create_manual(
                        user_id=req.user_id,
                        work_date=day,
                        clock_in=start_of_day(day),
                        status=req.leave_type,
                        notes=notes,
                        selfie_in_url=req.attachment_url,
                    )

        logger.info("Leave request %s approved by %s (%s day(s))", req.request_id, approver_id, req.days)

    def reject(
        self,
        *,
        current_role: Role,
        request_id: int,
        approver_id: int,
        rejection_reason: str,
        now: datetime | None = None,
    ) -> None:
        self._require_approver(current_role)
        reason = require_non_empty(rejection_reason, "Alasan penolakan")

        req = self._get_pending(request_id)
        ok = self._requests.mark_rejected(
            req.request_id,
            processed_by=int(approver_id),
            processed_at=now or now_local(),
            rejection_reason=reason,
        )
        if not ok:
            raise ValidationError("Pengajuan sudah diproses")
        logger.info("Leave request %s rejected by %s", req.request_id, approver_id)
