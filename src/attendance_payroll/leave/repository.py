from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, LeaveRequestStatus
from .model import LeaveRequest


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        leave_type: AttendanceStatus,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: Optional[str],
        requested_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[LeaveRequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def mark_approved(self, request_id: int, *, processed_by: int, processed_at: datetime) -> bool:
        """Only transitions a PENDING_APPROVAL request."""

        raise NotImplementedError

    def mark_rejected(
        self,
        request_id: int,
        *,
        processed_by: int,
        processed_at: datetime,
        rejection_reason: str,
    ) -> bool:
        """Only transitions a PENDING_APPROVAL request."""

        raise NotImplementedError
