from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSetting


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how a clock-in status is decided."""

    @abstractmethod
    def decide_clock_in(self, *, now: datetime, setting: AttendanceSetting) -> StatusDecision:
        raise NotImplementedError
