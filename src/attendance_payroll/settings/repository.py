from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceSetting


class AttendanceSettingRepository(Protocol):
    def get(self, setting_id: str) -> Optional[AttendanceSetting]:
        raise NotImplementedError

    def save(self, setting: AttendanceSetting) -> None:
        """Insert or replace the row identified by ``setting.setting_id``."""

        raise NotImplementedError
