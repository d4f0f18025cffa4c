from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_float_or_none
from .model import AttendanceSetting
from .repository import AttendanceSettingRepository


class MySQLAttendanceSettingRepository(AttendanceSettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, setting_id: str) -> Optional[AttendanceSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT setting_id, work_start_hour, work_start_minute, late_tolerance_minutes,
                       work_end_hour, work_end_minute, is_location_lock_active,
                       target_latitude, target_longitude, allowed_radius_meters, updated_at
                FROM attendance_settings
                WHERE setting_id=%s
                """,
                (setting_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            radius = r.get("allowed_radius_meters")
            return AttendanceSetting(
                setting_id=r["setting_id"],
                work_start_hour=int(r["work_start_hour"]),
                work_start_minute=int(r["work_start_minute"]),
                late_tolerance_minutes=int(r["late_tolerance_minutes"]),
                work_end_hour=int(r["work_end_hour"]),
                work_end_minute=int(r["work_end_minute"]),
                is_location_lock_active=bool(r["is_location_lock_active"]),
                target_latitude=to_float_or_none(r.get("target_latitude")),
                target_longitude=to_float_or_none(r.get("target_longitude")),
                allowed_radius_meters=int(radius) if radius is not None else None,
                updated_at=r.get("updated_at"),
            )

    def save(self, setting: AttendanceSetting) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_settings(
                    setting_id, work_start_hour, work_start_minute, late_tolerance_minutes,
                    work_end_hour, work_end_minute, is_location_lock_active,
                    target_latitude, target_longitude, allowed_radius_meters
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    work_start_hour=VALUES(work_start_hour),
                    work_start_minute=VALUES(work_start_minute),
                    late_tolerance_minutes=VALUES(late_tolerance_minutes),
                    work_end_hour=VALUES(work_end_hour),
                    work_end_minute=VALUES(work_end_minute),
                    is_location_lock_active=VALUES(is_location_lock_active),
                    target_latitude=VALUES(target_latitude),
                    target_longitude=VALUES(target_longitude),
                    allowed_radius_meters=VALUES(allowed_radius_meters)
                """,
                (
                    setting.setting_id,
                    setting.work_start_hour,
                    setting.work_start_minute,
                    setting.late_tolerance_minutes,
                    setting.work_end_hour,
                    setting.work_end_minute,
                    1 if setting.is_location_lock_active else 0,
                    setting.target_latitude,
                    setting.target_longitude,
                    setting.allowed_radius_meters,
                ),
            )
