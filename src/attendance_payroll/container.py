from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.recap import AttendanceRecapService
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.service import LeaveService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.compensation_service import CompensationService
from .payroll.mysql_compensation_repository import MySQLCompensationRepository
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService
from .settings.mysql_setting_repository import MySQLAttendanceSettingRepository
from .settings.service import AttendanceSettingsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    settings_repo: MySQLAttendanceSettingRepository
    attendance_repo: MySQLAttendanceRepository
    leave_repo: MySQLLeaveRequestRepository
    compensation_repo: MySQLCompensationRepository
    payroll_repo: MySQLPayrollRepository

    auth_service: AuthService
    user_service: UserService
    settings_service: AttendanceSettingsService
    attendance_service: AttendanceService
    recap_service: AttendanceRecapService
    leave_service: LeaveService
    compensation_service: CompensationService
    payroll_service: PayrollService


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    settings_repo = MySQLAttendanceSettingRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leave_repo = MySQLLeaveRequestRepository(conn)
    compensation_repo = MySQLCompensationRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    settings_service = AttendanceSettingsService(settings_repo)
    recap_service = AttendanceRecapService(attendance_repo, users_repo, settings_service)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        settings_service,
        strategy_factory=AttendanceStrategyFactory(),
        transaction=conn.transaction,
    )
    leave_service = LeaveService(leave_repo, attendance_repo, transaction=conn.transaction)
    payroll_service = PayrollService(
        payroll_repo,
        compensation_repo,
        users_repo,
        recap_service,
        calculator=StandardPayrollCalculator(),
        transaction=conn.transaction,
        savepoint=conn.savepoint,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        compensation_repo=compensation_repo,
        payroll_repo=payroll_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        settings_service=settings_service,
        attendance_service=attendance_service,
        recap_service=recap_service,
        leave_service=leave_service,
        compensation_service=CompensationService(compensation_repo, users_repo),
        payroll_service=payroll_service,
    )
