from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..core.enums import DeductionCalculationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal_or_none
from .model import AllowanceType, DeductionType, UserAllowance, UserDeduction
from .repository import CompensationRepository

_USER_ALLOWANCE_SELECT = """
    SELECT ua.user_allowance_id, ua.user_id, ua.allowance_type_id, ua.amount, atype.name AS allowance_type_name
    FROM user_allowances ua
    JOIN allowance_types atype ON atype.allowance_type_id = ua.allowance_type_id
"""

_DEDUCTION_TYPE_SELECT = """
    SELECT deduction_type_id, name, description, calculation_type, rule_amount, rule_percentage, is_mandatory
    FROM deduction_types
"""

_USER_DEDUCTION_SELECT = """
    SELECT ud.user_deduction_id, ud.user_id, ud.deduction_type_id, ud.assigned_amount,
           ud.assigned_percentage, dt.name AS deduction_type_name
    FROM user_deductions ud
    JOIN deduction_types dt ON dt.deduction_type_id = ud.deduction_type_id
"""


def _allowance_type(r: Dict[str, Any]) -> AllowanceType:
    return AllowanceType(
        allowance_type_id=int(r["allowance_type_id"]),
        name=r["name"],
        description=r.get("description"),
        is_fixed=bool(r.get("is_fixed", True)),
    )


def _user_allowance(r: Dict[str, Any]) -> UserAllowance:
    return UserAllowance(
        user_allowance_id=int(r["user_allowance_id"]),
        user_id=int(r["user_id"]),
        allowance_type_id=int(r["allowance_type_id"]),
        amount=to_decimal_or_none(r["amount"]),
        allowance_type_name=r.get("allowance_type_name") or "",
    )


def _deduction_type(r: Dict[str, Any]) -> DeductionType:
    return DeductionType(
        deduction_type_id=int(r["deduction_type_id"]),
        name=r["name"],
        calculation_type=DeductionCalculationType(r["calculation_type"]),
        description=r.get("description"),
        rule_amount=to_decimal_or_none(r.get("rule_amount")),
        rule_percentage=to_decimal_or_none(r.get("rule_percentage")),
        is_mandatory=bool(r.get("is_mandatory", False)),
    )


def _user_deduction(r: Dict[str, Any]) -> UserDeduction:
    return UserDeduction(
        user_deduction_id=int(r["user_deduction_id"]),
        user_id=int(r["user_id"]),
        deduction_type_id=int(r["deduction_type_id"]),
        assigned_amount=to_decimal_or_none(r.get("assigned_amount")),
        assigned_percentage=to_decimal_or_none(r.get("assigned_percentage")),
        deduction_type_name=r.get("deduction_type_name") or "",
    )


class MySQLCompensationRepository(CompensationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, sql: str, params: tuple) -> Optional[Dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return fetchone(cur)

    def _all(self, sql: str, params: tuple = ()) -> list:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return fetchall(cur)

    def _insert(self, sql: str, params: tuple) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return int(cur.lastrowid)

    def _write(self, sql: str, params: tuple) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return cur.rowcount > 0

    # Allowance types
    def list_allowance_types(self) -> Sequence[AllowanceType]:
        rows = self._all("SELECT allowance_type_id, name, description, is_fixed FROM allowance_types ORDER BY name")
        return [_allowance_type(r) for r in rows]

    def get_allowance_type(self, allowance_type_id: int) -> Optional[AllowanceType]:
        r = self._one(
            "SELECT allowance_type_id, name, description, is_fixed FROM allowance_types WHERE allowance_type_id=%s",
            (int(allowance_type_id),),
        )
        return _allowance_type(r) if r else None

    def get_allowance_type_by_name(self, name: str) -> Optional[AllowanceType]:
        r = self._one(
            "SELECT allowance_type_id, name, description, is_fixed FROM allowance_types WHERE name=%s",
            (name,),
        )
        return _allowance_type(r) if r else None

    def create_allowance_type(self, *, name: str, description: Optional[str], is_fixed: bool) -> int:
        return self._insert(
            "INSERT INTO allowance_types(name, description, is_fixed) VALUES(%s,%s,%s)",
            (name, description, 1 if is_fixed else 0),
        )

    def update_allowance_type(
        self, allowance_type_id: int, *, name: str, description: Optional[str], is_fixed: bool
    ) -> bool:
        return self._write(
            "UPDATE allowance_types SET name=%s, description=%s, is_fixed=%s WHERE allowance_type_id=%s",
            (name, description, 1 if is_fixed else 0, int(allowance_type_id)),
        )

    def delete_allowance_type(self, allowance_type_id: int) -> bool:
        return self._write("DELETE FROM allowance_types WHERE allowance_type_id=%s", (int(allowance_type_id),))

    # User allowances
    def list_user_allowances(self, user_id: int) -> Sequence[UserAllowance]:
        rows = self._all(_USER_ALLOWANCE_SELECT + " WHERE ua.user_id=%s ORDER BY atype.name", (int(user_id),))
        return [_user_allowance(r) for r in rows]

    def get_user_allowance(self, user_allowance_id: int) -> Optional[UserAllowance]:
        r = self._one(_USER_ALLOWANCE_SELECT + " WHERE ua.user_allowance_id=%s", (int(user_allowance_id),))
        return _user_allowance(r) if r else None

    def find_user_allowance(self, user_id: int, allowance_type_id: int) -> Optional[UserAllowance]:
        r = self._one(
            _USER_ALLOWANCE_SELECT + " WHERE ua.user_id=%s AND ua.allowance_type_id=%s",
            (int(user_id), int(allowance_type_id)),
        )
        return _user_allowance(r) if r else None

    def create_user_allowance(self, *, user_id: int, allowance_type_id: int, amount: Decimal) -> int:
        return self._insert(
            "INSERT INTO user_allowances(user_id, allowance_type_id, amount) VALUES(%s,%s,%s)",
            (int(user_id), int(allowance_type_id), amount),
        )

    def update_user_allowance(self, user_allowance_id: int, *, amount: Decimal) -> bool:
        return self._write(
            "UPDATE user_allowances SET amount=%s WHERE user_allowance_id=%s",
            (amount, int(user_allowance_id)),
        )

    def delete_user_allowance(self, user_allowance_id: int) -> bool:
        return self._write("DELETE FROM user_allowances WHERE user_allowance_id=%s", (int(user_allowance_id),))

    # Deduction types
    def list_deduction_types(self) -> Sequence[DeductionType]:
        return [_deduction_type(r) for r in self._all(_DEDUCTION_TYPE_SELECT + " ORDER BY name")]

    def get_deduction_type(self, deduction_type_id: int) -> Optional[DeductionType]:
        r = self._one(_DEDUCTION_TYPE_SELECT + " WHERE deduction_type_id=%s", (int(deduction_type_id),))
        return _deduction_type(r) if r else None

    def get_deduction_type_by_name(self, name: str) -> Optional[DeductionType]:
        r = self._one(_DEDUCTION_TYPE_SELECT + " WHERE name=%s", (name,))
        return _deduction_type(r) if r else None

    def create_deduction_type(
        self,
        *,
        name: str,
        description: Optional[str],
        calculation_type: DeductionCalculationType,
        rule_amount: Optional[Decimal],
        rule_percentage: Optional[Decimal],
        is_mandatory: bool,
    ) -> int:
        return self._insert(
            """
            INSERT INTO deduction_types(name, description, calculation_type, rule_amount, rule_percentage, is_mandatory)
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (name, description, calculation_type.value, rule_amount, rule_percentage, 1 if is_mandatory else 0),
        )

    def update_deduction_type(
        self,
        deduction_type_id: int,
        *,
        name: str,
        description: Optional[str],
        calculation_type: DeductionCalculationType,
        rule_amount: Optional[Decimal],
        rule_percentage: Optional[Decimal],
        is_mandatory: bool,
    ) -> bool:
        return self._write(
            """
            UPDATE deduction_types
            SET name=%s, description=%s, calculation_type=%s, rule_amount=%s, rule_percentage=%s, is_mandatory=%s
            WHERE deduction_type_id=%s
            """,
            (
                name,
                description,
                calculation_type.value,
                rule_amount,
                rule_percentage,
                1 if is_mandatory else 0,
                int(deduction_type_id),
            ),
        )

    def delete_deduction_type(self, deduction_type_id: int) -> bool:
        return self._write("DELETE FROM deduction_types WHERE deduction_type_id=%s", (int(deduction_type_id),))

    def count_user_deductions(self, deduction_type_id: int) -> int:
        r = self._one(
            "SELECT COUNT(*) AS total FROM user_deductions WHERE deduction_type_id=%s",
            (int(deduction_type_id),),
        )
        return int(r["total"]) if r else 0

    # User deductions
    def list_user_deductions(self, user_id: int) -> Sequence[UserDeduction]:
        rows = self._all(_USER_DEDUCTION_SELECT + " WHERE ud.user_id=%s ORDER BY dt.name", (int(user_id),))
        return [_user_deduction(r) for r in rows]

    def get_user_deduction(self, user_deduction_id: int) -> Optional[UserDeduction]:
        r = self._one(_USER_DEDUCTION_SELECT + " WHERE ud.user_deduction_id=%s", (int(user_deduction_id),))
        return _user_deduction(r) if r else None

    def find_user_deduction(self, user_id: int, deduction_type_id: int) -> Optional[UserDeduction]:
        r = self._one(
            _USER_DEDUCTION_SELECT + " WHERE ud.user_id=%s AND ud.deduction_type_id=%s",
            (int(user_id), int(deduction_type_id)),
        )
        return _user_deduction(r) if r else None

    def create_user_deduction(
        self,
        *,
        user_id: int,
        deduction_type_id: int,
        assigned_amount: Optional[Decimal],
        assigned_percentage: Optional[Decimal],
    ) -> int:
        return self._insert(
            """
            INSERT INTO user_deductions(user_id, deduction_type_id, assigned_amount, assigned_percentage)
            VALUES(%s,%s,%s,%s)
            """,
            (int(user_id), int(deduction_type_id), assigned_amount, assigned_percentage),
        )

    def update_user_deduction(
        self,
        user_deduction_id: int,
        *,
        assigned_amount: Optional[Decimal],
        assigned_percentage: Optional[Decimal],
    ) -> bool:
        return self._write(
            "UPDATE user_deductions SET assigned_amount=%s, assigned_percentage=%s WHERE user_deduction_id=%s",
            (assigned_amount, assigned_percentage, int(user_deduction_id)),
        )

    def delete_user_deduction(self, user_deduction_id: int) -> bool:
        return self._write("DELETE FROM user_deductions WHERE user_deduction_id=%s", (int(user_deduction_id),))
