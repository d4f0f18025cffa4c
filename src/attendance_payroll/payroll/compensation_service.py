from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..common.validators import (
    optional_non_negative,
    optional_percentage,
    optional_text,
    require_non_negative,
    require_non_empty,
    require_percentage,
)
from ..core.enums import USER_ASSIGNED_DEDUCTIONS, DeductionCalculationType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AllowanceType, DeductionType, UserAllowance, UserDeduction
from .repository import CompensationRepository

logger = logging.getLogger(__name__)

_RULE_AMOUNT_REQUIRED = frozenset(
    {DeductionCalculationType.PER_LATE_INSTANCE, DeductionCalculationType.PER_ALPHA_DAY}
)
_RULE_PERCENTAGE_REQUIRED = frozenset(
    {DeductionCalculationType.PERCENTAGE_ALPHA_DAY, DeductionCalculationType.MANDATORY_PERCENTAGE}
)


def _parse_calculation_type(value: Any) -> DeductionCalculationType:
    if isinstance(value, DeductionCalculationType):
        return value
    try:
        return DeductionCalculationType(str(value or "").strip().upper())
    except ValueError:
        choices = ", ".join(t.value for t in DeductionCalculationType)
        raise ValidationError(f"Tipe kalkulasi tidak valid. Pilih dari: {choices}")


class CompensationService:
    """Master data tunjangan/potongan dan penetapannya ke pegawai (Super Admin)."""

    def __init__(self, compensation: CompensationRepository, users: UserRepository):
        self._compensation = compensation
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

    def _require_user(self, user_id: int) -> None:
        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("Pengguna tidak ditemukan")

    # Allowance types

    def list_allowance_types(self) -> Sequence[AllowanceType]:
        return self._compensation.list_allowance_types()

    def _get_allowance_type(self, allowance_type_id: int) -> AllowanceType:
        found = self._compensation.get_allowance_type(int(allowance_type_id))
        if not found:
            raise NotFoundError("Jenis tunjangan tidak ditemukan")
        return found

    def create_allowance_type(
        self,
        *,
        current_role: Role,
        name: str,
        description: Optional[str] = None,
        is_fixed: bool = True,
    ) -> int:
        self._require_admin(current_role)
        name = require_non_empty(name, "Nama jenis tunjangan")
        if self._compensation.get_allowance_type_by_name(name):
            raise ConflictError(f"Nama jenis tunjangan '{name}' sudah digunakan")

        new_id = self._compensation.create_allowance_type(
            name=name, description=optional_text(description), is_fixed=bool(is_fixed)
        )
        logger.info("Allowance type %s created (%s)", new_id, name)
        return new_id

    def update_allowance_type(
        self,
        *,
        current_role: Role,
        allowance_type_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_fixed: Optional[bool] = None,
    ) -> AllowanceType:
        self._require_admin(current_role)
        current = self._get_allowance_type(allowance_type_id)

        new_name = require_non_empty(name, "Nama jenis tunjangan") if name is not None else current.name
        duplicate = self._compensation.get_allowance_type_by_name(new_name)
        if duplicate and duplicate.allowance_type_id != current.allowance_type_id:
            raise ConflictError(f"Nama jenis tunjangan '{new_name}' sudah digunakan")

        updated = AllowanceType(
            allowance_type_id=current.allowance_type_id,
            name=new_name,
            description=optional_text(description) if description is not None else current.description,
            is_fixed=bool(is_fixed) if is_fixed is not None else current.is_fixed,
        )
        self._compensation.update_allowance_type(
            updated.allowance_type_id, name=updated.name, description=updated.description, is_fixed=updated.is_fixed
        )
        return updated

    def delete_allowance_type(self, *, current_role: Role, allowance_type_id: int) -> None:
        self._require_admin(current_role)
        current = self._get_allowance_type(allowance_type_id)
        if not self._compensation.delete_allowance_type(current.allowance_type_id):
            raise ValidationError("Gagal menghapus jenis tunjangan")
        logger.info("Allowance type %s deleted", current.allowance_type_id)

    # Deduction types

    def list_deduction_types(self) -> Sequence[DeductionType]:
        return self._compensation.list_deduction_types()

    def _get_deduction_type(self, deduction_type_id: int) -> DeductionType:
        found = self._compensation.get_deduction_type(int(deduction_type_id))
        if not found:
            raise NotFoundError("Jenis potongan tidak ditemukan")
        return found

    @staticmethod
    def _deduction_rules(
        calculation_type: DeductionCalculationType,
        rule_amount: Any,
        rule_percentage: Any,
    ) -> tuple[Optional[Decimal], Optional[Decimal]]:
        amount: Optional[Decimal] = None
        if calculation_type in _RULE_AMOUNT_REQUIRED:
            if rule_amount is None or (isinstance(rule_amount, str) and not rule_amount.strip()):
                raise ValidationError(f"Jumlah aturan wajib diisi untuk tipe {calculation_type.value}")
            amount = require_non_negative(rule_amount, "Jumlah aturan")

        percentage: Optional[Decimal] = None
        if calculation_type in _RULE_PERCENTAGE_REQUIRED:
            if rule_percentage is None or (isinstance(rule_percentage, str) and not rule_percentage.strip()):
                raise ValidationError(f"Persentase aturan wajib diisi untuk tipe {calculation_type.value}")
            percentage = require_percentage(rule_percentage, "Persentase aturan")
        elif calculation_type == DeductionCalculationType.PERCENTAGE_USER:
            # default for users without an assigned percentage
            percentage = optional_percentage(rule_percentage, "Persentase aturan")

        return amount, percentage

    def create_deduction_type(
        self,
        *,
        current_role: Role,
        name: str,
        calculation_type: Any,
        description: Optional[str] = None,
        rule_amount: Any = None,
        rule_percentage: Any = None,
        is_mandatory: bool = False,
    ) -> int:
        self._require_admin(current_role)
        name = require_non_empty(name, "Nama jenis potongan")
        calc = _parse_calculation_type(calculation_type)
        amount, percentage = self._deduction_rules(calc, rule_amount, rule_percentage)

        if self._compensation.get_deduction_type_by_name(name):
            raise ConflictError(f"Nama jenis potongan '{name}' sudah digunakan")

        new_id = self._compensation.create_deduction_type(
            name=name,
            description=optional_text(description),
            calculation_type=calc,
            rule_amount=amount,
            rule_percentage=percentage,
            is_mandatory=bool(is_mandatory),
        )
        logger.info("Deduction type %s created (%s, %s)", new_id, name, calc.value)
        return new_id

    def update_deduction_type(
        self,
        *,
        current_role: Role,
        deduction_type_id: int,
        name: Optional[str] = None,
        calculation_type: Any = None,
        description: Optional[str] = None,
        rule_amount: Any = None,
        rule_percentage: Any = None,
        is_mandatory: Optional[bool] = None,
    ) -> DeductionType:
        self._require_admin(current_role)
        current = self._get_deduction_type(deduction_type_id)

        new_name = require_non_empty(name, "Nama jenis potongan") if name is not None else current.name
        duplicate = self._compensation.get_deduction_type_by_name(new_name)
        if duplicate and duplicate.deduction_type_id != current.deduction_type_id:
            raise ConflictError(f"Nama jenis potongan '{new_name}' sudah digunakan")

        calc = _parse_calculation_type(calculation_type) if calculation_type is not None else current.calculation_type
        amount, percentage = self._deduction_rules(
            calc,
            rule_amount if rule_amount is not None else current.rule_amount,
            rule_percentage if rule_percentage is not None else current.rule_percentage,
        )

        updated = DeductionType(
            deduction_type_id=current.deduction_type_id,
            name=new_name,
            calculation_type=calc,
            description=optional_text(description) if description is not None else current.description,
            rule_amount=amount,
            rule_percentage=percentage,
            is_mandatory=bool(is_mandatory) if is_mandatory is not None else current.is_mandatory,
        )
        self._compensation.update_deduction_type(
            updated.deduction_type_id,
            name=updated.name,
            description=updated.description,
            calculation_type=updated.calculation_type,
            rule_amount=updated.rule_amount,
            rule_percentage=updated.rule_percentage,
            is_mandatory=updated.is_mandatory,
        )
        return updated

    def delete_deduction_type(self, *, current_role: Role, deduction_type_id: int) -> None:
        self._require_admin(current_role)
        current = self._get_deduction_type(deduction_type_id)
        in_use = self._compensation.count_user_deductions(current.deduction_type_id)
        if in_use:
            raise ConflictError(f"Jenis potongan '{current.name}' masih digunakan oleh {in_use} pegawai")
        if not self._compensation.delete_deduction_type(current.deduction_type_id):
            raise ValidationError("Gagal menghapus jenis potongan")
        logger.info("Deduction type %s deleted", current.deduction_type_id)

    # User allowances

    def list_user_allowances(self, *, current_role: Role, user_id: int) -> Sequence[UserAllowance]:
        self._require_admin(current_role)
        self._require_user(user_id)
        return self._compensation.list_user_allowances(int(user_id))

    def assign_allowance(self, *, current_role: Role, user_id: int, allowance_type_id: int, amount: Any) -> int:
        self._require_admin(current_role)
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            raise ValidationError("Jumlah tunjangan wajib diisi")
        value = require_non_negative(amount, "Jumlah tunjangan")
        self._require_user(user_id)
        allowance_type = self._get_allowance_type(allowance_type_id)

        if self._compensation.find_user_allowance(int(user_id), allowance_type.allowance_type_id):
            raise ConflictError("Jenis tunjangan ini sudah ditambahkan untuk pengguna tersebut")

        return self._compensation.create_user_allowance(
            user_id=int(user_id), allowance_type_id=allowance_type.allowance_type_id, amount=value
        )

    def update_user_allowance(self, *, current_role: Role, user_allowance_id: int, amount: Any) -> None:
        self._require_admin(current_role)
        value = require_non_negative(amount, "Jumlah tunjangan")
        if not self._compensation.get_user_allowance(int(user_allowance_id)):
            raise NotFoundError("Tunjangan pengguna tidak ditemukan")
        self._compensation.update_user_allowance(int(user_allowance_id), amount=value)

    def remove_user_allowance(self, *, current_role: Role, user_allowance_id: int) -> None:
        self._require_admin(current_role)
        if not self._compensation.delete_user_allowance(int(user_allowance_id)):
            raise NotFoundError("Tunjangan pengguna tidak ditemukan")

    # User deductions

    def list_user_deductions(self, *, current_role: Role, user_id: int) -> Sequence[UserDeduction]:
        self._require_admin(current_role)
        self._require_user(user_id)
        return self._compensation.list_user_deductions(int(user_id))

    @staticmethod
    def _assigned_values(
        deduction_type: DeductionType,
        assigned_amount: Any,
        assigned_percentage: Any,
    ) -> tuple[Optional[Decimal], Optional[Decimal]]:
        calc = deduction_type.calculation_type
        if calc not in USER_ASSIGNED_DEDUCTIONS:
            raise ValidationError(
                f"Jenis potongan '{deduction_type.name}' ({calc.value}) tidak memerlukan nilai spesifik per pegawai"
            )
        if calc == DeductionCalculationType.FIXED_USER:
            amount = optional_non_negative(assigned_amount, "Jumlah potongan")
            if amount is None:
                raise ValidationError(f"Jumlah potongan wajib diisi untuk tipe {calc.value}")
            return amount, None

        percentage = optional_percentage(assigned_percentage, "Persentase potongan")
        if percentage is None:
            raise ValidationError(f"Persentase potongan wajib diisi untuk tipe {calc.value}")
        return None, percentage

    def assign_deduction(
        self,
        *,
        current_role: Role,
        user_id: int,
        deduction_type_id: int,
        assigned_amount: Any = None,
        assigned_percentage: Any = None,
    ) -> int:
        self._require_admin(current_role)
        self._require_user(user_id)
        deduction_type = self._get_deduction_type(deduction_type_id)
        amount, percentage = self._assigned_values(deduction_type, assigned_amount, assigned_percentage)

        if self._compensation.find_user_deduction(int(user_id), deduction_type.deduction_type_id):
            raise ConflictError("Jenis potongan ini sudah ditambahkan untuk pengguna tersebut")

        return self._compensation.create_user_deduction(
            user_id=int(user_id),
            deduction_type_id=deduction_type.deduction_type_id,
            assigned_amount=amount,
            assigned_percentage=percentage,
        )

    def update_user_deduction(
        self,
        *,
        current_role: Role,
        user_deduction_id: int,
        assigned_amount: Any = None,
        assigned_percentage: Any = None,
    ) -> None:
        self._require_admin(current_role)
        current = self._compensation.get_user_deduction(int(user_deduction_id))
        if not current:
            raise NotFoundError("Potongan pengguna tidak ditemukan")
        deduction_type = self._get_deduction_type(current.deduction_type_id)
        amount, percentage = self._assigned_values(deduction_type, assigned_amount, assigned_percentage)
        self._compensation.update_user_deduction(
            current.user_deduction_id, assigned_amount=amount, assigned_percentage=percentage
        )

    def remove_user_deduction(self, *, current_role: Role, user_deduction_id: int) -> None:
        self._require_admin(current_role)
        if not self._compensation.delete_user_deduction(int(user_deduction_id)):
            raise NotFoundError("Potongan pengguna tidak ditemukan")
