from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import optional_non_negative, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What the caller keeps after a successful login."""

    user_id: int
    name: str
    email: str
    role: Role


def _parse_role(value: Any) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Peran (role) tidak valid")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not password:
            raise AuthenticationError("Email atau password salah")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # placeholder or corrupted hash values
            ok = False

        if not ok:
            raise AuthenticationError("Email atau password salah")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


class UserService:
    """Use case: manage users (Super Admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Pengguna tidak ditemukan")
        return user

    def list_users(self, *, current_role: Role, role: Optional[Role] = None) -> Sequence[User]:
        self._require_admin(current_role)
        return self._users.list_users(role=role)

    def create_user(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        password: str,
        role: Any = Role.EMPLOYEE,
        base_salary: Any = None,
    ) -> int:
        self._require_admin(current_role)

        name = require_non_empty(name, "Nama")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role = _parse_role(role)
        if role == Role.SUPER_ADMIN:
            raise ValidationError("Tidak dapat membuat Super Admin baru")
        salary = optional_non_negative(base_salary, "Gaji pokok")

        if self._users.get_by_email(email):
            raise ConflictError("Email sudah terdaftar")

        user_id = self._users.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            base_salary=salary,
        )
        logger.info("Created user %s (%s, role=%s)", user_id, email, role.value)
        return user_id

    def update_user(
        self,
        *,
        current_role: Role,
        acting_user_id: int,
        user_id: int,
        name: Optional[str] = None,
        role: Any = None,
        base_salary: Any = None,
        clear_base_salary: bool = False,
    ) -> User:
        """Partial update; ``None`` keeps the current value.

        Pass ``clear_base_salary=True`` to remove the base salary, which takes
        the user out of payroll runs.
        """

        self._require_admin(current_role)
        user = self.get_user(user_id)

        new_name = require_non_empty(name, "Nama") if name is not None else user.name
        new_role = _parse_role(role) if role is not None else user.role
        if int(acting_user_id) == user.user_id and user.role == Role.SUPER_ADMIN and new_role != Role.SUPER_ADMIN:
            raise ValidationError("Super Admin tidak dapat mengubah perannya sendiri")

        if clear_base_salary:
            new_salary = None
        elif base_salary is not None:
            new_salary = optional_non_negative(base_salary, "Gaji pokok")
        else:
            new_salary = user.base_salary

        self._users.update_user(user.user_id, name=new_name, role=new_role, base_salary=new_salary)
        return User(
            user_id=user.user_id,
            name=new_name,
            email=user.email,
            password_hash=user.password_hash,
            role=new_role,
            base_salary=new_salary,
            profile_picture_url=user.profile_picture_url,
            created_at=user.created_at,
        )

    def reset_password(self, *, current_role: Role, user_id: int, new_password: str) -> None:
        self._require_admin(current_role)
        user = self.get_user(user_id)
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        if not self._users.update_password(user.user_id, password_hash=generate_password_hash(new_password)):
            raise ValidationError("Gagal mengubah password")
        logger.info("Password reset for user %s", user.user_id)

    def delete_user(self, *, current_role: Role, user_id: int) -> None:
        self._require_admin(current_role)

        user = self.get_user(user_id)
        if user.role == Role.SUPER_ADMIN:
            raise ValidationError("Akun Super Admin tidak dapat dihapus")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Gagal menghapus pengguna")
        logger.info("Deleted user %s", user.user_id)
