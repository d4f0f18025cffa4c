from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Entitas domain: pengguna/pegawai.

    Catatan: objek data murni, tanpa akses DB.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    base_salary: Optional[Decimal] = None
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
