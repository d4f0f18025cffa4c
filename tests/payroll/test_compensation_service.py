from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from attendance_payroll.core.enums import DeductionCalculationType, Role
from attendance_payroll.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from attendance_payroll.payroll.compensation_service import CompensationService
from attendance_payroll.payroll.model import AllowanceType, DeductionType, UserAllowance, UserDeduction
from attendance_payroll.users.model import User

ADMIN = Role.SUPER_ADMIN


class FakeUsers:
    def get_by_id(self, user_id):
        if user_id == 3:
            return User(3, "Sari", "sari@kampus.ac.id", "x", Role.EMPLOYEE, Decimal("5000000"))
        return None


class FakeCompensationRepo:
    def __init__(self):
        self.allowance_types: dict[int, AllowanceType] = {}
        self.deduction_types: dict[int, DeductionType] = {}
        self.user_allowances: dict[int, UserAllowance] = {}
        self.user_deductions: dict[int, UserDeduction] = {}

    @staticmethod
    def _next(table):
        return max(table, default=0) + 1

    def list_allowance_types(self):
        return sorted(self.allowance_types.values(), key=lambda t: t.name)

    def get_allowance_type(self, allowance_type_id):
        return self.allowance_types.get(allowance_type_id)

    def get_allowance_type_by_name(self, name):
        return next((t for t in self.allowance_types.values() if t.name.lower() == name.lower()), None)

    def create_allowance_type(self, *, name, description, is_fixed):
        new_id = self._next(self.allowance_types)
        self.allowance_types[new_id] = AllowanceType(new_id, name, description, is_fixed)
        return new_id

    def update_allowance_type(self, allowance_type_id, *, name, description, is_fixed):
        self.allowance_types[allowance_type_id] = AllowanceType(allowance_type_id, name, description, is_fixed)
        return True

    def delete_allowance_type(self, allowance_type_id):
        return self.allowance_types.pop(allowance_type_id, None) is not None

    def list_user_allowances(self, user_id):
        return [a for a in self.user_allowances.values() if a.user_id == user_id]

    def get_user_allowance(self, user_allowance_id):
        return self.user_allowances.get(user_allowance_id)

    def find_user_allowance(self, user_id, allowance_type_id):
        return next(
            (a for a in self.user_allowances.values() if a.user_id == user_id and a.allowance_type_id == allowance_type_id),
            None,
        )

    def create_user_allowance(self, *, user_id, allowance_type_id, amount):
        new_id = self._next(self.user_allowances)
        self.user_allowances[new_id] = UserAllowance(new_id, user_id, allowance_type_id, amount)
        return new_id

    def update_user_allowance(self, user_allowance_id, *, amount):
        self.user_allowances[user_allowance_id] = replace(self.user_allowances[user_allowance_id], amount=amount)
        return True

    def delete_user_allowance(self, user_allowance_id):
        return self.user_allowances.pop(user_allowance_id, None) is not None

    def list_deduction_types(self):
        return sorted(self.deduction_types.values(), key=lambda t: t.name)

    def get_deduction_type(self, deduction_type_id):
        return self.deduction_types.get(deduction_type_id)

    def get_deduction_type_by_name(self, name):
        return next((t for t in self.deduction_types.values() if t.name.lower() == name.lower()), None)

    def create_deduction_type(self, *, name, description, calculation_type, rule_amount, rule_percentage, is_mandatory):
        new_id = self._next(self.deduction_types)
        self.deduction_types[new_id] = DeductionType(
            new_id, name, calculation_type, description, rule_amount, rule_percentage, is_mandatory
        )
        return new_id

    def update_deduction_type(
        self, deduction_type_id, *, name, description, calculation_type, rule_amount, rule_percentage, is_mandatory
    ):
        self.deduction_types[deduction_type_id] = DeductionType(
            deduction_type_id, name, calculation_type, description, rule_amount, rule_percentage, is_mandatory
        )
        return True

    def delete_deduction_type(self, deduction_type_id):
        return self.deduction_types.pop(deduction_type_id, None) is not None

    def count_user_deductions(self, deduction_type_id):
        return sum(1 for d in self.user_deductions.values() if d.deduction_type_id == deduction_type_id)

    def list_user_deductions(self, user_id):
        return [d for d in self.user_deductions.values() if d.user_id == user_id]

    def get_user_deduction(self, user_deduction_id):
        return self.user_deductions.get(user_deduction_id)

    def find_user_deduction(self, user_id, deduction_type_id):
        return next(
            (d for d in self.user_deductions.values() if d.user_id == user_id and d.deduction_type_id == deduction_type_id),
            None,
        )

    def create_user_deduction(self, *, user_id, deduction_type_id, assigned_amount, assigned_percentage):
        new_id = self._next(self.user_deductions)
        self.user_deductions[new_id] = UserDeduction(new_id, user_id, deduction_type_id, assigned_amount, assigned_percentage)
        return new_id

    def update_user_deduction(self, user_deduction_id, *, assigned_amount, assigned_percentage):
        self.user_deductions[user_deduction_id] = replace(
            self.user_deductions[user_deduction_id],
            assigned_amount=assigned_amount,
            assigned_percentage=assigned_percentage,
        )
        return True

    def delete_user_deduction(self, user_deduction_id):
        return self.user_deductions.pop(user_deduction_id, None) is not None


def make_service():
    repo = FakeCompensationRepo()
    return CompensationService(repo, FakeUsers()), repo


def test_allowance_type_crud():
    svc, repo = make_service()
    tid = svc.create_allowance_type(current_role=ADMIN, name="Transport", description="  ")
    assert repo.allowance_types[tid].description is None
    assert repo.allowance_types[tid].is_fixed is True

    with pytest.raises(ConflictError):
        svc.create_allowance_type(current_role=ADMIN, name="transport")
    with pytest.raises(AuthorizationError):
        svc.create_allowance_type(current_role=Role.YAYASAN, name="Makan")

    other = svc.create_allowance_type(current_role=ADMIN, name="Makan")
    with pytest.raises(ConflictError):
        svc.update_allowance_type(current_role=ADMIN, allowance_type_id=other, name="Transport")

    updated = svc.update_allowance_type(current_role=ADMIN, allowance_type_id=tid, is_fixed=False)
    assert updated.name == "Transport"
    assert updated.is_fixed is False

    svc.delete_allowance_type(current_role=ADMIN, allowance_type_id=tid)
    assert [t.name for t in svc.list_allowance_types()] == ["Makan"]
    with pytest.raises(NotFoundError):
        svc.delete_allowance_type(current_role=ADMIN, allowance_type_id=tid)


@pytest.mark.parametrize(
    "calc, amount, pct",
    [
        ("PER_LATE_INSTANCE", None, None),
        ("PER_ALPHA_DAY", "-1", None),
        ("PERCENTAGE_ALPHA_DAY", None, None),
        ("MANDATORY_PERCENTAGE", None, "101"),
        ("PERCENTAGE_USER", None, "-5"),
        ("POTONGAN_BEBAS", None, None),
    ],
)
def test_deduction_type_rules_are_validated(calc, amount, pct):
    svc, _ = make_service()
    with pytest.raises(ValidationError):
        svc.create_deduction_type(
            current_role=ADMIN, name="Potongan", calculation_type=calc, rule_amount=amount, rule_percentage=pct
        )


def test_deduction_type_keeps_only_relevant_rules():
    svc, repo = make_service()
    tid = svc.create_deduction_type(
        current_role=ADMIN,
        name="Potongan Terlambat",
        calculation_type="per_late_instance",
        rule_amount="25000",
        rule_percentage="10",
    )
    created = repo.deduction_types[tid]
    assert created.calculation_type == DeductionCalculationType.PER_LATE_INSTANCE
    assert created.rule_amount == Decimal("25000")
    assert created.rule_percentage is None

    updated = svc.update_deduction_type(
        current_role=ADMIN, deduction_type_id=tid, calculation_type="MANDATORY_PERCENTAGE", rule_percentage="2"
    )
    assert updated.rule_amount is None
    assert updated.rule_percentage == Decimal("2")


def test_deduction_type_in_use_cannot_be_deleted():
    svc, repo = make_service()
    tid = svc.create_deduction_type(current_role=ADMIN, name="Koperasi", calculation_type="FIXED_USER")
    svc.assign_deduction(current_role=ADMIN, user_id=3, deduction_type_id=tid, assigned_amount="100000")

    with pytest.raises(ConflictError):
        svc.delete_deduction_type(current_role=ADMIN, deduction_type_id=tid)

    svc.remove_user_deduction(current_role=ADMIN, user_deduction_id=1)
    svc.delete_deduction_type(current_role=ADMIN, deduction_type_id=tid)
    assert repo.deduction_types == {}


def test_assign_allowance():
    svc, repo = make_service()
    tid = svc.create_allowance_type(current_role=ADMIN, name="Transport")

    ua = svc.assign_allowance(current_role=ADMIN, user_id=3, allowance_type_id=tid, amount="300000")
    assert repo.user_allowances[ua].amount == Decimal("300000")

    with pytest.raises(ConflictError):
        svc.assign_allowance(current_role=ADMIN, user_id=3, allowance_type_id=tid, amount="1")
    with pytest.raises(NotFoundError):
        svc.assign_allowance(current_role=ADMIN, user_id=9, allowance_type_id=tid, amount="1")
    with pytest.raises(ValidationError):
        svc.assign_allowance(current_role=ADMIN, user_id=3, allowance_type_id=tid, amount="")

    svc.update_user_allowance(current_role=ADMIN, user_allowance_id=ua, amount="350000")
    assert len(svc.list_user_allowances(current_role=ADMIN, user_id=3)) == 1
    assert repo.user_allowances[ua].amount == Decimal("350000")

    svc.remove_user_allowance(current_role=ADMIN, user_allowance_id=ua)
    with pytest.raises(NotFoundError):
        svc.remove_user_allowance(current_role=ADMIN, user_allowance_id=ua)


def test_assign_deduction_values_follow_calculation_type():
    svc, repo = make_service()
    fixed = svc.create_deduction_type(current_role=ADMIN, name="Koperasi", calculation_type="FIXED_USER")
    pct = svc.create_deduction_type(current_role=ADMIN, name="Pajak", calculation_type="PERCENTAGE_USER")
    late = svc.create_deduction_type(
        current_role=ADMIN, name="Terlambat", calculation_type="PER_LATE_INSTANCE", rule_amount="10000"
    )

    with pytest.raises(ValidationError):
        svc.assign_deduction(current_role=ADMIN, user_id=3, deduction_type_id=fixed)
    with pytest.raises(ValidationError):
        svc.assign_deduction(current_role=ADMIN, user_id=3, deduction_type_id=pct, assigned_amount="5")
    with pytest.raises(ValidationError):
        svc.assign_deduction(current_role=ADMIN, user_id=3, deduction_type_id=late, assigned_amount="5")

    ud = svc.assign_deduction(
        current_role=ADMIN, user_id=3, deduction_type_id=pct, assigned_amount="99", assigned_percentage="5"
    )
    assert repo.user_deductions[ud].assigned_amount is None
    assert repo.user_deductions[ud].assigned_percentage == Decimal("5")

    svc.update_user_deduction(current_role=ADMIN, user_deduction_id=ud, assigned_percentage="7.5")
    assert repo.user_deductions[ud].assigned_percentage == Decimal("7.5")
    assert len(svc.list_user_deductions(current_role=ADMIN, user_id=3)) == 1

    with pytest.raises(ConflictError):
        svc.assign_deduction(current_role=ADMIN, user_id=3, deduction_type_id=pct, assigned_percentage="5")
