"""Capability predicates over a user's role set.

Plain boolean combinations: no precedence, no deny rules.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Optional

from ..core.constants import DUTY_MANAGER_GROUP
from ..core.enums import Role

RoleSet = AbstractSet[Role]


def to_role_set(values: Iterable[str | Role]) -> frozenset[Role]:
    """Build a role set from stored strings, ignoring unknown tags."""
    roles = set()
    for value in values:
        try:
            roles.add(Role(value))
        except ValueError:
            continue
    return frozenset(roles)


def has_role(roles: RoleSet, role: Role) -> bool:
    return role in roles


def is_class_teacher(roles: RoleSet, own_class_id: Optional[str], class_id: str) -> bool:
    return Role.CLASS_TEACHER in roles and own_class_id is not None and own_class_id == class_id


def can_access_meals(roles: RoleSet) -> bool:
    # GVCN và Admin có thể báo cơm
    return Role.ADMIN in roles or Role.CLASS_TEACHER in roles


def can_access_meal_stats(roles: RoleSet) -> bool:
    return can_access_meals(roles) or Role.ACCOUNTANT in roles or Role.KITCHEN in roles


def can_access_attendance(roles: RoleSet) -> bool:
    # Giáo viên, GVCN, Admin có thể điểm danh và xem thống kê sỹ số
    return can_access_meals(roles) or Role.TEACHER in roles


def can_manage_users(roles: RoleSet) -> bool:
    return Role.ADMIN in roles


def can_manage_duty(roles: RoleSet, group_names: Iterable[str] = ()) -> bool:
    return Role.ADMIN in roles or DUTY_MANAGER_GROUP in set(group_names)


def can_manage_students(roles: RoleSet) -> bool:
    return Role.ADMIN in roles
