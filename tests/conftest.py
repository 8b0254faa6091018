from __future__ import annotations

from dataclasses import asdict, replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from src.boarding_management.boarding_management.common.datetime_utils import month_range
from src.boarding_management.boarding_management.container import build_services
from src.boarding_management.boarding_management.core.enums import Feature, Role
from src.boarding_management.boarding_management.duty.model import DutyEntry, DutySchedule
from src.boarding_management.boarding_management.features.model import AppFeature, FeatureDraft
from src.boarding_management.boarding_management.logins.model import LoginRecord
from src.boarding_management.boarding_management.main import create_app
from src.boarding_management.boarding_management.permissions.model import FeatureGrant, PermissionGroup
from src.boarding_management.boarding_management.reports.model import AttendanceReport, NewReport
from src.boarding_management.boarding_management.students.model import NewStudent, Student
from src.boarding_management.boarding_management.teachers.store import TeacherStore
from src.boarding_management.boarding_management.users.model import User
from src.boarding_management.boarding_management.users.service import SessionUser


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._next_id = 1

    def add(
        self,
        *,
        email: str,
        full_name: str,
        password: str = "secret123",
        username: Optional[str] = None,
        phone: Optional[str] = None,
        class_id: Optional[str] = None,
        roles: Iterable[Role] = (),
        is_active: bool = True,
    ) -> User:
        user_id = self.create_user(
            email=email,
            password_hash=generate_password_hash(password, method="pbkdf2:sha256:1000"),
            full_name=full_name,
            phone=phone,
            username=username,
            class_id=class_id,
            roles=roles,
        )
        if not is_active:
            self.users[user_id] = replace(self.users[user_id], is_active=False)
        return self.users[user_id]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def get_email_by_login(self, login: str) -> Optional[str]:
        for u in self.users.values():
            if u.username == login:
                return u.email
        for u in self.users.values():
            if u.phone == login:
                return u.email
        return None

    def list_with_roles(self) -> Sequence[User]:
        return sorted(self.users.values(), key=lambda u: u.full_name)

    def create_user(self, *, email, password_hash, full_name, phone, username, class_id, roles=()) -> int:
        user_id = self._next_id
        self._next_id += 1
        self.users[user_id] = User(
            user_id=user_id,
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            username=username,
            phone=phone,
            class_id=class_id,
            roles=frozenset(roles),
        )
        return user_id

    def update_profile(self, user_id, *, full_name, phone, username, class_id) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(
            user, full_name=full_name, phone=phone, username=username, class_id=class_id
        )
        return True

    def set_roles(self, user_id, roles) -> None:
        user = self.users[int(user_id)]
        self.users[user.user_id] = replace(user, roles=frozenset(roles))

    def delete_by_id(self, user_id) -> bool:
        return self.users.pop(int(user_id), None) is not None


class InMemoryStudents:
    def __init__(self):
        self.students: dict[int, Student] = {}
        self._next_id = 1
        self.bulk_calls = 0

    def list_all(self) -> Sequence[Student]:
        return sorted(self.students.values(), key=lambda s: s.name)

    def get_by_id(self, student_id) -> Optional[Student]:
        return self.students.get(int(student_id))

    def create(self, student: NewStudent) -> int:
        student_id = self._next_id
        self._next_id += 1
        self.students[student_id] = Student(student_id=student_id, **asdict(student))
        return student_id

    def bulk_create(self, students: Sequence[NewStudent]) -> int:
        self.bulk_calls += 1
        for s in students:
            self.create(s)
        return len(students)

    def update(self, student_id, student: NewStudent) -> bool:
        if int(student_id) not in self.students:
            return False
        self.students[int(student_id)] = Student(student_id=int(student_id), **asdict(student))
        return True

    def delete(self, student_id) -> bool:
        return self.students.pop(int(student_id), None) is not None

    def delete_all(self) -> int:
        count = len(self.students)
        self.students.clear()
        return count


class InMemoryDuty:
    def __init__(self):
        self.entries: dict[int, DutySchedule] = {}
        self._next_id = 1
        self.replace_calls: list[list[tuple[int, int]]] = []

    def seed(self, teacher_name: str, duty_date: date) -> int:
        return self.create(DutyEntry(teacher_name=teacher_name, duty_date=duty_date), created_by=None)

    def pairs(self) -> list[tuple[str, date]]:
        return sorted((d.teacher_name, d.duty_date) for d in self.entries.values())

    def list_range(self, start: date, end: date) -> Sequence[DutySchedule]:
        items = [d for d in self.entries.values() if start <= d.duty_date <= end]
        return sorted(items, key=lambda d: (d.duty_date, d.teacher_name))

    def list_for_date(self, duty_date: date) -> Sequence[DutySchedule]:
        return self.list_range(duty_date, duty_date)

    def get_by_id(self, duty_id) -> Optional[DutySchedule]:
        return self.entries.get(int(duty_id))

    def create(self, entry: DutyEntry, *, created_by) -> int:
        duty_id = self._next_id
        self._next_id += 1
        self.entries[duty_id] = DutySchedule(
            duty_id=duty_id,
            teacher_name=entry.teacher_name,
            duty_date=entry.duty_date,
            notes=entry.notes,
            created_by=created_by,
        )
        return duty_id

    def update(self, duty_id, entry: DutyEntry) -> bool:
        current = self.entries.get(int(duty_id))
        if not current:
            return False
        self.entries[current.duty_id] = replace(
            current, teacher_name=entry.teacher_name, duty_date=entry.duty_date, notes=entry.notes
        )
        return True

    def delete(self, duty_id) -> bool:
        return self.entries.pop(int(duty_id), None) is not None

    def replace_months(self, months, entries, *, created_by) -> int:
        months = sorted(set(months))
        self.replace_calls.append(months)
        for year, month in months:
            start, end = month_range(year, month)
            for duty in self.list_range(start, end):
                del self.entries[duty.duty_id]
        for entry in entries:
            self.create(entry, created_by=created_by)
        return len(entries)


class InMemoryReports:
    def __init__(self):
        self.reports: dict[int, AttendanceReport] = {}
        self._next_id = 1
        self._clock = datetime(2024, 1, 1, 7, 0, 0)
        self.range_calls = 0

    def _newest_first(self, reports) -> list[AttendanceReport]:
        return sorted(reports, key=lambda r: (r.report_date, r.created_at), reverse=True)

    def list_range(self, start: date, end: date) -> Sequence[AttendanceReport]:
        self.range_calls += 1
        return self._newest_first(r for r in self.reports.values() if start <= r.report_date <= end)

    def list_for_dates(self, dates) -> Sequence[AttendanceReport]:
        wanted = set(dates)
        return self._newest_first(r for r in self.reports.values() if r.report_date in wanted)

    def get_by_id(self, report_id) -> Optional[AttendanceReport]:
        return self.reports.get(int(report_id))

    def create(self, report: NewReport) -> int:
        report_id = self._next_id
        self._next_id += 1
        self._clock += timedelta(minutes=1)
        self.reports[report_id] = AttendanceReport(report_id=report_id, created_at=self._clock, **asdict_shallow(report))
        return report_id

    def delete(self, report_id) -> bool:
        return self.reports.pop(int(report_id), None) is not None


def asdict_shallow(obj) -> dict:
    # dataclasses.asdict would turn the nested snapshots into dicts
    return {name: getattr(obj, name) for name in obj.__dataclass_fields__}


class InMemoryPermissions:
    def __init__(self):
        self.groups: dict[int, PermissionGroup] = {}
        self.group_grants: dict[int, list[FeatureGrant]] = {}
        self.memberships: set[tuple[int, int]] = set()
        self.user_grants: dict[int, list[FeatureGrant]] = {}
        self._next_id = 1

    def membership_rows(self, user_id: int) -> list[tuple[int, int]]:
        return sorted(m for m in self.memberships if m[0] == user_id)

    def list_groups(self):
        return sorted(self.groups.values(), key=lambda g: g.name)

    def get_group(self, group_id):
        return self.groups.get(int(group_id))

    def get_group_by_name(self, name):
        return next((g for g in self.groups.values() if g.name == name), None)

    def create_group(self, *, name, description) -> int:
        group_id = self._next_id
        self._next_id += 1
        self.groups[group_id] = PermissionGroup(group_id=group_id, name=name, description=description)
        return group_id

    def update_group(self, group_id, *, name, description) -> bool:
        group = self.groups.get(int(group_id))
        if not group:
            return False
        self.groups[group.group_id] = replace(group, name=name, description=description)
        return True

    def delete_group(self, group_id) -> bool:
        if self.groups.pop(int(group_id), None) is None:
            return False
        self.group_grants.pop(int(group_id), None)
        self.memberships = {m for m in self.memberships if m[1] != int(group_id)}
        return True

    def list_group_permissions(self, group_id):
        return list(self.group_grants.get(int(group_id), []))

    def replace_group_permissions(self, group_id, grants) -> None:
        self.group_grants[int(group_id)] = list(grants)

    def list_user_group_ids(self, user_id):
        return [g for u, g in self.membership_rows(int(user_id))]

    def replace_user_groups(self, user_id, group_ids) -> None:
        self.memberships = {m for m in self.memberships if m[0] != int(user_id)}
        for gid in group_ids:
            self.memberships.add((int(user_id), int(gid)))

    def add_user_groups(self, pairs) -> None:
        for uid, gid in pairs:
            self.memberships.add((int(uid), int(gid)))

    def list_user_permissions(self, user_id):
        return list(self.user_grants.get(int(user_id), []))

    def list_all_user_permissions(self):
        return {uid: list(grants) for uid, grants in self.user_grants.items()}

    def replace_user_permissions(self, user_id, grants) -> None:
        self.user_grants[int(user_id)] = list(grants)

    def user_group_names(self, user_id):
        return [self.groups[g].name for u, g in self.membership_rows(int(user_id)) if g in self.groups]


class InMemoryFeatures:
    def __init__(self, permissions: InMemoryPermissions):
        self.features: dict[int, AppFeature] = {}
        self._permissions = permissions
        self._next_id = 1

    def add(self, code: Feature, *, label: Optional[str] = None, display_order: int = 0, is_active: bool = True) -> AppFeature:
        feature_id = self.create(
            FeatureDraft(code=code.value, label=label or code.label, icon_name="Settings",
                         display_order=display_order, is_active=is_active)
        )
        return self.features[feature_id]

    def list_features(self):
        return sorted(self.features.values(), key=lambda f: (f.display_order, f.code.value))

    def get(self, feature_id):
        return self.features.get(int(feature_id))

    def get_by_code(self, code):
        return next((f for f in self.features.values() if f.code == code), None)

    def _build(self, feature_id: int, draft: FeatureDraft) -> AppFeature:
        return AppFeature(
            feature_id=feature_id,
            code=Feature(draft.code),
            label=draft.label,
            description=draft.description,
            icon_name=draft.icon_name,
            display_order=draft.display_order,
            is_active=draft.is_active,
        )

    def create(self, draft: FeatureDraft) -> int:
        feature_id = self._next_id
        self._next_id += 1
        self.features[feature_id] = self._build(feature_id, draft)
        return feature_id

    def update(self, feature_id, draft) -> bool:
        if int(feature_id) not in self.features:
            return False
        self.features[int(feature_id)] = self._build(int(feature_id), draft)
        return True

    def set_active(self, feature_id, active) -> bool:
        feature = self.features.get(int(feature_id))
        if not feature:
            return False
        self.features[feature.feature_id] = replace(feature, is_active=active)
        return True

    def delete(self, feature) -> None:
        perms = self._permissions
        perms.user_grants = {u: [g for g in gs if g.feature != feature.code] for u, gs in perms.user_grants.items()}
        perms.group_grants = {k: [g for g in gs if g.feature != feature.code] for k, gs in perms.group_grants.items()}
        self.features.pop(feature.feature_id, None)


class InMemoryLoginHistory:
    def __init__(self, users: InMemoryUsers):
        self.records: list[LoginRecord] = []
        self._users = users

    def record(self, user_id, *, success, client) -> None:
        user = self._users.get_by_id(user_id)
        self.records.append(
            LoginRecord(
                record_id=len(self.records) + 1,
                user_id=int(user_id),
                login_at=datetime(2024, 3, 1, 7, 0) + timedelta(minutes=len(self.records)),
                success=success,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
                full_name=user.full_name if user else None,
            )
        )

    def list_recent(self, *, limit, user_id=None):
        rows = [r for r in self.records if user_id is None or r.user_id == int(user_id)]
        return sorted(rows, key=lambda r: (r.login_at, r.record_id), reverse=True)[:limit]


@pytest.fixture
def users_repo():
    return InMemoryUsers()


@pytest.fixture
def students_repo():
    return InMemoryStudents()


@pytest.fixture
def duty_repo():
    return InMemoryDuty()


@pytest.fixture
def reports_repo():
    return InMemoryReports()


@pytest.fixture
def permissions_repo():
    return InMemoryPermissions()


@pytest.fixture
def features_repo(permissions_repo):
    return InMemoryFeatures(permissions_repo)


@pytest.fixture
def login_history_repo(users_repo):
    return InMemoryLoginHistory(users_repo)


@pytest.fixture
def teacher_store(tmp_path):
    return TeacherStore(tmp_path / "teachers.json")


@pytest.fixture
def container(
    users_repo, students_repo, duty_repo, reports_repo, permissions_repo, features_repo, login_history_repo, teacher_store
):
    return build_services(
        users_repo=users_repo,
        students_repo=students_repo,
        duty_repo=duty_repo,
        reports_repo=reports_repo,
        permissions_repo=permissions_repo,
        features_repo=features_repo,
        login_history_repo=login_history_repo,
        teacher_store=teacher_store,
    )


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_actor():
    def _make(*roles: Role, user_id: int = 1, class_id: Optional[str] = None, full_name: str = "Người dùng") -> SessionUser:
        return SessionUser(
            user_id=user_id,
            full_name=full_name,
            email=f"user{user_id}@school.edu.vn",
            roles=frozenset(roles),
            class_id=class_id,
        )

    return _make


@pytest.fixture
def admin_user(users_repo):
    return users_repo.add(
        email="admin@school.edu.vn",
        username="admin",
        full_name="Quản trị hệ thống",
        password="admin123",
        roles={Role.ADMIN},
    )


@pytest.fixture
def login(client):
    def _login(identifier: str, password: str):
        return client.post("/api/auth/login", json={"identifier": identifier, "password": password})

    return _login
