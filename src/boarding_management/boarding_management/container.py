from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .common.cache import QueryCache
from .core.constants import DEFAULT_CACHE_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .duty.mysql_duty_repository import MySQLDutyRepository
from .duty.repository import DutyRepository
from .duty.service import DutyService
from .features.mysql_feature_repository import MySQLFeatureRepository
from .features.repository import FeatureRepository
from .features.service import FeatureService
from .logins.mysql_login_repository import MySQLLoginHistoryRepository
from .logins.repository import LoginHistoryRepository
from .logins.service import LoginHistoryService
from .permissions.mysql_permission_repository import MySQLPermissionRepository
from .permissions.repository import PermissionRepository
from .permissions.service import PermissionService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .teachers.store import TeacherStore
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    cache: QueryCache

    users_repo: UserRepository
    students_repo: StudentRepository
    duty_repo: DutyRepository
    reports_repo: ReportRepository
    permissions_repo: PermissionRepository
    features_repo: FeatureRepository
    login_history_repo: LoginHistoryRepository
    teacher_store: TeacherStore

    auth_service: AuthService
    user_service: UserService
    student_service: StudentService
    duty_service: DutyService
    report_service: ReportService
    permission_service: PermissionService
    feature_service: FeatureService
    login_history_service: LoginHistoryService


def build_services(
    *,
    users_repo: UserRepository,
    students_repo: StudentRepository,
    duty_repo: DutyRepository,
    reports_repo: ReportRepository,
    permissions_repo: PermissionRepository,
    features_repo: FeatureRepository,
    login_history_repo: LoginHistoryRepository,
    teacher_store: TeacherStore,
    conn: Optional[DatabaseConnection] = None,
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
) -> Container:
    """Wire services over the given repositories (MySQL or in-memory)."""
    cache = QueryCache(cache_ttl_seconds)
    login_history = LoginHistoryService(login_history_repo)
    return Container(
        conn=conn,
        cache=cache,
        users_repo=users_repo,
        students_repo=students_repo,
        duty_repo=duty_repo,
        reports_repo=reports_repo,
        permissions_repo=permissions_repo,
        features_repo=features_repo,
        login_history_repo=login_history_repo,
        teacher_store=teacher_store,
        auth_service=AuthService(users_repo, login_history),
        user_service=UserService(users_repo),
        student_service=StudentService(students_repo, cache),
        duty_service=DutyService(duty_repo, permissions_repo, cache),
        report_service=ReportService(reports_repo, students_repo, cache),
        permission_service=PermissionService(permissions_repo, cache),
        feature_service=FeatureService(features_repo, cache),
        login_history_service=login_history,
    )


def build_container(
    *,
    db_config: dict,
    teacher_store_path: str | Path,
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    teacher_store = TeacherStore(teacher_store_path)
    teacher_store.load()

    return build_services(
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        duty_repo=MySQLDutyRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        permissions_repo=MySQLPermissionRepository(conn),
        features_repo=MySQLFeatureRepository(conn),
        login_history_repo=MySQLLoginHistoryRepository(conn),
        teacher_store=teacher_store,
        conn=conn,
        cache_ttl_seconds=cache_ttl_seconds,
    )
