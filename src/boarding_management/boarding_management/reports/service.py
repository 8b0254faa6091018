from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.cache import QueryCache
from ..common.datetime_utils import previous_day
from ..core.constants import MAX_REPORT_RANGE_DAYS
from ..core.enums import BoardingSession, MealType, ReportType, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..students.repository import StudentRepository
from ..users.capabilities import can_access_attendance, can_access_meal_stats, can_access_meals, is_class_teacher
from ..users.service import SessionUser
from .model import Absence, AbsentStudent, AttendanceReport, NewReport
from .repository import ReportRepository
from .stats import DailyMealStats, daily_meal_stats

logger = logging.getLogger(__name__)

CACHE_ENTITY = "attendance_reports"


class ReportService:
    """Use case: attendance/meal reports and daily meal statistics."""

    def __init__(
        self,
        reports: ReportRepository,
        students: StudentRepository,
        cache: Optional[QueryCache] = None,
    ):
        self._reports = reports
        self._students = students
        self._cache = cache or QueryCache()

    def list_reports(self, start: date, end: date) -> Sequence[AttendanceReport]:
        """History for start..end inclusive, newest first."""
        if end < start:
            raise ValidationError("Ngày bắt đầu phải trước ngày kết thúc")
        if (end - start).days >= MAX_REPORT_RANGE_DAYS:
            raise ValidationError(f"Chỉ xem được tối đa {MAX_REPORT_RANGE_DAYS} ngày mỗi lần")
        return self._cache.get_or_load(CACHE_ENTITY, (start, end), lambda: self._reports.list_range(start, end))

    def list_for_date(self, report_date: date) -> Sequence[AttendanceReport]:
        return self.list_reports(report_date, report_date)

    def _check_can_report(self, actor: SessionUser, report_type: ReportType, class_id: Optional[str]) -> None:
        if report_type == ReportType.MEAL:
            if not can_access_meals(actor.roles):
                raise AuthorizationError("Bạn không có quyền báo cơm")
            # GVCN chỉ báo cơm cho lớp mình
            if Role.ADMIN not in actor.roles and not (
                class_id and is_class_teacher(actor.roles, actor.class_id, class_id)
            ):
                raise AuthorizationError("Bạn chỉ được báo cơm cho lớp chủ nhiệm")
        elif not can_access_attendance(actor.roles):
            raise AuthorizationError("Bạn không có quyền điểm danh")

    def create_report(
        self,
        *,
        actor: SessionUser,
        report_type: ReportType,
        report_date: date,
        absences: Iterable[Absence] = (),
        class_id: Optional[str] = None,
        session: Optional[BoardingSession] = None,
        meal_type: Optional[MealType] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Record a report; absent students are copied, not referenced."""
        self._check_can_report(actor, report_type, class_id)
        if report_type == ReportType.MEAL and meal_type is None:
            raise ValidationError("Vui lòng chọn bữa ăn")
        if report_type == ReportType.BOARDING and session is None:
            raise ValidationError("Vui lòng chọn buổi điểm danh")

        students = self._students.list_all()
        if class_id:
            roster = [s for s in students if s.class_id == class_id]
        elif report_type == ReportType.EVENING_STUDY:
            roster = list(students)
        else:
            roster = [s for s in students if s.room]
        if not roster:
            raise ValidationError("Không có học sinh trong danh sách")

        by_id = {s.student_id: s for s in roster}
        absent: dict[int, AbsentStudent] = {}
        for absence in absences:
            student = by_id.get(int(absence.student_id))
            if student is None:
                raise ValidationError("Học sinh không thuộc danh sách báo cáo")
            absent[student.student_id] = AbsentStudent(
                student_id=student.student_id,
                name=student.name,
                class_id=student.class_id,
                room=student.room,
                meal_group=student.meal_group,
                reason=(absence.reason or "").strip() or None,
                permission=absence.permission,
            )

        report = NewReport(
            report_date=report_date,
            report_type=report_type,
            total_students=len(roster),
            present_count=len(roster) - len(absent),
            absent_count=len(absent),
            absent_students=tuple(absent.values()),
            reporter_id=actor.user_id,
            reporter_name=actor.full_name,
            session=session if report_type == ReportType.BOARDING else None,
            meal_type=meal_type if report_type == ReportType.MEAL else None,
            class_id=class_id,
            notes=(notes or "").strip() or None,
        )
        report_id = self._reports.create(report)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info(
            "report %s created type=%s date=%s absent=%d by user %s",
            report_id, report_type.value, report_date, report.absent_count, actor.user_id,
        )
        return report_id

    def delete_report(self, *, actor: SessionUser, report_id: int) -> None:
        report = self._reports.get_by_id(int(report_id))
        if not report:
            raise ValidationError("Báo cáo không tồn tại")
        if Role.ADMIN not in actor.roles and report.reporter_id != actor.user_id:
            raise AuthorizationError("Bạn chỉ được xóa báo cáo của mình")

        self._reports.delete(int(report_id))
        self._cache.invalidate(CACHE_ENTITY)

    def meal_stats(self, *, actor: SessionUser, target: date) -> DailyMealStats:
        if not can_access_meal_stats(actor.roles):
            raise AuthorizationError("Bạn không có quyền xem thống kê bữa ăn")
        reports = self._reports.list_for_dates({previous_day(target), target})
        return daily_meal_stats(target, reports, self._students.list_all())
