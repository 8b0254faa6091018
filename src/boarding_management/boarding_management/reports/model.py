from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AbsencePermission, BoardingSession, MealType, ReportType


@dataclass(frozen=True)
class AbsentStudent:
    """Bản sao thông tin học sinh vắng tại thời điểm báo cáo.

    Lưu ý: không tham chiếu tới bảng students, sửa danh sách về sau không làm đổi báo cáo cũ.
    """

    student_id: int
    name: str
    class_id: str
    room: Optional[str] = None
    meal_group: Optional[str] = None
    reason: Optional[str] = None
    permission: Optional[AbsencePermission] = None


@dataclass(frozen=True)
class NewReport:
    report_date: date
    report_type: ReportType
    total_students: int
    present_count: int
    absent_count: int
    absent_students: tuple[AbsentStudent, ...]
    reporter_id: int
    reporter_name: str
    session: Optional[BoardingSession] = None
    meal_type: Optional[MealType] = None
    class_id: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceReport:
    report_id: int
    report_date: date
    report_type: ReportType
    total_students: int
    present_count: int
    absent_count: int
    absent_students: tuple[AbsentStudent, ...]
    reporter_id: int
    reporter_name: str
    session: Optional[BoardingSession] = None
    meal_type: Optional[MealType] = None
    class_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Absence:
    """Một học sinh được đánh dấu vắng trên form báo cáo."""

    student_id: int
    reason: Optional[str] = None
    permission: Optional[AbsencePermission] = None
