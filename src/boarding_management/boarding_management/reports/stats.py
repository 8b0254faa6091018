"""Daily meal statistics for the kitchen and accounting.

Breakfast of day D is ordered the evening before, so it comes from the
breakfast report dated D-1; lunch and dinner come from reports dated D.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import previous_day
from ..core.constants import CLASSES, RICE_PER_STUDENT_KG
from ..core.enums import AbsencePermission, MealType, ReportType
from ..students.model import Student
from .model import AbsentStudent, AttendanceReport


@dataclass(frozen=True)
class MealGroupStats:
    group: str
    total: int
    present: int
    absent: int
    absent_students: tuple[tuple[str, Optional[AbsencePermission]], ...] = ()


@dataclass(frozen=True)
class MealStats:
    meal_type: MealType
    source_date: date
    total_students: int
    has_reports: bool = False
    reported_count: int = 0
    present_count: int = 0
    absent_count: int = 0
    reported_classes: tuple[str, ...] = ()
    missing_classes: tuple[str, ...] = ()
    absent_students: tuple[AbsentStudent, ...] = ()
    meal_groups: dict[str, MealGroupStats] = field(default_factory=dict)


@dataclass(frozen=True)
class DailyMealStats:
    target_date: date
    breakfast: MealStats
    lunch: MealStats
    dinner: MealStats
    rice_kg: float


def source_date(meal_type: MealType, target: date) -> date:
    return previous_day(target) if meal_type == MealType.BREAKFAST else target


def _meal_group_stats(boarding: Sequence[Student], absent: Sequence[AbsentStudent]) -> dict[str, MealGroupStats]:
    groups = sorted({s.meal_group for s in boarding if s.meal_group})
    out = {}
    for group in groups:
        total = sum(1 for s in boarding if s.meal_group == group)
        absent_in_group = [a for a in absent if a.meal_group == group]
        out[group] = MealGroupStats(
            group=group,
            total=total,
            present=max(total - len(absent_in_group), 0),
            absent=len(absent_in_group),
            absent_students=tuple((a.name, a.permission) for a in absent_in_group),
        )
    return out


def meal_stats(
    meal_type: MealType,
    target: date,
    reports: Sequence[AttendanceReport],
    students: Sequence[Student],
) -> MealStats:
    day = source_date(meal_type, target)
    meal_reports = [
        r for r in reports
        if r.report_type == ReportType.MEAL and r.meal_type == meal_type and r.report_date == day
    ]
    boarding = [s for s in students if s.room]

    if not meal_reports:
        return MealStats(
            meal_type=meal_type,
            source_date=day,
            total_students=len(boarding),
            missing_classes=tuple(CLASSES),
            meal_groups=_meal_group_stats(boarding, []),
        )

    reported: set[str] = set()
    absent: list[AbsentStudent] = []
    total_reported = 0
    total_absent = 0
    for report in meal_reports:
        if report.class_id:
            reported.add(report.class_id)
        for a in report.absent_students:
            reported.add(a.class_id)
            absent.append(a)
        total_reported += report.present_count + report.absent_count
        total_absent += report.absent_count

    return MealStats(
        meal_type=meal_type,
        source_date=day,
        total_students=len(boarding),
        has_reports=True,
        reported_count=total_reported,
        present_count=total_reported - total_absent,
        absent_count=total_absent,
        reported_classes=tuple(cid for cid in CLASSES if cid in reported),
        missing_classes=tuple(cid for cid in CLASSES if cid not in reported),
        absent_students=tuple(absent),
        meal_groups=_meal_group_stats(boarding, absent),
    )


def daily_meal_stats(
    target: date,
    reports: Sequence[AttendanceReport],
    students: Sequence[Student],
) -> DailyMealStats:
    breakfast = meal_stats(MealType.BREAKFAST, target, reports, students)
    lunch = meal_stats(MealType.LUNCH, target, reports, students)
    dinner = meal_stats(MealType.DINNER, target, reports, students)
    rice = (lunch.present_count + dinner.present_count) * RICE_PER_STUDENT_KG
    return DailyMealStats(
        target_date=target,
        breakfast=breakfast,
        lunch=lunch,
        dinner=dinner,
        rice_kg=round(rice, 2),
    )
