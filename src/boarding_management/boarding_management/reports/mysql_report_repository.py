from __future__ import annotations

import json
from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import AbsencePermission, BoardingSession, MealType, ReportType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json, placeholders, to_date
from .model import AbsentStudent, AttendanceReport, NewReport
from .repository import ReportRepository

_SELECT = """
    SELECT id, date, type, session, meal_type, class_id, total_students, present_count,
           absent_count, absent_students, notes, reporter_id, reporter_name, created_at
    FROM attendance_reports
"""
_ORDER = " ORDER BY date DESC, created_at DESC"


def _optional_enum(enum_cls, value):
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _absent_from_json(item: dict) -> AbsentStudent:
    return AbsentStudent(
        student_id=int(item.get("student_id") or 0),
        name=item.get("name") or "",
        class_id=item.get("class_id") or "",
        room=item.get("room"),
        meal_group=item.get("meal_group"),
        reason=item.get("reason"),
        permission=_optional_enum(AbsencePermission, item.get("permission")),
    )


def _absent_to_json(a: AbsentStudent) -> dict:
    return {
        "student_id": a.student_id,
        "name": a.name,
        "class_id": a.class_id,
        "room": a.room,
        "meal_group": a.meal_group,
        "reason": a.reason,
        "permission": a.permission.value if a.permission else None,
    }


def _row_to_report(row: dict) -> AttendanceReport:
    absent = load_json(row.get("absent_students")) or []
    return AttendanceReport(
        report_id=int(row["id"]),
        report_date=to_date(row["date"]),
        report_type=ReportType(row["type"]),
        total_students=int(row["total_students"]),
        present_count=int(row["present_count"]),
        absent_count=int(row["absent_count"]),
        absent_students=tuple(_absent_from_json(a) for a in absent),
        reporter_id=int(row["reporter_id"]),
        reporter_name=row["reporter_name"],
        session=_optional_enum(BoardingSession, row.get("session")),
        meal_type=_optional_enum(MealType, row.get("meal_type")),
        class_id=row.get("class_id"),
        notes=row.get("notes"),
        created_at=row.get("created_at"),
    )


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_range(self, start: date, end: date) -> Sequence[AttendanceReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE date BETWEEN %s AND %s" + _ORDER, (start, end))
            return [_row_to_report(r) for r in fetchall(cur)]

    def list_for_dates(self, dates: Iterable[date]) -> Sequence[AttendanceReport]:
        values = sorted(set(dates))
        if not values:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE date IN ({placeholders(values)})" + _ORDER, tuple(values))
            return [_row_to_report(r) for r in fetchall(cur)]

    def get_by_id(self, report_id: int) -> Optional[AttendanceReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE id=%s", (int(report_id),))
            row = fetchone(cur)
            return _row_to_report(row) if row else None

    def create(self, report: NewReport) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_reports(
                    date, type, session, meal_type, class_id, total_students, present_count,
                    absent_count, absent_students, notes, reporter_id, reporter_name
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    report.report_date,
                    report.report_type.value,
                    report.session.value if report.session else None,
                    report.meal_type.value if report.meal_type else None,
                    report.class_id,
                    report.total_students,
                    report.present_count,
                    report.absent_count,
                    json.dumps([_absent_to_json(a) for a in report.absent_students], ensure_ascii=False),
                    report.notes,
                    report.reporter_id,
                    report.reporter_name,
                ),
            )
            return int(cur.lastrowid)

    def delete(self, report_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_reports WHERE id=%s", (int(report_id),))
            return cur.rowcount > 0
