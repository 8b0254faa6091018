from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.http import api_errors, json_body, json_ok
from ..core.constants import REPORT_HISTORY_DAYS
from ..core.enums import AbsencePermission, BoardingSession, MealType, ReportType
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.capabilities import can_access_meal_stats
from ..users.decorators import capability_required, current_user, login_required
from .model import Absence


def _enum(enum_cls, value, message: str, *, required: bool = False):
    if value in (None, ""):
        if required:
            raise ValidationError(message)
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message)


def _absences(items) -> list[Absence]:
    out = []
    for item in items or []:
        try:
            student_id = int(item.get("student_id"))
        except (TypeError, ValueError, AttributeError):
            raise ValidationError("Học sinh vắng không hợp lệ")
        out.append(
            Absence(
                student_id=student_id,
                reason=item.get("reason"),
                permission=_enum(AbsencePermission, item.get("permission"), "Loại vắng không hợp lệ"),
            )
        )
    return out


def _query_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError("Ngày không hợp lệ")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports", methods=["GET"], endpoint="reports_list")
    @login_required
    @api_errors("tải lịch sử báo cáo")
    def list_reports():
        day = request.args.get("date")
        if day:
            start = end = _query_date(day)
        else:
            end = _query_date(request.args.get("to")) or today_local()
            start = _query_date(request.args.get("from")) or end - timedelta(days=REPORT_HISTORY_DAYS - 1)
        reports = container.report_service.list_reports(start, end)
        return json_ok(reports=reports, start=start, end=end)

    @app.route("/api/reports", methods=["POST"], endpoint="reports_create")
    @login_required
    @api_errors("gửi báo cáo")
    def create_report():
        data = json_body()
        try:
            report_date = parse_iso_date(str(data.get("date") or today_local().isoformat()))
        except ValueError:
            raise ValidationError("Ngày không hợp lệ")

        report_id = container.report_service.create_report(
            actor=current_user(),
            report_type=_enum(ReportType, data.get("type"), "Loại báo cáo không hợp lệ", required=True),
            report_date=report_date,
            absences=_absences(data.get("absent_students")),
            class_id=data.get("class_id") or None,
            session=_enum(BoardingSession, data.get("session"), "Buổi điểm danh không hợp lệ"),
            meal_type=_enum(MealType, data.get("meal_type"), "Bữa ăn không hợp lệ"),
            notes=data.get("notes"),
        )
        return json_ok(201, id=report_id, message="Đã gửi báo cáo")

    @app.route("/api/reports/<int:report_id>", methods=["DELETE"], endpoint="reports_delete")
    @login_required
    @api_errors("xóa báo cáo")
    def delete_report(report_id: int):
        container.report_service.delete_report(actor=current_user(), report_id=report_id)
        return json_ok(message="Đã xóa báo cáo")

    @app.route("/api/reports/meal-stats", methods=["GET"], endpoint="reports_meal_stats")
    @capability_required(can_access_meal_stats)
    @api_errors("tải thống kê bữa ăn")
    def meal_stats():
        day = request.args.get("date")
        try:
            target = parse_iso_date(day) if day else today_local()
        except ValueError:
            raise ValidationError("Ngày không hợp lệ")
        return json_ok(stats=container.report_service.meal_stats(actor=current_user(), target=target))
