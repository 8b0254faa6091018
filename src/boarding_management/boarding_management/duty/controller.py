from __future__ import annotations

from datetime import date

from flask import Flask, Response, request

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.http import api_errors, json_body, json_ok, uploaded_bytes
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.decorators import current_user, login_required
from .model import DutySchedule
from .template import export_filename, template_filename


def _duty_view(d: DutySchedule) -> dict:
    return {
        "id": d.duty_id,
        "teacher_name": d.teacher_name,
        "duty_date": d.duty_date.isoformat(),
        "notes": d.notes,
        "created_by": d.created_by,
    }


def _parse_date(value) -> date:
    try:
        return parse_iso_date(str(value or ""))
    except ValueError:
        raise ValidationError("Ngày không hợp lệ")


def _year_month(source) -> tuple[int, int]:
    today = today_local()
    try:
        return int(source.get("year") or today.year), int(source.get("month") or today.month)
    except (TypeError, ValueError):
        raise ValidationError("Tháng không hợp lệ")


def _csv(body: str, filename: str) -> Response:
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/duty", methods=["GET"], endpoint="duty_month")
    @login_required
    @api_errors("tải lịch trực")
    def duty_month():
        year, month = _year_month(request.args)
        duties = container.duty_service.list_month(year, month)
        return json_ok(
            year=year,
            month=month,
            duties=[_duty_view(d) for d in duties],
            can_manage=container.duty_service.can_manage(current_user()),
        )

    @app.route("/api/duty/today", methods=["GET"], endpoint="duty_today")
    @login_required
    @api_errors("tải lịch trực hôm nay")
    def duty_today():
        return json_ok(duties=[_duty_view(d) for d in container.duty_service.today()])

    @app.route("/api/duty/date/<string:day>", methods=["GET"], endpoint="duty_by_date")
    @login_required
    @api_errors("tải lịch trực")
    def duty_by_date(day: str):
        duties = container.duty_service.list_for_date(_parse_date(day))
        return json_ok(duties=[_duty_view(d) for d in duties])

    @app.route("/api/duty", methods=["POST"], endpoint="duty_create")
    @login_required
    @api_errors("thêm lịch trực")
    def duty_create():
        data = json_body()
        duty_id = container.duty_service.add_duty(
            actor=current_user(),
            teacher_name=data.get("teacher_name", ""),
            duty_date=_parse_date(data.get("duty_date")),
            notes=data.get("notes"),
        )
        return json_ok(201, id=duty_id, message="Đã thêm lịch trực")

    @app.route("/api/duty/<int:duty_id>", methods=["PUT"], endpoint="duty_update")
    @login_required
    @api_errors("cập nhật lịch trực")
    def duty_update(duty_id: int):
        data = json_body()
        container.duty_service.update_duty(
            actor=current_user(),
            duty_id=duty_id,
            teacher_name=data.get("teacher_name", ""),
            duty_date=_parse_date(data.get("duty_date")),
            notes=data.get("notes"),
        )
        return json_ok(message="Đã cập nhật lịch trực")

    @app.route("/api/duty/<int:duty_id>", methods=["DELETE"], endpoint="duty_delete")
    @login_required
    @api_errors("xóa lịch trực")
    def duty_delete(duty_id: int):
        container.duty_service.delete_duty(actor=current_user(), duty_id=duty_id)
        return json_ok(message="Đã xóa lịch trực")

    @app.route("/api/duty/month", methods=["PUT"], endpoint="duty_save_month")
    @login_required
    @api_errors("lưu lịch trực")
    def duty_save_month():
        data = json_body()
        year, month = _year_month(data)
        assignments = data.get("assignments") or {}
        if not isinstance(assignments, dict):
            raise ValidationError("Dữ liệu phân công không hợp lệ")
        count = container.duty_service.save_month(
            actor=current_user(), year=year, month=month, assignments=assignments
        )
        return json_ok(saved=count, message=f"Đã lưu {count} lượt trực cho tháng {month}/{year}")

    @app.route("/api/duty/import", methods=["POST"], endpoint="duty_import")
    @login_required
    @api_errors("nhập lịch trực")
    def duty_import():
        year, month = _year_month(request.form or request.args)
        summary = container.duty_service.import_schedule(
            actor=current_user(), raw=uploaded_bytes(), year=year, month=month
        )
        return json_ok(
            imported=summary.imported,
            months=[f"{m}/{y}" for y, m in summary.months],
            skipped=summary.skipped,
            message=f"Đã nhập {summary.imported} lượt trực cho tháng {month}/{year}",
        )

    @app.route("/api/duty/copy-previous", methods=["POST"], endpoint="duty_copy_previous")
    @login_required
    @api_errors("sao chép lịch trực")
    def duty_copy_previous():
        year, month = _year_month(json_body())
        count = container.duty_service.copy_previous_month(actor=current_user(), year=year, month=month)
        return json_ok(saved=count, message=f"Đã sao chép {count} lượt trực sang tháng {month}/{year}")

    @app.route("/api/duty/template.csv", methods=["GET"], endpoint="duty_template")
    @login_required
    @api_errors("tải mẫu lịch trực")
    def duty_template():
        year, month = _year_month(request.args)
        return _csv(container.duty_service.template_csv(year, month), template_filename(year, month))

    @app.route("/api/duty/export.csv", methods=["GET"], endpoint="duty_export")
    @login_required
    @api_errors("xuất lịch trực")
    def duty_export():
        year, month = _year_month(request.args)
        return _csv(container.duty_service.export_csv(year, month), export_filename(year, month))
