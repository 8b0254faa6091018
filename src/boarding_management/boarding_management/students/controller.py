from __future__ import annotations

from flask import Flask, Response

from ..common.datetime_utils import parse_iso_date
from ..common.http import api_errors, json_body, json_ok, uploaded_bytes
from ..core.constants import class_name
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.capabilities import can_manage_students
from ..users.decorators import capability_required, login_required
from .importer import TEMPLATE_FILENAME, render_roster_template
from .model import NewStudent, Student
from .service import StudentService


def _student_view(s: Student) -> dict:
    return {
        "id": s.student_id,
        "name": s.name,
        "class_id": s.class_id,
        "class_name": class_name(s.class_id),
        "date_of_birth": s.date_of_birth.isoformat() if s.date_of_birth else None,
        "gender": s.gender,
        "cccd": s.cccd,
        "phone": s.phone,
        "parent_phone": s.parent_phone,
        "address": s.address,
        "room": s.room,
        "meal_group": s.meal_group,
        "is_boarding": s.is_boarding,
    }


def _student_from_json(data: dict) -> NewStudent:
    dob = None
    if data.get("date_of_birth"):
        try:
            dob = parse_iso_date(str(data["date_of_birth"]))
        except ValueError:
            raise ValidationError("Ngày sinh không hợp lệ")
    return StudentService.build(
        name=data.get("name", ""),
        class_id=data.get("class_id", ""),
        date_of_birth=dob,
        gender=data.get("gender"),
        cccd=data.get("cccd"),
        phone=data.get("phone"),
        parent_phone=data.get("parent_phone"),
        address=data.get("address"),
        room=data.get("room"),
        meal_group=data.get("meal_group"),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @login_required
    @api_errors("tải danh sách học sinh")
    def list_students():
        return json_ok(students=[_student_view(s) for s in container.student_service.list_students()])

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    @capability_required(can_manage_students)
    @api_errors("thêm học sinh")
    def create_student():
        student = _student_from_json(json_body())
        student_id = container.student_service.add_student(student)
        return json_ok(201, id=student_id, message=f"Đã thêm học sinh {student.name}")

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="students_update")
    @capability_required(can_manage_students)
    @api_errors("cập nhật học sinh")
    def update_student(student_id: int):
        student = _student_from_json(json_body())
        container.student_service.update_student(student_id, student)
        return json_ok(message=f"Đã cập nhật thông tin học sinh {student.name}")

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="students_delete")
    @capability_required(can_manage_students)
    @api_errors("xóa học sinh")
    def delete_student(student_id: int):
        container.student_service.delete_student(student_id)
        return json_ok(message="Đã xóa học sinh")

    @app.route("/api/students", methods=["DELETE"], endpoint="students_delete_all")
    @capability_required(can_manage_students)
    @api_errors("xóa tất cả học sinh")
    def delete_all_students():
        count = container.student_service.delete_all()
        return json_ok(deleted=count, message="Đã xóa tất cả học sinh")

    @app.route("/api/students/import", methods=["POST"], endpoint="students_import")
    @capability_required(can_manage_students)
    @api_errors("nhập danh sách học sinh")
    def import_students():
        added, skipped = container.student_service.import_roster(uploaded_bytes())
        return json_ok(added=added, skipped=skipped, message=f"Đã thêm {added} học sinh")

    @app.route("/api/students/template.csv", methods=["GET"], endpoint="students_template")
    @login_required
    def students_template():
        return Response(
            render_roster_template(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={TEMPLATE_FILENAME}"},
        )
