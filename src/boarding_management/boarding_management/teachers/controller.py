from __future__ import annotations

from flask import Flask

from ..common.http import api_errors, json_body, json_ok
from ..container import Container
from ..users.capabilities import can_manage_users
from ..users.decorators import capability_required, login_required


def register(app: Flask, container: Container) -> None:
    store = container.teacher_store

    @app.route("/api/teachers", methods=["GET"], endpoint="teachers_list")
    @login_required
    def list_teachers():
        return json_ok(teachers=store.list_all())

    @app.route("/api/teachers", methods=["POST"], endpoint="teachers_create")
    @capability_required(can_manage_users)
    @api_errors("thêm giáo viên")
    def create_teacher():
        data = json_body()
        teacher = store.add(name=data.get("name", ""), subject=data.get("subject"), phone=data.get("phone"))
        return json_ok(201, teacher=teacher, message=f"Đã thêm giáo viên {teacher.name}")

    @app.route("/api/teachers/<string:teacher_id>", methods=["PUT"], endpoint="teachers_update")
    @capability_required(can_manage_users)
    @api_errors("cập nhật giáo viên")
    def update_teacher(teacher_id: str):
        data = json_body()
        teacher = store.update(
            teacher_id, name=data.get("name", ""), subject=data.get("subject"), phone=data.get("phone")
        )
        return json_ok(teacher=teacher, message=f"Đã cập nhật thông tin giáo viên {teacher.name}")

    @app.route("/api/teachers/<string:teacher_id>", methods=["DELETE"], endpoint="teachers_delete")
    @capability_required(can_manage_users)
    @api_errors("xóa giáo viên")
    def delete_teacher(teacher_id: str):
        teacher = store.remove(teacher_id)
        return json_ok(message=f"Đã xóa giáo viên {teacher.name}")
