from __future__ import annotations

from flask import Flask

from ..common.http import api_errors, json_body, json_ok
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.capabilities import can_manage_users
from ..users.decorators import capability_required
from .service import ASSIGN_ADD, grants_from_payload


def _int_list(values, message: str) -> list[int]:
    try:
        return [int(v) for v in values or []]
    except (TypeError, ValueError):
        raise ValidationError(message)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/permission-groups", methods=["GET"], endpoint="groups_list")
    @capability_required(can_manage_users)
    @api_errors("tải danh sách nhóm quyền")
    def list_groups():
        return json_ok(groups=container.permission_service.list_groups_with_permissions())

    @app.route("/api/permission-groups", methods=["POST"], endpoint="groups_create")
    @capability_required(can_manage_users)
    @api_errors("tạo nhóm quyền")
    def create_group():
        data = json_body()
        group_id = container.permission_service.create_group(
            name=data.get("name", ""), description=data.get("description")
        )
        return json_ok(201, id=group_id, message="Đã tạo nhóm quyền mới")

    @app.route("/api/permission-groups/<int:group_id>", methods=["PUT"], endpoint="groups_update")
    @capability_required(can_manage_users)
    @api_errors("cập nhật nhóm quyền")
    def update_group(group_id: int):
        data = json_body()
        container.permission_service.update_group(
            group_id, name=data.get("name", ""), description=data.get("description")
        )
        return json_ok(message="Đã cập nhật nhóm quyền")

    @app.route("/api/permission-groups/<int:group_id>", methods=["DELETE"], endpoint="groups_delete")
    @capability_required(can_manage_users)
    @api_errors("xóa nhóm quyền")
    def delete_group(group_id: int):
        container.permission_service.delete_group(group_id)
        return json_ok(message="Đã xóa nhóm quyền")

    @app.route("/api/permission-groups/<int:group_id>/permissions", methods=["PUT"], endpoint="groups_permissions")
    @capability_required(can_manage_users)
    @api_errors("lưu quyền")
    def save_group_permissions(group_id: int):
        grants = grants_from_payload(json_body().get("permissions"))
        saved = container.permission_service.save_group_permissions(group_id, grants)
        return json_ok(saved=saved, message="Đã lưu quyền cho nhóm")

    @app.route("/api/users/<int:user_id>/groups", methods=["GET"], endpoint="user_groups")
    @capability_required(can_manage_users)
    @api_errors("tải nhóm quyền của người dùng")
    def user_groups(user_id: int):
        return json_ok(group_ids=list(container.permission_service.user_group_ids(user_id)))

    @app.route("/api/users/<int:user_id>/groups", methods=["PUT"], endpoint="user_groups_save")
    @capability_required(can_manage_users)
    @api_errors("lưu nhóm quyền")
    def save_user_groups(user_id: int):
        group_ids = _int_list(json_body().get("group_ids"), "Nhóm quyền không hợp lệ")
        container.permission_service.assign_user_groups(user_id, group_ids)
        return json_ok(message="Đã cập nhật nhóm quyền cho người dùng")

    @app.route("/api/users/groups/bulk", methods=["POST"], endpoint="user_groups_bulk")
    @capability_required(can_manage_users)
    @api_errors("gán nhóm quyền hàng loạt")
    def bulk_assign():
        data = json_body()
        user_ids = _int_list(data.get("user_ids"), "Người dùng không hợp lệ")
        group_ids = _int_list(data.get("group_ids"), "Nhóm quyền không hợp lệ")
        count = container.permission_service.bulk_assign(
            user_ids=user_ids, group_ids=group_ids, mode=data.get("mode") or ASSIGN_ADD
        )
        return json_ok(
            assigned=count,
            message=f"Đã gán {len(set(group_ids))} nhóm quyền cho {count} người dùng",
        )

    @app.route("/api/users/<int:user_id>/permissions", methods=["GET"], endpoint="user_permissions")
    @capability_required(can_manage_users)
    @api_errors("tải quyền của người dùng")
    def user_permissions(user_id: int):
        return json_ok(permissions=list(container.permission_service.user_permissions(user_id)))

    @app.route("/api/users/<int:user_id>/permissions", methods=["PUT"], endpoint="user_permissions_save")
    @capability_required(can_manage_users)
    @api_errors("lưu quyền")
    def save_user_permissions(user_id: int):
        grants = grants_from_payload(json_body().get("permissions"))
        saved = container.permission_service.save_user_permissions(user_id, grants)
        return json_ok(saved=saved, message="Đã lưu quyền cho người dùng")
