from __future__ import annotations

from flask import Flask, request

from ..common.http import api_errors, json_body, json_ok
from ..container import Container
from ..users.capabilities import can_manage_users
from ..users.decorators import capability_required, login_required
from .service import draft_from_payload


def register(app: Flask, container: Container) -> None:
    @app.route("/api/features", methods=["GET"], endpoint="features_list")
    @login_required
    @api_errors("tải danh sách chức năng")
    def list_features():
        active_only = request.args.get("all") not in ("1", "true")
        return json_ok(features=container.feature_service.list_features(active_only=active_only))

    @app.route("/api/features", methods=["POST"], endpoint="features_create")
    @capability_required(can_manage_users)
    @api_errors("thêm chức năng")
    def create_feature():
        feature_id = container.feature_service.create_feature(draft_from_payload(json_body()))
        return json_ok(201, id=feature_id, message="Đã thêm tính năng mới")

    @app.route("/api/features/<int:feature_id>", methods=["PUT"], endpoint="features_update")
    @capability_required(can_manage_users)
    @api_errors("cập nhật chức năng")
    def update_feature(feature_id: int):
        container.feature_service.update_feature(feature_id, draft_from_payload(json_body()))
        return json_ok(message="Đã cập nhật tính năng")

    @app.route("/api/features/<int:feature_id>/toggle", methods=["POST"], endpoint="features_toggle")
    @capability_required(can_manage_users)
    @api_errors("ẩn/hiện chức năng")
    def toggle_feature(feature_id: int):
        active = container.feature_service.toggle_feature(feature_id)
        return json_ok(is_active=active, message="Đã hiện tính năng" if active else "Đã ẩn tính năng")

    @app.route("/api/features/<int:feature_id>", methods=["DELETE"], endpoint="features_delete")
    @capability_required(can_manage_users)
    @api_errors("xóa chức năng")
    def delete_feature(feature_id: int):
        container.feature_service.delete_feature(feature_id)
        return json_ok(message="Đã xóa tính năng")
