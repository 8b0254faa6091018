from __future__ import annotations

from flask import Flask, request

from ..common.http import api_errors, json_ok
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.decorators import current_user, login_required
from .model import LoginRecord


def _record_view(record: LoginRecord) -> dict:
    return {
        "id": record.record_id,
        "user_id": record.user_id,
        "full_name": record.full_name,
        "login_at": record.login_at,
        "ip_address": record.ip_address,
        "user_agent": record.user_agent,
        "browser": record.browser,
        "device": record.device,
        "success": record.success,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login-history", methods=["GET"], endpoint="login_history")
    @login_required
    @api_errors("tải lịch sử đăng nhập")
    def login_history():
        raw = request.args.get("user_id")
        try:
            user_id = int(raw) if raw else None
        except ValueError:
            raise ValidationError("Người dùng không hợp lệ")

        records = container.login_history_service.recent(current_user(), user_id)
        return json_ok(history=[_record_view(r) for r in records])
