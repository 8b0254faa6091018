from __future__ import annotations

from datetime import timedelta

from flask import Flask, Response, request, send_file, session

from ..common.datetime_utils import today_local
from ..common.http import api_errors, json_body, json_fail, json_ok, uploaded_bytes
from ..core.constants import DEFAULT_SESSION_DAYS, class_name
from ..container import Container
from ..logins.model import LoginClient
from .capabilities import (
    can_access_attendance,
    can_access_meal_stats,
    can_access_meals,
    can_manage_duty,
    can_manage_users,
)
from .decorators import SESSION_KEY, capability_required, current_user, login_required
from .export import XLSX_MIMETYPE, export_filename, export_users_xlsx, login_identifier
from .importer import TEMPLATE_FILENAME, render_account_template
from .model import NewUser, User


def _user_view(user: User) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "full_name": user.full_name,
        "username": user.username,
        "phone": user.phone,
        "class_id": user.class_id,
        "class_name": class_name(user.class_id),
        "login": login_identifier(user),
        "roles": sorted(r.value for r in user.roles),
        "is_active": user.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @api_errors("đăng nhập")
    def login():
        data = json_body() or request.form
        identifier = data.get("identifier") or data.get("username") or data.get("email") or ""
        password = data.get("password") or ""

        client = LoginClient(ip_address=request.remote_addr, user_agent=request.headers.get("User-Agent"))
        s_user = container.auth_service.authenticate(identifier, password, client)

        session.clear()
        session.permanent = bool(data.get("remember"))
        app.permanent_session_lifetime = timedelta(days=int(app.config.get("SESSION_DAYS", DEFAULT_SESSION_DAYS)))
        session[SESSION_KEY] = s_user.to_session()
        return json_ok(message="Đăng nhập thành công!", user=s_user.to_session())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return json_ok(message="Đã đăng xuất hệ thống.")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    @api_errors("tải thông tin người dùng")
    def me():
        user = current_user()
        groups = list(container.permission_service.user_group_names(user.user_id))
        return json_ok(
            user=user.to_session(),
            groups=groups,
            capabilities={
                "meals": can_access_meals(user.roles),
                "meal_stats": can_access_meal_stats(user.roles),
                "attendance": can_access_attendance(user.roles),
                "manage_users": can_manage_users(user.roles),
                "manage_duty": can_manage_duty(user.roles, groups),
            },
        )

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @capability_required(can_manage_users)
    @api_errors("tải danh sách người dùng")
    def list_users():
        users = container.user_service.list_users()
        return json_ok(users=[_user_view(u) for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @capability_required(can_manage_users)
    @api_errors("thêm người dùng")
    def create_user():
        data = json_body()
        user_id = container.user_service.create_account(
            NewUser(
                email=data.get("email", ""),
                password=data.get("password", ""),
                full_name=data.get("full_name", ""),
                phone=data.get("phone"),
                username=data.get("username"),
                class_id=data.get("class_id"),
                roles=frozenset(data.get("roles") or ()),
            )
        )
        return json_ok(201, id=user_id, message="Đã tạo tài khoản")

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @capability_required(can_manage_users)
    @api_errors("cập nhật người dùng")
    def update_user(user_id: int):
        data = json_body()
        container.user_service.update_account(
            user_id,
            full_name=data.get("full_name", ""),
            phone=data.get("phone"),
            username=data.get("username"),
            class_id=data.get("class_id"),
            roles=data.get("roles"),
        )
        return json_ok(message="Đã cập nhật người dùng")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @capability_required(can_manage_users)
    @api_errors("xóa người dùng")
    def delete_user(user_id: int):
        user = current_user()
        container.user_service.delete_user(
            current_roles=user.roles, current_user_id=user.user_id, user_id=user_id
        )
        return json_ok(message="Đã xóa người dùng")

    @app.route("/api/users/import", methods=["POST"], endpoint="users_import")
    @capability_required(can_manage_users)
    @api_errors("nhập danh sách tài khoản")
    def import_users():
        result = container.user_service.import_accounts(uploaded_bytes())
        if result.created == 0:
            message = result.errors[0] if result.errors else "Không có tài khoản nào được tạo"
            return json_fail(message, 400, failed=result.failed, errors=result.errors)
        return json_ok(created=result.created, failed=result.failed, errors=result.errors)

    @app.route("/api/users/template.csv", methods=["GET"], endpoint="users_template")
    @capability_required(can_manage_users)
    def users_template():
        return Response(
            render_account_template(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={TEMPLATE_FILENAME}"},
        )

    @app.route("/api/users/export.xlsx", methods=["GET"], endpoint="users_export")
    @capability_required(can_manage_users)
    @api_errors("xuất danh sách người dùng")
    def export_users():
        users = container.user_service.list_users()
        output = export_users_xlsx(users, load_grants=container.permission_service.all_user_permissions)
        return send_file(
            output,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=export_filename(today_local()),
        )
