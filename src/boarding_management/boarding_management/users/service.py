from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import (
    is_valid_email,
    is_valid_name,
    is_valid_phone,
    is_valid_username,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH, find_class_id
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..logins.model import LoginClient
from ..logins.service import LoginHistoryService
from .capabilities import can_manage_users
from .importer import AccountImportResult, parse_accounts
from .model import NewUser, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Tên đăng nhập/SĐT/Email hoặc mật khẩu không đúng"


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    email: str
    roles: frozenset[Role]
    class_id: Optional[str] = None

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.full_name,
            "email": self.email,
            "roles": sorted(r.value for r in self.roles),
            "class_id": self.class_id,
        }

    @classmethod
    def from_session(cls, data) -> Optional["SessionUser"]:
        if not data or "user_id" not in data:
            return None
        roles = set()
        for value in data.get("roles") or ():
            try:
                roles.add(Role(value))
            except ValueError:
                continue
        return cls(
            user_id=int(data["user_id"]),
            full_name=data.get("name") or "",
            email=data.get("email") or "",
            roles=frozenset(roles),
            class_id=data.get("class_id"),
        )


class AuthService:
    """Use case: authenticate user (login) by e-mail, username or phone."""

    def __init__(self, users: UserRepository, history: Optional[LoginHistoryService] = None):
        self._users = users
        self._history = history

    def _resolve_email(self, identifier: str) -> Optional[str]:
        if "@" in identifier:
            return identifier
        return self._users.get_email_by_login(identifier)

    def _record(self, user: User, success: bool, client: Optional[LoginClient]) -> None:
        # Attempts on unknown identifiers have no account to attach to
        if self._history is not None:
            self._history.record(user.user_id, success=success, client=client)

    def authenticate(self, identifier: str, password: str, client: Optional[LoginClient] = None) -> SessionUser:
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)

        email = self._resolve_email(identifier)
        user = self._users.get_by_email(email) if email else None
        if not user:
            logger.info("login rejected for %r", identifier)
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)
        if not user.is_active:
            logger.info("login rejected for inactive account %r", identifier)
            self._record(user, False, client)
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)

        try:
            ok = check_password_hash(user.password_hash, password)
        except (ValueError, TypeError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("login rejected for %r", identifier)
            self._record(user, False, client)
            raise AuthenticationError(LOGIN_FAILED_MESSAGE)

        self._record(user, True, client)
        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            email=user.email,
            roles=user.roles,
            class_id=user.class_id,
        )


def _parse_roles(values: Iterable[str | Role]) -> frozenset[Role]:
    roles = set()
    for value in values or ():
        try:
            roles.add(Role(value))
        except ValueError:
            raise ValidationError("Vai trò không hợp lệ")
    return frozenset(roles)


class UserService:
    """Use case: manage user accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_users(self) -> Sequence[User]:
        return self._users.list_with_roles()

    def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get_by_id(int(user_id))

    def _validate_profile(
        self,
        *,
        full_name: str,
        phone: Optional[str],
        username: Optional[str],
        class_id: Optional[str],
    ) -> tuple[str, Optional[str], Optional[str], Optional[str]]:
        full_name = require_non_empty(full_name, "Họ tên")
        if not is_valid_name(full_name):
            raise ValidationError("Họ tên không hợp lệ (2-100 ký tự, chỉ chữ cái)")

        phone = (phone or "").strip() or None
        if not is_valid_phone(phone):
            raise ValidationError("Số điện thoại phải có 10 số, bắt đầu bằng 0")

        username = (username or "").strip() or None
        if not is_valid_username(username):
            raise ValidationError("Tên đăng nhập chỉ gồm chữ cái, số, dấu gạch dưới (3-50 ký tự)")

        resolved_class = None
        if class_id and class_id.strip():
            resolved_class = find_class_id(class_id)
            if not resolved_class:
                raise ValidationError("Lớp không hợp lệ")

        return full_name, phone, username, resolved_class

    def create_account(self, new_user: NewUser) -> int:
        email = require_non_empty(new_user.email, "Email").lower()
        if not is_valid_email(email):
            raise ValidationError("Email không hợp lệ")
        require_min_length(new_user.password, "Mật khẩu", MIN_PASSWORD_LENGTH)
        if len(new_user.password) > MAX_PASSWORD_LENGTH:
            raise ValidationError(f"Mật khẩu không được quá {MAX_PASSWORD_LENGTH} ký tự")

        full_name, phone, username, class_id = self._validate_profile(
            full_name=new_user.full_name,
            phone=new_user.phone,
            username=new_user.username,
            class_id=new_user.class_id,
        )

        roles = _parse_roles(new_user.roles)

        if self._users.get_by_email(email):
            raise ValidationError("Email đã được sử dụng")
        if username and self._users.get_email_by_login(username):
            raise ValidationError("Tên đăng nhập đã tồn tại")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(new_user.password),
            full_name=full_name,
            phone=phone,
            username=username,
            class_id=class_id,
            roles=roles,
        )
        logger.info("account created id=%s email=%s", user_id, email)
        return user_id

    def update_account(
        self,
        user_id: int,
        *,
        full_name: str,
        phone: Optional[str] = None,
        username: Optional[str] = None,
        class_id: Optional[str] = None,
        roles: Optional[Iterable[str | Role]] = None,
    ) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise ValidationError("Người dùng không tồn tại")

        full_name, phone, username, class_id = self._validate_profile(
            full_name=full_name, phone=phone, username=username, class_id=class_id
        )
        if username and username != user.username and self._users.get_email_by_login(username):
            raise ValidationError("Tên đăng nhập đã tồn tại")
        parsed_roles = _parse_roles(roles) if roles is not None else None

        self._users.update_profile(
            int(user_id), full_name=full_name, phone=phone, username=username, class_id=class_id
        )
        if parsed_roles is not None:
            self._users.set_roles(int(user_id), parsed_roles)

    def delete_user(self, *, current_roles: frozenset[Role], current_user_id: int, user_id: int) -> None:
        if not can_manage_users(current_roles):
            raise AuthorizationError("Bạn không có quyền")
        if int(user_id) == int(current_user_id):
            raise ValidationError("Không thể xóa tài khoản đang đăng nhập")

        if not self._users.get_by_id(int(user_id)):
            raise ValidationError("Người dùng không tồn tại")
        if not self._users.delete_by_id(int(user_id)):
            raise ValidationError("Xóa người dùng thất bại")
        logger.info("account deleted id=%s by=%s", user_id, current_user_id)

    def import_accounts(self, raw: bytes | str) -> AccountImportResult:
        """Create every valid row; per-row failures are collected, not raised."""
        result = parse_accounts(raw)
        for parsed in result.accounts:
            try:
                self.create_account(parsed.account)
            except ValidationError as e:
                result.errors.append(f"Dòng {parsed.line_no}: {e}")
                continue
            result.created += 1

        logger.info("account import created=%d failed=%d", result.created, result.failed)
        return result
