from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): tài khoản người dùng kèm hồ sơ và vai trò.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    """

    user_id: int
    email: str
    full_name: str
    password_hash: str = ""
    username: Optional[str] = None
    phone: Optional[str] = None
    class_id: Optional[str] = None
    roles: frozenset[Role] = field(default_factory=frozenset)
    is_active: bool = True


@dataclass(frozen=True)
class NewUser:
    """Dữ liệu đã kiểm tra, sẵn sàng tạo tài khoản."""

    email: str
    password: str
    full_name: str
    phone: Optional[str] = None
    username: Optional[str] = None
    class_id: Optional[str] = None
    roles: frozenset[Role] = field(default_factory=frozenset)
