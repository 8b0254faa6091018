from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Giao diện repository cho User.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_email_by_login(self, login: str) -> Optional[str]:
        """Resolve a username or phone number to the account e-mail."""

        raise NotImplementedError

    def list_with_roles(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        phone: Optional[str],
        username: Optional[str],
        class_id: Optional[str],
        roles: Iterable[Role] = (),
    ) -> int:
        """Insert the account together with its roles."""

        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: str,
        phone: Optional[str],
        username: Optional[str],
        class_id: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def set_roles(self, user_id: int, roles: Iterable[Role]) -> None:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
