from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .model import FeatureGrant, PermissionGroup


class PermissionRepository(Protocol):
    """Nhóm quyền, thành viên nhóm và quyền trực tiếp của người dùng."""

    def list_groups(self) -> Sequence[PermissionGroup]:
        raise NotImplementedError

    def get_group(self, group_id: int) -> Optional[PermissionGroup]:
        raise NotImplementedError

    def get_group_by_name(self, name: str) -> Optional[PermissionGroup]:
        raise NotImplementedError

    def create_group(self, *, name: str, description: Optional[str]) -> int:
        raise NotImplementedError

    def update_group(self, group_id: int, *, name: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_group(self, group_id: int) -> bool:
        raise NotImplementedError

    def list_group_permissions(self, group_id: int) -> Sequence[FeatureGrant]:
        raise NotImplementedError

    def replace_group_permissions(self, group_id: int, grants: Iterable[FeatureGrant]) -> None:
        raise NotImplementedError

    def list_user_group_ids(self, user_id: int) -> Sequence[int]:
        raise NotImplementedError

    def replace_user_groups(self, user_id: int, group_ids: Iterable[int]) -> None:
        """Delete every membership of the user, then insert the given ones."""

        raise NotImplementedError

    def add_user_groups(self, pairs: Iterable[tuple[int, int]]) -> None:
        """Insert (user_id, group_id) pairs, ignoring existing memberships."""

        raise NotImplementedError

    def list_user_permissions(self, user_id: int) -> Sequence[FeatureGrant]:
        raise NotImplementedError

    def list_all_user_permissions(self) -> Mapping[int, Sequence[FeatureGrant]]:
        raise NotImplementedError

    def replace_user_permissions(self, user_id: int, grants: Iterable[FeatureGrant]) -> None:
        raise NotImplementedError

    def user_group_names(self, user_id: int) -> Sequence[str]:
        raise NotImplementedError
