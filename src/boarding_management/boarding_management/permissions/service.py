from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.cache import QueryCache
from ..common.validators import require_non_empty
from ..core.enums import Feature
from ..core.exceptions import ValidationError
from .model import FeatureGrant, GroupWithPermissions, PermissionGroup
from .repository import PermissionRepository

logger = logging.getLogger(__name__)

CACHE_ENTITY = "permission_groups"

ASSIGN_ADD = "add"
ASSIGN_REPLACE = "replace"


def grants_from_payload(items: Iterable[dict[str, Any]]) -> list[FeatureGrant]:
    """Build grants from JSON items ``{"feature": ..., "can_view": ...}``."""
    grants: list[FeatureGrant] = []
    for item in items or []:
        try:
            feature = Feature(str(item.get("feature") or item.get("feature_code") or ""))
        except ValueError:
            raise ValidationError("Chức năng không hợp lệ")
        grants.append(
            FeatureGrant(
                feature=feature,
                can_view=bool(item.get("can_view")),
                can_create=bool(item.get("can_create")),
                can_edit=bool(item.get("can_edit")),
                can_delete=bool(item.get("can_delete")),
            )
        )
    return grants


class PermissionService:
    """Use case: manage permission groups, memberships and direct grants (admin)."""

    def __init__(self, permissions: PermissionRepository, cache: Optional[QueryCache] = None):
        self._permissions = permissions
        self._cache = cache or QueryCache()

    def list_groups(self) -> Sequence[PermissionGroup]:
        return self._cache.get_or_load(CACHE_ENTITY, "all", self._permissions.list_groups)

    def list_groups_with_permissions(self) -> list[GroupWithPermissions]:
        return [
            GroupWithPermissions(group=g, grants=tuple(self._permissions.list_group_permissions(g.group_id)))
            for g in self.list_groups()
        ]

    def create_group(self, *, name: str, description: Optional[str] = None) -> int:
        name = require_non_empty(name, "Tên nhóm quyền")
        if self._permissions.get_group_by_name(name):
            raise ValidationError("Tên nhóm đã tồn tại")

        group_id = self._permissions.create_group(name=name, description=(description or "").strip() or None)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("permission group created id=%s name=%s", group_id, name)
        return group_id

    def update_group(self, group_id: int, *, name: str, description: Optional[str] = None) -> None:
        name = require_non_empty(name, "Tên nhóm quyền")
        other = self._permissions.get_group_by_name(name)
        if other and other.group_id != int(group_id):
            raise ValidationError("Tên nhóm đã tồn tại")

        if not self._permissions.update_group(int(group_id), name=name, description=(description or "").strip() or None):
            raise ValidationError("Nhóm quyền không tồn tại")
        self._cache.invalidate(CACHE_ENTITY)

    def delete_group(self, group_id: int) -> None:
        if not self._permissions.delete_group(int(group_id)):
            raise ValidationError("Nhóm quyền không tồn tại")
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("permission group deleted id=%s", group_id)

    def group_permissions(self, group_id: int) -> Sequence[FeatureGrant]:
        return self._permissions.list_group_permissions(int(group_id))

    def save_group_permissions(self, group_id: int, grants: Iterable[FeatureGrant]) -> int:
        """Replace a group's grants; features without any action are not stored."""
        if not self._permissions.get_group(int(group_id)):
            raise ValidationError("Nhóm quyền không tồn tại")

        kept = [g for g in grants if g.has_any]
        self._permissions.replace_group_permissions(int(group_id), kept)
        self._cache.invalidate(CACHE_ENTITY)
        return len(kept)

    def user_group_ids(self, user_id: int) -> Sequence[int]:
        return self._permissions.list_user_group_ids(int(user_id))

    def user_group_names(self, user_id: int) -> Sequence[str]:
        return self._permissions.user_group_names(int(user_id))

    def assign_user_groups(self, user_id: int, group_ids: Iterable[int]) -> None:
        """Replace the user's memberships wholesale; an empty list leaves none."""
        ids = sorted({int(g) for g in group_ids})
        self._permissions.replace_user_groups(int(user_id), ids)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("user %s assigned to groups %s", user_id, ids)

    def bulk_assign(self, *, user_ids: Iterable[int], group_ids: Iterable[int], mode: str = ASSIGN_ADD) -> int:
        users = sorted({int(u) for u in user_ids})
        groups = sorted({int(g) for g in group_ids})
        if not groups:
            raise ValidationError("Vui lòng chọn ít nhất một nhóm quyền để gán")
        if not users:
            raise ValidationError("Vui lòng chọn ít nhất một người dùng")
        if mode not in (ASSIGN_ADD, ASSIGN_REPLACE):
            raise ValidationError("Chế độ gán không hợp lệ")

        if mode == ASSIGN_REPLACE:
            for uid in users:
                self._permissions.replace_user_groups(uid, groups)
        else:
            self._permissions.add_user_groups((uid, gid) for uid in users for gid in groups)

        self._cache.invalidate(CACHE_ENTITY)
        logger.info("bulk group assignment mode=%s users=%d groups=%d", mode, len(users), len(groups))
        return len(users)

    def user_permissions(self, user_id: int) -> Sequence[FeatureGrant]:
        return self._permissions.list_user_permissions(int(user_id))

    def save_user_permissions(self, user_id: int, grants: Iterable[FeatureGrant]) -> int:
        kept = [g for g in grants if g.has_any]
        self._permissions.replace_user_permissions(int(user_id), kept)
        return len(kept)

    def all_user_permissions(self) -> Mapping[int, Sequence[FeatureGrant]]:
        return self._permissions.list_all_user_permissions()
