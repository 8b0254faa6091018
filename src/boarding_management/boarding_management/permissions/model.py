from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Feature

ACTION_LABELS = (
    ("can_view", "Xem"),
    ("can_create", "Thêm"),
    ("can_edit", "Sửa"),
    ("can_delete", "Xóa"),
)


@dataclass(frozen=True)
class FeatureGrant:
    """Quyền view/create/edit/delete trên một chức năng."""

    feature: Feature
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False

    @property
    def has_any(self) -> bool:
        return self.can_view or self.can_create or self.can_edit or self.can_delete

    def action_labels(self) -> list[str]:
        return [label for attr, label in ACTION_LABELS if getattr(self, attr)]


@dataclass(frozen=True)
class PermissionGroup:
    group_id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GroupWithPermissions:
    group: PermissionGroup
    grants: tuple[FeatureGrant, ...] = ()
