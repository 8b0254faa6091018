from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Feature


@dataclass(frozen=True)
class AppFeature:
    """Menu entry for a permissionable feature: label, icon, order, visibility."""

    feature_id: int
    code: Feature
    label: str
    description: Optional[str] = None
    icon_name: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class FeatureDraft:
    code: str
    label: str
    description: Optional[str] = None
    icon_name: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
