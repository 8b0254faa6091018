from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..common.cache import QueryCache
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_FEATURE_ICON, FEATURE_ICONS
from ..core.enums import Feature
from ..core.exceptions import ValidationError
from ..permissions.service import CACHE_ENTITY as PERMISSIONS_CACHE_ENTITY
from .model import AppFeature, FeatureDraft
from .repository import FeatureRepository

logger = logging.getLogger(__name__)

CACHE_ENTITY = "app_features"


def draft_from_payload(data: Mapping[str, Any]) -> FeatureDraft:
    """Build a draft from JSON ``{"code", "label", "description", "icon_name", "display_order", "is_active"}``."""
    try:
        order = int(data.get("display_order") or 0)
    except (TypeError, ValueError):
        raise ValidationError("Thứ tự hiển thị phải là số")
    return FeatureDraft(
        code=str(data.get("code") or ""),
        label=str(data.get("label") or ""),
        description=data.get("description"),
        icon_name=data.get("icon_name"),
        display_order=order,
        is_active=bool(data.get("is_active", True)),
    )


class FeatureService:
    """Use case: maintain the feature registry shown in menus and permission screens.

    Codes are limited to the features the application knows how to guard;
    the registry owns their labels, icons, order and whether they are shown.
    """

    def __init__(self, features: FeatureRepository, cache: Optional[QueryCache] = None):
        self._features = features
        self._cache = cache or QueryCache()

    def list_features(self, *, active_only: bool = False) -> Sequence[AppFeature]:
        features = self._cache.get_or_load(CACHE_ENTITY, "all", self._features.list_features)
        if active_only:
            return [f for f in features if f.is_active]
        return features

    def _clean(self, draft: FeatureDraft) -> FeatureDraft:
        try:
            code = Feature(draft.code.strip().lower())
        except ValueError:
            raise ValidationError("Mã chức năng không hợp lệ")
        label = require_non_empty(draft.label, "Tên hiển thị")
        icon = (draft.icon_name or "").strip() or DEFAULT_FEATURE_ICON
        if icon not in FEATURE_ICONS:
            raise ValidationError("Biểu tượng không hợp lệ")
        if draft.display_order < 0:
            raise ValidationError("Thứ tự hiển thị không được âm")
        return FeatureDraft(
            code=code.value,
            label=label,
            description=(draft.description or "").strip() or None,
            icon_name=icon,
            display_order=draft.display_order,
            is_active=draft.is_active,
        )

    def _require(self, feature_id: int) -> AppFeature:
        feature = self._features.get(int(feature_id))
        if not feature:
            raise ValidationError("Chức năng không tồn tại")
        return feature

    def create_feature(self, draft: FeatureDraft) -> int:
        draft = self._clean(draft)
        if self._features.get_by_code(Feature(draft.code)):
            raise ValidationError("Mã chức năng đã tồn tại")

        feature_id = self._features.create(draft)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("feature registered id=%s code=%s", feature_id, draft.code)
        return feature_id

    def update_feature(self, feature_id: int, draft: FeatureDraft) -> None:
        self._require(feature_id)
        draft = self._clean(draft)
        other = self._features.get_by_code(Feature(draft.code))
        if other and other.feature_id != int(feature_id):
            raise ValidationError("Mã chức năng đã tồn tại")

        self._features.update(int(feature_id), draft)
        self._cache.invalidate(CACHE_ENTITY)

    def toggle_feature(self, feature_id: int) -> bool:
        """Flip visibility and return the new state."""
        feature = self._require(feature_id)
        self._features.set_active(feature.feature_id, not feature.is_active)
        self._cache.invalidate(CACHE_ENTITY)
        return not feature.is_active

    def delete_feature(self, feature_id: int) -> None:
        feature = self._require(feature_id)
        self._features.delete(feature)
        self._cache.invalidate(CACHE_ENTITY)
        self._cache.invalidate(PERMISSIONS_CACHE_ENTITY)
        logger.info("feature removed id=%s code=%s", feature.feature_id, feature.code.value)
