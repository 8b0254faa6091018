from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Feature
from .model import AppFeature, FeatureDraft


class FeatureRepository(Protocol):
    def list_features(self) -> Sequence[AppFeature]:
        """All registered features ordered by display_order, then code."""

        raise NotImplementedError

    def get(self, feature_id: int) -> Optional[AppFeature]:
        raise NotImplementedError

    def get_by_code(self, code: Feature) -> Optional[AppFeature]:
        raise NotImplementedError

    def create(self, draft: FeatureDraft) -> int:
        raise NotImplementedError

    def update(self, feature_id: int, draft: FeatureDraft) -> bool:
        raise NotImplementedError

    def set_active(self, feature_id: int, active: bool) -> bool:
        raise NotImplementedError

    def delete(self, feature: AppFeature) -> None:
        """Remove the feature together with every user and group grant on its code."""

        raise NotImplementedError
