from __future__ import annotations

import pytest

from src.boarding_management.boarding_management.core.enums import Feature
from src.boarding_management.boarding_management.core.exceptions import ValidationError
from src.boarding_management.boarding_management.features.model import FeatureDraft
from src.boarding_management.boarding_management.features.service import draft_from_payload
from src.boarding_management.boarding_management.permissions.model import FeatureGrant


@pytest.fixture
def service(container):
    return container.feature_service


def test_features_are_listed_by_display_order(service, features_repo):
    features_repo.add(Feature.MEALS, display_order=5)
    features_repo.add(Feature.DASHBOARD, display_order=1)
    features_repo.add(Feature.SETTINGS, display_order=8, is_active=False)

    assert [f.code for f in service.list_features()] == [Feature.DASHBOARD, Feature.MEALS, Feature.SETTINGS]
    assert [f.code for f in service.list_features(active_only=True)] == [Feature.DASHBOARD, Feature.MEALS]


def test_register_feature_cleans_the_draft(service, features_repo):
    feature_id = service.create_feature(
        FeatureDraft(code=" Meals ", label=" Báo cơm ", description="  ", icon_name="", display_order=3)
    )

    feature = features_repo.get(feature_id)
    assert feature.code is Feature.MEALS
    assert feature.label == "Báo cơm"
    assert feature.description is None
    assert feature.icon_name == "Settings"


@pytest.mark.parametrize(
    "draft, message",
    [
        (FeatureDraft(code="library", label="Thư viện"), "Mã chức năng không hợp lệ"),
        (FeatureDraft(code="meals", label="  "), "Tên hiển thị"),
        (FeatureDraft(code="meals", label="Báo cơm", icon_name="Rocket"), "Biểu tượng không hợp lệ"),
        (FeatureDraft(code="meals", label="Báo cơm", display_order=-1), "không được âm"),
    ],
)
def test_invalid_drafts_are_rejected(service, features_repo, draft, message):
    with pytest.raises(ValidationError) as exc:
        service.create_feature(draft)

    assert message in str(exc.value)
    assert features_repo.features == {}


def test_codes_are_unique(service, features_repo):
    features_repo.add(Feature.MEALS)
    boarding = features_repo.add(Feature.BOARDING)

    with pytest.raises(ValidationError, match="đã tồn tại"):
        service.create_feature(FeatureDraft(code="meals", label="Báo cơm 2"))
    with pytest.raises(ValidationError, match="đã tồn tại"):
        service.update_feature(boarding.feature_id, FeatureDraft(code="meals", label="Nội trú"))


def test_update_keeps_the_same_code(service, features_repo):
    boarding = features_repo.add(Feature.BOARDING)

    service.update_feature(boarding.feature_id, FeatureDraft(code="boarding", label="Nội trú KTX", display_order=9))

    assert features_repo.get(boarding.feature_id).label == "Nội trú KTX"
    assert service.list_features()[0].display_order == 9


def test_toggle_flips_visibility(service, features_repo):
    meals = features_repo.add(Feature.MEALS)

    assert service.toggle_feature(meals.feature_id) is False
    assert service.list_features(active_only=True) == []
    assert service.toggle_feature(meals.feature_id) is True


def test_missing_feature_is_a_validation_error(service):
    with pytest.raises(ValidationError, match="không tồn tại"):
        service.toggle_feature(99)
    with pytest.raises(ValidationError, match="không tồn tại"):
        service.delete_feature(99)


def test_delete_drops_grants_on_that_code(service, features_repo, permissions_repo):
    meals = features_repo.add(Feature.MEALS)
    permissions_repo.replace_user_permissions(
        4, [FeatureGrant(Feature.MEALS, can_view=True), FeatureGrant(Feature.STUDENTS, can_view=True)]
    )
    group_id = permissions_repo.create_group(name="Báo cơm", description=None)
    permissions_repo.replace_group_permissions(group_id, [FeatureGrant(Feature.MEALS, can_create=True)])

    service.delete_feature(meals.feature_id)

    assert features_repo.features == {}
    assert [g.feature for g in permissions_repo.list_user_permissions(4)] == [Feature.STUDENTS]
    assert permissions_repo.list_group_permissions(group_id) == []


def test_draft_from_payload_rejects_non_numeric_order():
    with pytest.raises(ValidationError):
        draft_from_payload({"code": "meals", "label": "Báo cơm", "display_order": "đầu"})

    assert draft_from_payload({"code": "meals", "label": "Báo cơm"}).is_active is True
