from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Feature
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AppFeature, FeatureDraft
from .repository import FeatureRepository

_COLUMNS = "id, code, label, description, icon_name, display_order, is_active, created_at"


def _row_to_feature(row: dict) -> Optional[AppFeature]:
    try:
        code = Feature(row["code"])
    except ValueError:
        return None
    return AppFeature(
        feature_id=int(row["id"]),
        code=code,
        label=row["label"],
        description=row.get("description"),
        icon_name=row.get("icon_name"),
        display_order=int(row.get("display_order") or 0),
        is_active=bool(row["is_active"]),
        created_at=row.get("created_at"),
    )


def _draft_params(draft: FeatureDraft) -> tuple:
    return (draft.label, draft.description, draft.icon_name, int(draft.display_order), int(draft.is_active))


class MySQLFeatureRepository(FeatureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_features(self) -> Sequence[AppFeature]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM app_features ORDER BY display_order, code")
            features = [_row_to_feature(r) for r in fetchall(cur)]
            return [f for f in features if f is not None]

    def _get_where(self, clause: str, value) -> Optional[AppFeature]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM app_features WHERE {clause}=%s", (value,))
            row = fetchone(cur)
            return _row_to_feature(row) if row else None

    def get(self, feature_id: int) -> Optional[AppFeature]:
        return self._get_where("id", int(feature_id))

    def get_by_code(self, code: Feature) -> Optional[AppFeature]:
        return self._get_where("code", code.value)

    def create(self, draft: FeatureDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO app_features(code, label, description, icon_name, display_order, is_active) "
                "VALUES(%s,%s,%s,%s,%s,%s)",
                (draft.code, *_draft_params(draft)),
            )
            return int(cur.lastrowid)

    def update(self, feature_id: int, draft: FeatureDraft) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE app_features SET code=%s, label=%s, description=%s, icon_name=%s, "
                "display_order=%s, is_active=%s WHERE id=%s",
                (draft.code, *_draft_params(draft), int(feature_id)),
            )
            return cur.rowcount > 0

    def set_active(self, feature_id: int, active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE app_features SET is_active=%s WHERE id=%s", (int(active), int(feature_id)))
            return cur.rowcount > 0

    def delete(self, feature: AppFeature) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_permissions WHERE feature=%s", (feature.code.value,))
            cur.execute("DELETE FROM permission_group_permissions WHERE feature_code=%s", (feature.code.value,))
            cur.execute("DELETE FROM app_features WHERE id=%s", (int(feature.feature_id),))
