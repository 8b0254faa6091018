from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from ..core.enums import Feature
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import FeatureGrant, PermissionGroup
from .repository import PermissionRepository


def _row_to_group(row: dict) -> PermissionGroup:
    return PermissionGroup(
        group_id=int(row["id"]),
        name=row["name"],
        description=row.get("description"),
        created_at=row.get("created_at"),
    )


def _row_to_grant(row: dict, feature_key: str) -> Optional[FeatureGrant]:
    try:
        feature = Feature(row[feature_key])
    except ValueError:
        return None
    return FeatureGrant(
        feature=feature,
        can_view=bool(row["can_view"]),
        can_create=bool(row["can_create"]),
        can_edit=bool(row["can_edit"]),
        can_delete=bool(row["can_delete"]),
    )


def _grant_params(owner_id: int, grant: FeatureGrant) -> tuple:
    return (
        int(owner_id),
        grant.feature.value,
        int(grant.can_view),
        int(grant.can_create),
        int(grant.can_edit),
        int(grant.can_delete),
    )


class MySQLPermissionRepository(PermissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_groups(self) -> Sequence[PermissionGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, description, created_at FROM permission_groups ORDER BY name")
            return [_row_to_group(r) for r in fetchall(cur)]

    def get_group(self, group_id: int) -> Optional[PermissionGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, description, created_at FROM permission_groups WHERE id=%s",
                (int(group_id),),
            )
            row = fetchone(cur)
            return _row_to_group(row) if row else None

    def get_group_by_name(self, name: str) -> Optional[PermissionGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, name, description, created_at FROM permission_groups WHERE name=%s",
                (name,),
            )
            row = fetchone(cur)
            return _row_to_group(row) if row else None

    def create_group(self, *, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO permission_groups(name, description) VALUES(%s,%s)",
                (name, description),
            )
            return int(cur.lastrowid)

    def update_group(self, group_id: int, *, name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE permission_groups SET name=%s, description=%s WHERE id=%s",
                (name, description, int(group_id)),
            )
            return cur.rowcount > 0

    def delete_group(self, group_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM permission_groups WHERE id=%s", (int(group_id),))
            return cur.rowcount > 0

    def list_group_permissions(self, group_id: int) -> Sequence[FeatureGrant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT feature_code, can_view, can_create, can_edit, can_delete
                FROM permission_group_permissions WHERE group_id=%s
                """,
                (int(group_id),),
            )
            grants = (_row_to_grant(r, "feature_code") for r in fetchall(cur))
            return [g for g in grants if g is not None]

    def replace_group_permissions(self, group_id: int, grants: Iterable[FeatureGrant]) -> None:
        rows = [_grant_params(group_id, g) for g in grants]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM permission_group_permissions WHERE group_id=%s", (int(group_id),))
            if rows:
                cur.executemany(
                    """
                    INSERT INTO permission_group_permissions(group_id, feature_code, can_view, can_create, can_edit, can_delete)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    rows,
                )

    def list_user_group_ids(self, user_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT group_id FROM user_permission_groups WHERE user_id=%s", (int(user_id),))
            return [int(r["group_id"]) for r in fetchall(cur)]

    def replace_user_groups(self, user_id: int, group_ids: Iterable[int]) -> None:
        rows = [(int(user_id), int(gid)) for gid in group_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_permission_groups WHERE user_id=%s", (int(user_id),))
            if rows:
                cur.executemany("INSERT INTO user_permission_groups(user_id, group_id) VALUES(%s,%s)", rows)

    def add_user_groups(self, pairs: Iterable[tuple[int, int]]) -> None:
        rows = [(int(uid), int(gid)) for uid, gid in pairs]
        if not rows:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany("INSERT IGNORE INTO user_permission_groups(user_id, group_id) VALUES(%s,%s)", rows)

    def list_user_permissions(self, user_id: int) -> Sequence[FeatureGrant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT feature, can_view, can_create, can_edit, can_delete
                FROM user_permissions WHERE user_id=%s
                """,
                (int(user_id),),
            )
            grants = (_row_to_grant(r, "feature") for r in fetchall(cur))
            return [g for g in grants if g is not None]

    def list_all_user_permissions(self) -> Mapping[int, Sequence[FeatureGrant]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, feature, can_view, can_create, can_edit, can_delete FROM user_permissions")
            out: dict[int, list[FeatureGrant]] = {}
            for r in fetchall(cur):
                grant = _row_to_grant(r, "feature")
                if grant is not None:
                    out.setdefault(int(r["user_id"]), []).append(grant)
            return out

    def replace_user_permissions(self, user_id: int, grants: Iterable[FeatureGrant]) -> None:
        rows = [_grant_params(user_id, g) for g in grants]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_permissions WHERE user_id=%s", (int(user_id),))
            if rows:
                cur.executemany(
                    """
                    INSERT INTO user_permissions(user_id, feature, can_view, can_create, can_edit, can_delete)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    rows,
                )

    def user_group_names(self, user_id: int) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.name FROM user_permission_groups ug
                JOIN permission_groups g ON g.id = ug.group_id
                WHERE ug.user_id=%s
                """,
                (int(user_id),),
            )
            return [r["name"] for r in fetchall(cur)]
