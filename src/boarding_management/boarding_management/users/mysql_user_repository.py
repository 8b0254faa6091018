from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .capabilities import to_role_set
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "u.id, u.email, u.username, u.phone, u.full_name, u.password_hash, u.class_id, u.is_active"


def _row_to_user(row: dict, roles: Iterable[str] = ()) -> User:
    return User(
        user_id=int(row["id"]),
        email=row["email"],
        full_name=row["full_name"],
        password_hash=row.get("password_hash") or "",
        username=row.get("username"),
        phone=row.get("phone"),
        class_id=row.get("class_id"),
        roles=to_role_set(roles),
        is_active=bool(row.get("is_active", True)),
    )


def _insert_roles(cur, user_id: int, roles: Iterable[Role]) -> None:
    rows = [(user_id, Role(r).value) for r in roles]
    if rows:
        cur.executemany("INSERT INTO user_roles(user_id, role) VALUES(%s,%s)", rows)


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u WHERE {where}", params)
            row = fetchone(cur)
            if not row:
                return None
            cur.execute("SELECT role FROM user_roles WHERE user_id=%s", (int(row["id"]),))
            roles = [r["role"] for r in fetchall(cur)]
            return _row_to_user(row, roles)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("u.id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("u.email=%s", (email,))

    def get_email_by_login(self, login: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT email FROM users
                WHERE username=%s OR phone=%s
                ORDER BY (username=%s) DESC
                LIMIT 1
                """,
                (login, login, login),
            )
            row = fetchone(cur)
            return row["email"] if row else None

    def list_with_roles(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users u ORDER BY u.full_name")
            rows = fetchall(cur)
            cur.execute("SELECT user_id, role FROM user_roles")
            roles_by_user: dict[int, list[str]] = {}
            for r in fetchall(cur):
                roles_by_user.setdefault(int(r["user_id"]), []).append(r["role"])
            return [_row_to_user(r, roles_by_user.get(int(r["id"]), [])) for r in rows]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, password_hash, full_name, phone, username, class_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (email, password_hash, full_name, phone, username, class_id),
            )
            user_id = int(cur.lastrowid)
            _insert_roles(cur, user_id, roles)
            return user_id

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: str,
        phone: Optional[str],
        username: Optional[str],
        class_id: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET full_name=%s, phone=%s, username=%s, class_id=%s WHERE id=%s",
                (full_name, phone, username, class_id, int(user_id)),
            )
            return cur.rowcount > 0

    def set_roles(self, user_id: int, roles: Iterable[Role]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_roles WHERE user_id=%s", (int(user_id),))
            _insert_roles(cur, int(user_id), roles)

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE id=%s", (int(user_id),))
            return cur.rowcount > 0
