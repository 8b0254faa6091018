from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import LoginClient, LoginRecord
from .repository import LoginHistoryRepository


def _row_to_record(row: dict) -> LoginRecord:
    return LoginRecord(
        record_id=int(row["id"]),
        user_id=int(row["user_id"]),
        login_at=row["login_at"],
        success=bool(row["success"]),
        ip_address=row.get("ip_address"),
        user_agent=row.get("user_agent"),
        full_name=row.get("full_name"),
    )


class MySQLLoginHistoryRepository(LoginHistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, user_id: int, *, success: bool, client: LoginClient) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO login_history(user_id, ip_address, user_agent, success) VALUES(%s,%s,%s,%s)",
                (int(user_id), client.ip_address, client.user_agent, int(success)),
            )

    def list_recent(self, *, limit: int, user_id: Optional[int] = None) -> Sequence[LoginRecord]:
        sql = (
            "SELECT h.id, h.user_id, h.login_at, h.ip_address, h.user_agent, h.success, u.full_name "
            "FROM login_history h LEFT JOIN users u ON u.id = h.user_id"
        )
        params: list = []
        if user_id is not None:
            sql += " WHERE h.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY h.login_at DESC, h.id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]
