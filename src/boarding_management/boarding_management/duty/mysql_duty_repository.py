from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import month_range
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_date
from .model import DutyEntry, DutySchedule
from .repository import DutyRepository

_SELECT = "SELECT id, teacher_name, duty_date, notes, user_id, created_by, created_at FROM duty_schedules"


def _row_to_duty(row: dict) -> DutySchedule:
    return DutySchedule(
        duty_id=int(row["id"]),
        teacher_name=row["teacher_name"],
        duty_date=to_date(row["duty_date"]),
        notes=row.get("notes"),
        user_id=row.get("user_id"),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
    )


class MySQLDutyRepository(DutyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_range(self, start: date, end: date) -> Sequence[DutySchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE duty_date >= %s AND duty_date <= %s ORDER BY duty_date, teacher_name",
                (start, end),
            )
            return [_row_to_duty(r) for r in fetchall(cur)]

    def list_for_date(self, duty_date: date) -> Sequence[DutySchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE duty_date=%s ORDER BY teacher_name", (duty_date,))
            return [_row_to_duty(r) for r in fetchall(cur)]

    def get_by_id(self, duty_id: int) -> Optional[DutySchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(duty_id),))
            row = fetchone(cur)
            return _row_to_duty(row) if row else None

    def create(self, entry: DutyEntry, *, created_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO duty_schedules(teacher_name, duty_date, notes, created_by) VALUES(%s,%s,%s,%s)",
                (entry.teacher_name, entry.duty_date, entry.notes, created_by),
            )
            return int(cur.lastrowid)

    def update(self, duty_id: int, entry: DutyEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE duty_schedules SET teacher_name=%s, duty_date=%s, notes=%s WHERE id=%s",
                (entry.teacher_name, entry.duty_date, entry.notes, int(duty_id)),
            )
            return cur.rowcount > 0

    def delete(self, duty_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM duty_schedules WHERE id=%s", (int(duty_id),))
            return cur.rowcount > 0

    def replace_months(
        self,
        months: Iterable[tuple[int, int]],
        entries: Sequence[DutyEntry],
        *,
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for year, month in sorted(set(months)):
                start, end = month_range(year, month)
                cur.execute(
                    "DELETE FROM duty_schedules WHERE duty_date >= %s AND duty_date <= %s",
                    (start, end),
                )
            if entries:
                cur.executemany(
                    "INSERT INTO duty_schedules(teacher_name, duty_date, notes, created_by) VALUES(%s,%s,%s,%s)",
                    [(e.teacher_name, e.duty_date, e.notes, created_by) for e in entries],
                )
            return len(entries)
