from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_MEAL_GROUP
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_date
from .model import NewStudent, Student
from .repository import StudentRepository

_COLUMNS = (
    "name, class_id, date_of_birth, gender, cccd, phone, parent_phone, address, room, meal_group, is_boarding"
)


def _row_to_student(row: dict) -> Student:
    return Student(
        student_id=int(row["id"]),
        name=row["name"],
        class_id=row["class_id"],
        date_of_birth=to_date(row.get("date_of_birth")),
        gender=row.get("gender"),
        cccd=row.get("cccd"),
        phone=row.get("phone"),
        parent_phone=row.get("parent_phone"),
        address=row.get("address"),
        room=row.get("room"),
        meal_group=row.get("meal_group") or DEFAULT_MEAL_GROUP,
        is_boarding=bool(row.get("is_boarding")),
    )


def _params(s: NewStudent) -> tuple:
    return (
        s.name,
        s.class_id,
        s.date_of_birth,
        s.gender,
        s.cccd,
        s.phone,
        s.parent_phone,
        s.address,
        s.room,
        s.meal_group,
        int(s.is_boarding),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id, {_COLUMNS} FROM students ORDER BY name")
            return [_row_to_student(r) for r in fetchall(cur)]

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id, {_COLUMNS} FROM students WHERE id=%s", (int(student_id),))
            row = fetchone(cur)
            return _row_to_student(row) if row else None

    def create(self, student: NewStudent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO students({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                _params(student),
            )
            return int(cur.lastrowid)

    def bulk_create(self, students: Sequence[NewStudent]) -> int:
        if not students:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                f"INSERT INTO students({_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                [_params(s) for s in students],
            )
            return len(students)

    def update(self, student_id: int, student: NewStudent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET name=%s, class_id=%s, date_of_birth=%s, gender=%s, cccd=%s, phone=%s,
                    parent_phone=%s, address=%s, room=%s, meal_group=%s, is_boarding=%s
                WHERE id=%s
                """,
                _params(student) + (int(student_id),),
            )
            return cur.rowcount > 0

    def delete(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE id=%s", (int(student_id),))
            return cur.rowcount > 0

    def delete_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students")
            return int(cur.rowcount)
