from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.cache import QueryCache
from ..common.validators import is_valid_phone, require_non_empty
from ..core.constants import DEFAULT_MEAL_GROUP
from ..core.exceptions import ValidationError
from .importer import parse_roster
from .model import NewStudent, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)

CACHE_ENTITY = "students"


class StudentService:
    """Use case: roster CRUD and bulk import."""

    def __init__(self, students: StudentRepository, cache: Optional[QueryCache] = None):
        self._students = students
        self._cache = cache or QueryCache()

    def list_students(self) -> Sequence[Student]:
        return self._cache.get_or_load(CACHE_ENTITY, "all", self._students.list_all)

    def list_by_class(self, class_id: str) -> list[Student]:
        return [s for s in self.list_students() if s.class_id == class_id]

    def list_boarding(self) -> list[Student]:
        """Students with a room assignment."""
        return [s for s in self.list_students() if s.room]

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise ValidationError("Học sinh không tồn tại")
        return student

    @staticmethod
    def build(
        *,
        name: str,
        class_id: str,
        date_of_birth: Optional[date] = None,
        gender: Optional[str] = None,
        cccd: Optional[str] = None,
        phone: Optional[str] = None,
        parent_phone: Optional[str] = None,
        address: Optional[str] = None,
        room: Optional[str] = None,
        meal_group: Optional[str] = None,
    ) -> NewStudent:
        """Validate form input into a NewStudent."""
        try:
            name = require_non_empty(name, "Họ tên")
            class_id = require_non_empty(class_id, "Lớp")
        except ValidationError:
            raise ValidationError("Vui lòng điền đầy đủ thông tin")
        for value in (phone, parent_phone):
            if not is_valid_phone(value):
                raise ValidationError("Số điện thoại phải có 10 số, bắt đầu bằng 0")

        room = (room or "").strip() or None
        return NewStudent(
            name=name,
            class_id="".join(class_id.split()).lower(),
            date_of_birth=date_of_birth,
            gender=(gender or "").strip() or None,
            cccd=(cccd or "").strip() or None,
            phone=(phone or "").strip() or None,
            parent_phone=(parent_phone or "").strip() or None,
            address=(address or "").strip() or None,
            room=room,
            meal_group=(meal_group or "").strip() or DEFAULT_MEAL_GROUP,
            is_boarding=room is not None,
        )

    def add_student(self, student: NewStudent) -> int:
        student_id = self._students.create(student)
        self._cache.invalidate(CACHE_ENTITY)
        return student_id

    def update_student(self, student_id: int, student: NewStudent) -> None:
        self.get_student(student_id)
        self._students.update(int(student_id), student)
        self._cache.invalidate(CACHE_ENTITY)

    def delete_student(self, student_id: int) -> None:
        if not self._students.delete(int(student_id)):
            raise ValidationError("Học sinh không tồn tại")
        self._cache.invalidate(CACHE_ENTITY)

    def delete_all(self) -> int:
        count = self._students.delete_all()
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("roster cleared (%d students)", count)
        return count

    def import_roster(self, raw: bytes | str) -> tuple[int, list[str]]:
        """Append every valid row in one bulk insert; returns (added, skipped notes)."""
        result = parse_roster(raw)
        added = self._students.bulk_create(result.records)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("roster import added=%d skipped=%d", added, len(result.skipped))
        return added, result.skipped
