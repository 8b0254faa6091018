"""File-backed teacher directory.

The store reads the file on ``load()``. Every change is applied to a copy
of the list under the lock, written to disk (temp file, then rename) and
only then swapped in, so a failed write leaves the directory as it was.
``save()`` rewrites the file from the current list.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional

from ..common.validators import is_valid_phone, require_non_empty
from ..core.exceptions import BackendError, ValidationError
from .model import Teacher

logger = logging.getLogger(__name__)


class TeacherStore:
    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._teachers: list[Teacher] = []
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Teacher]:
        """Read the file; a missing file is an empty directory."""
        with self._lock:
            if not self._path.exists():
                self._teachers = []
                return []
            try:
                items = json.loads(self._path.read_text(encoding="utf-8") or "[]")
            except (OSError, ValueError) as e:
                logger.exception("cannot read teacher store %s", self._path)
                raise BackendError("Không đọc được danh sách giáo viên") from e
            self._teachers = [
                Teacher(
                    teacher_id=str(item["teacher_id"]),
                    name=item["name"],
                    subject=item.get("subject"),
                    phone=item.get("phone"),
                )
                for item in items
            ]
            return list(self._teachers)

    def _write(self, teachers: list[Teacher]) -> None:
        payload = json.dumps([asdict(t) for t in teachers], ensure_ascii=False, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            logger.exception("cannot write teacher store %s", self._path)
            raise BackendError("Không lưu được danh sách giáo viên") from e

    def _commit(self, teachers: list[Teacher]) -> None:
        # caller holds self._lock
        self._write(teachers)
        self._teachers = teachers

    def save(self) -> None:
        with self._lock:
            self._write(self._teachers)

    def list_all(self) -> list[Teacher]:
        with self._lock:
            teachers = self._teachers
        return sorted(teachers, key=lambda t: t.name)

    def get(self, teacher_id: str) -> Optional[Teacher]:
        with self._lock:
            return self._find(teacher_id)

    def _find(self, teacher_id: str) -> Optional[Teacher]:
        return next((t for t in self._teachers if t.teacher_id == teacher_id), None)

    @staticmethod
    def _clean(name: str, subject: Optional[str], phone: Optional[str]) -> tuple[str, Optional[str], Optional[str]]:
        name = require_non_empty(name, "Họ tên giáo viên")
        phone = (phone or "").strip() or None
        if not is_valid_phone(phone):
            raise ValidationError("Số điện thoại phải có 10 số, bắt đầu bằng 0")
        return name, (subject or "").strip() or None, phone

    def add(self, *, name: str, subject: Optional[str] = None, phone: Optional[str] = None) -> Teacher:
        name, subject, phone = self._clean(name, subject, phone)
        teacher = Teacher(teacher_id=uuid.uuid4().hex, name=name, subject=subject, phone=phone)
        with self._lock:
            self._commit([*self._teachers, teacher])
        return teacher

    def update(self, teacher_id: str, *, name: str, subject: Optional[str] = None, phone: Optional[str] = None) -> Teacher:
        name, subject, phone = self._clean(name, subject, phone)
        with self._lock:
            current = self._find(teacher_id)
            if current is None:
                raise ValidationError("Giáo viên không tồn tại")
            updated = replace(current, name=name, subject=subject, phone=phone)
            self._commit([updated if t.teacher_id == teacher_id else t for t in self._teachers])
        return updated

    def remove(self, teacher_id: str) -> Teacher:
        with self._lock:
            current = self._find(teacher_id)
            if current is None:
                raise ValidationError("Giáo viên không tồn tại")
            self._commit([t for t in self._teachers if t.teacher_id != teacher_id])
        return current
