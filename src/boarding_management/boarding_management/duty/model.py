from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class DutySchedule:
    """Một lượt trực: giáo viên trực nội trú vào một ngày."""

    duty_id: int
    teacher_name: str
    duty_date: date
    notes: Optional[str] = None
    user_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DutyEntry:
    """Lượt trực chưa lưu (nhập tay, nhập file, sao chép)."""

    teacher_name: str
    duty_date: date
    notes: Optional[str] = None

    @property
    def month(self) -> tuple[int, int]:
        return self.duty_date.year, self.duty_date.month
