from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_MEAL_GROUP


@dataclass(frozen=True)
class Student:
    """Học sinh trong danh sách (roster)."""

    student_id: int
    name: str
    class_id: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    cccd: Optional[str] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    room: Optional[str] = None
    meal_group: str = DEFAULT_MEAL_GROUP
    is_boarding: bool = False


@dataclass(frozen=True)
class NewStudent:
    """Dữ liệu học sinh chưa có id (nhập tay hoặc từ file)."""

    name: str
    class_id: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    cccd: Optional[str] = None
    phone: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    room: Optional[str] = None
    meal_group: str = DEFAULT_MEAL_GROUP
    is_boarding: bool = False
