"""Month-grid CSV files for the duty schedule: blank template and export.

Both files have the layout the importer reads back: title, blank line,
header (days, Sundays marked "(CN)"), weekday guide row, one row per
teacher, then the instruction comments.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from ..common.datetime_utils import days_in_month, weekday_label
from ..common.delimited import BOM, write_rows
from ..core.constants import DEFAULT_TEMPLATE_ROWS
from .model import DutySchedule

MARK = "x"
INSTRUCTIONS = (
    "# Hướng dẫn: Đánh dấu x hoặc ✓ vào ô tương ứng với ngày trực",
    "# Các cột có (CN) là ngày Chủ nhật",
    "# Xóa các dòng hướng dẫn này trước khi upload",
)


def template_filename(year: int, month: int) -> str:
    return f"mau_lich_truc_thang_{month}_{year}.csv"


def export_filename(year: int, month: int) -> str:
    return f"lich_truc_thang_{month}_{year}.csv"


def _header_rows(year: int, month: int) -> list[list[str]]:
    headers = ["STT", "Họ và tên"]
    guide = ["", ""]
    for day in range(1, days_in_month(year, month) + 1):
        label = weekday_label(date(year, month, day))
        headers.append(f"{day} (CN)" if label == "CN" else str(day))
        guide.append(label)
    return [[f"Lịch trực tháng {month}/{year}"], [], headers, guide]


def _render(year: int, month: int, teacher_rows: Iterable[tuple[str, set[int]]]) -> str:
    last_day = days_in_month(year, month)
    rows = _header_rows(year, month)
    for index, (name, days) in enumerate(teacher_rows, start=1):
        cells = [str(index), name]
        cells.extend(MARK if day in days else "" for day in range(1, last_day + 1))
        rows.append(cells)
    rows.append([])
    return BOM + write_rows(rows) + "\n".join(INSTRUCTIONS)


def render_template(year: int, month: int, *, rows: int = DEFAULT_TEMPLATE_ROWS) -> str:
    return _render(year, month, ((f"Giáo viên {i}", set()) for i in range(1, rows + 1)))


def render_export(year: int, month: int, duties: Sequence[DutySchedule]) -> str:
    """The month's assignments, one row per teacher in first-duty order."""
    by_teacher: dict[str, set[int]] = {}
    for duty in sorted(duties, key=lambda d: d.duty_date):
        if (duty.duty_date.year, duty.duty_date.month) != (year, month):
            continue
        by_teacher.setdefault(duty.teacher_name, set()).add(duty.duty_date.day)
    return _render(year, month, by_teacher.items())
