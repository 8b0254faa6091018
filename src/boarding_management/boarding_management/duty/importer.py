"""Duty-schedule CSV import.

The file is a month grid: one row per teacher, one column per day of the
month, a marker in each cell where the teacher is on duty. The column's
own header label gives its day, so the column order does not matter.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from ..common.datetime_utils import days_in_month
from ..common.delimited import (
    ImportResult,
    decode_upload,
    fold,
    is_comment,
    probe_delimiter,
    split_lines,
    tokenize,
)
from ..core.exceptions import ImportParseError
from .model import DutyEntry

logger = logging.getLogger(__name__)

MARKED_TOKENS = frozenset({"x", "✓", "✔", "1"})
GUIDE_TOKENS = frozenset({"cn", "t2", "t3", "t4", "t5", "t6", "t7"})
NAME_COLUMN = "ho va ten"

_LEADING_INT = re.compile(r"\s*(\d+)")


def is_marked(cell: str) -> bool:
    return cell.strip().lower() in MARKED_TOKENS


def is_guide_row(name: str) -> bool:
    """Weekday guide rows ("T2", "CN", "Thứ 2") sit under the header."""
    value = name.strip().lower()
    return value.startswith("thứ") or value in GUIDE_TOKENS


def header_day(label: str) -> int | None:
    """Leading day-of-month of a header label ("2 (CN)" -> 2), None if absent or not 1..31."""
    match = _LEADING_INT.match(label)
    if not match:
        return None
    day = int(match.group(1))
    if day < 1 or day > 31:
        return None
    return day


def _find_header(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if "stt" in line.lower():
            return i
    raise ImportParseError("Không tìm thấy dòng tiêu đề (STT)")


def _find_name_column(headers: list[str]) -> int:
    for i, header in enumerate(headers):
        if NAME_COLUMN in fold(header):
            return i
    raise ImportParseError('Không tìm thấy cột "Họ và tên"')


def parse_duty_schedule(raw: bytes | str, *, year: int, month: int) -> ImportResult[DutyEntry]:
    """Turn a month grid into duty entries for ``month``/``year``.

    A marked cell under a day that the month does not have (31 in April)
    is dropped and noted in ``skipped``.
    """
    lines = [line for line in split_lines(decode_upload(raw)) if not is_comment(line)]
    header_index = _find_header(lines)

    sep = probe_delimiter(lines[header_index], (";", ","))
    headers = tokenize(lines[header_index], sep)
    name_col = _find_name_column(headers)

    day_columns: dict[int, int] = {}
    for col in range(name_col + 1, len(headers)):
        day = header_day(headers[col])
        if day is not None:
            day_columns[col] = day

    last_day = days_in_month(year, month)
    result: ImportResult[DutyEntry] = ImportResult()

    for line in lines[header_index + 1:]:
        cols = tokenize(line, sep)
        teacher_name = cols[name_col] if name_col < len(cols) else ""
        if not teacher_name or is_guide_row(teacher_name):
            continue

        for col, day in day_columns.items():
            if col >= len(cols) or not is_marked(cols[col]):
                continue
            if day > last_day:
                result.skipped.append(f"{teacher_name}: tháng {month}/{year} không có ngày {day}")
                continue
            result.records.append(DutyEntry(teacher_name=teacher_name, duty_date=date(year, month, day)))

    if not result.records:
        raise ImportParseError("Không tìm thấy dữ liệu lịch trực trong file")

    if result.skipped:
        logger.warning("duty import dropped %d marked cell(s) outside %d/%d", len(result.skipped), month, year)
    return result
