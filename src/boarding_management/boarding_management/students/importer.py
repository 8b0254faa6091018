"""Roster import: fixed 10-column positional layout, append-only."""

from __future__ import annotations

import logging

from ..common.datetime_utils import parse_vn_date
from ..common.delimited import (
    BOM,
    ImportResult,
    decode_upload,
    is_comment,
    probe_delimiter,
    split_lines,
    tokenize,
    write_rows,
)
from ..core.constants import DEFAULT_MEAL_GROUP
from ..core.exceptions import ImportParseError
from .model import NewStudent

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "mau_danh_sach_hoc_sinh.csv"
COLUMNS = (
    "STT",
    "Họ và tên",
    "Ngày sinh",
    "Giới tính",
    "Lớp",
    "CCCD",
    "SĐT",
    "Địa chỉ",
    "Phòng ở",
    "Mâm ăn",
)
_TEMPLATE_EXAMPLES = (
    ("1", "Nguyễn Văn An", "15/05/2010", "Nam", "6A", "", "", "", "P101", "M1"),
    ("2", "Trần Thị Bình", "20/08/2010", "Nữ", "6A", "", "", "", "P102", "M1"),
    ("3", "Lê Hoàng Cường", "10/03/2010", "Nam", "6B", "", "", "", "P103", "M2"),
)

NO_VALID_ROWS = "Không tìm thấy dữ liệu hợp lệ trong file"


def _cell(values: list[str], index: int) -> str:
    return values[index] if index < len(values) else ""


def parse_roster(raw: bytes | str) -> ImportResult[NewStudent]:
    """Parse a roster upload.

    The first non-comment line is the header and is skipped by position.
    A row needs a name and a class; class ids are lower-cased with every
    space removed ("6 A" -> "6a").
    """
    lines = [line for line in split_lines(decode_upload(raw)) if not is_comment(line)]
    if len(lines) < 2:
        raise ImportParseError(NO_VALID_ROWS)

    sep = probe_delimiter(lines[0], ("\t", ";", ","))
    result: ImportResult[NewStudent] = ImportResult()

    for i, line in enumerate(lines[1:], start=2):
        values = tokenize(line, sep)
        name = _cell(values, 1)
        class_id = "".join(_cell(values, 4).split()).lower()
        if not name or not class_id:
            result.skipped.append(f"Dòng {i}: thiếu họ tên hoặc lớp")
            continue

        room = _cell(values, 8) or None
        result.records.append(
            NewStudent(
                name=name,
                class_id=class_id,
                date_of_birth=parse_vn_date(_cell(values, 2)),
                gender=_cell(values, 3) or None,
                cccd=_cell(values, 5) or None,
                phone=_cell(values, 6) or None,
                address=_cell(values, 7) or None,
                room=room,
                meal_group=_cell(values, 9) or DEFAULT_MEAL_GROUP,
                is_boarding=room is not None,
            )
        )

    if not result.records:
        raise ImportParseError(NO_VALID_ROWS)

    if result.skipped:
        logger.warning("roster import skipped %d row(s)", len(result.skipped))
    return result


def render_roster_template() -> str:
    guide = "# HƯỚNG DẪN CỘT: " + " | ".join(COLUMNS) + " (Ngày sinh dạng DD/MM/YYYY)\n"
    return BOM + guide + write_rows([COLUMNS, *_TEMPLATE_EXAMPLES])
