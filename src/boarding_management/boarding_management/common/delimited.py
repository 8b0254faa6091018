"""Helpers shared by the CSV/TSV importers.

Uploaded files come from spreadsheet programs: UTF-8 with a BOM, Windows
line endings, cells wrapped in double quotes. Each line is read with
``csv.reader`` so a quoted cell may hold the delimiter; the files we
write go through ``csv.writer`` and read back unchanged.
"""

from __future__ import annotations

import csv
import io
import unicodedata
from dataclasses import dataclass, field
from typing import Generic, Iterable, Sequence, TypeVar

from ..core.exceptions import ImportParseError

BOM = "\ufeff"
COMMENT_MARKER = "#"

T = TypeVar("T")


@dataclass
class ImportResult(Generic[T]):
    """Records parsed from an upload plus a note for every dropped row or cell."""

    records: list[T] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def decode_upload(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportParseError("Không thể đọc file. Vui lòng lưu file dạng CSV UTF-8.") from e
    return raw.lstrip(BOM)


def split_lines(text: str) -> list[str]:
    """Split on newlines, drop blank lines and trailing carriage returns."""
    return [line.rstrip("\r") for line in text.split("\n") if line.strip()]


def is_comment(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_MARKER)


def probe_delimiter(line: str, candidates: tuple[str, ...]) -> str:
    """Return the first candidate present in the line, else the last one."""
    for sep in candidates[:-1]:
        if sep in line:
            return sep
    return candidates[-1]


def tokenize(line: str, sep: str) -> list[str]:
    try:
        cells = next(csv.reader([line], delimiter=sep, skipinitialspace=True), [])
    except csv.Error as e:
        raise ImportParseError(f"Dòng không đọc được: {line[:50]}") from e
    return [cell.strip() for cell in cells]


def write_rows(rows: Iterable[Sequence[str]]) -> str:
    """CSV text for the rows, quoted where a cell needs it, one "\\n" per row."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerows(rows)
    return out.getvalue()


def fold(value: str) -> str:
    """Lower-case and drop Vietnamese diacritics ('Họ và tên' -> 'ho va ten')."""
    decomposed = unicodedata.normalize("NFD", value.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.replace("đ", "d")
