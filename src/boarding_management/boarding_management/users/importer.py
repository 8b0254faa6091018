"""Bulk account import from a CSV/TSV export.

Columns are positional: STT, Email, Mật khẩu, Họ và tên, Số điện thoại,
Lớp chủ nhiệm. Each data row is validated on its own; a bad row is
reported with its line number and the rest of the file still imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..common.delimited import BOM, decode_upload, is_comment, probe_delimiter, split_lines, tokenize, write_rows
from ..common.validators import (
    is_valid_email,
    is_valid_name,
    is_valid_phone,
    sanitize_csv_field,
)
from ..core.constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH, find_class_id
from ..core.enums import Role
from ..core.exceptions import ImportParseError
from .model import NewUser

TEMPLATE_FILENAME = "mau_danh_sach_tai_khoan.csv"
TEMPLATE_HEADER = ("STT", "Email", "Mật khẩu", "Họ và tên", "Số điện thoại", "Lớp chủ nhiệm")
_TEMPLATE_EXAMPLES = (
    ("1", "giaovien1@school.edu.vn", "matkhau123", "Nguyễn Văn An", "0912345678", "6A"),
    ("2", "giaovien2@school.edu.vn", "matkhau123", "Trần Thị Bình", "0923456789", ""),
)


@dataclass(frozen=True)
class ParsedAccount:
    line_no: int
    account: NewUser


@dataclass
class AccountImportResult:
    accounts: list[ParsedAccount] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    created: int = 0

    @property
    def failed(self) -> int:
        return len(self.errors)


def _roles_for(class_id: str | None) -> frozenset[Role]:
    # Tài khoản nhập hàng loạt mặc định là Giáo viên, có lớp thì thêm GVCN
    if class_id:
        return frozenset({Role.TEACHER, Role.CLASS_TEACHER})
    return frozenset({Role.TEACHER})


def parse_accounts(raw: bytes | str) -> AccountImportResult:
    lines = [line for line in split_lines(decode_upload(raw)) if not is_comment(line)]
    if len(lines) < 2:
        raise ImportParseError("File không có dữ liệu để nhập")

    sep = probe_delimiter(lines[0], ("\t", ";", ","))
    result = AccountImportResult()

    for i, line in enumerate(lines[1:], start=1):
        prefix = f"Dòng {i + 1}"
        values = [sanitize_csv_field(v) for v in tokenize(line, sep)]
        if len(values) < 4:
            result.errors.append(f"{prefix}: Thiếu dữ liệu")
            continue

        email = values[1]
        password = values[2]
        full_name = values[3]
        phone = values[4] if len(values) > 4 and values[4] else None
        class_str = values[5] if len(values) > 5 else ""

        if not email or not password or not full_name:
            result.errors.append(f"{prefix}: Thiếu email, mật khẩu hoặc họ tên")
            continue
        if not is_valid_email(email):
            result.errors.append(f"{prefix}: Email không hợp lệ")
            continue
        if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
            result.errors.append(
                f"{prefix}: Mật khẩu phải có từ {MIN_PASSWORD_LENGTH} đến {MAX_PASSWORD_LENGTH} ký tự"
            )
            continue
        if not is_valid_name(full_name):
            result.errors.append(f"{prefix}: Họ tên không hợp lệ (2-100 ký tự, chỉ chữ cái)")
            continue
        if not is_valid_phone(phone):
            result.errors.append(f"{prefix}: Số điện thoại không hợp lệ (10 số, bắt đầu bằng 0)")
            continue

        class_id = find_class_id(class_str)
        result.accounts.append(
            ParsedAccount(
                line_no=i + 1,
                account=NewUser(
                    email=email,
                    password=password,
                    full_name=full_name,
                    phone=phone,
                    class_id=class_id,
                    roles=_roles_for(class_id),
                ),
            )
        )

    return result


def render_account_template() -> str:
    guide = (
        "# HƯỚNG DẪN CỘT: A: STT | B: Email | C: Mật khẩu (tối thiểu 6 ký tự) | D: Họ và tên"
        " | E: Số điện thoại | F: Lớp chủ nhiệm (nếu là GVCN)\n"
    )
    return BOM + guide + write_rows([TEMPLATE_HEADER, *_TEMPLATE_EXAMPLES])
