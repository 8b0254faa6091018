"""Spreadsheet export of the user list with per-feature grants."""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Callable, Mapping, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from ..core.constants import MIN_COLUMN_WIDTH, class_name
from ..core.enums import Feature
from ..permissions.model import FeatureGrant
from .model import User

logger = logging.getLogger(__name__)

SHEET_NAME = "Danh sách người dùng"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

GrantsLoader = Callable[[], Mapping[int, Sequence[FeatureGrant]]]


def login_identifier(user: User) -> str:
    """Username first, then phone, then e-mail."""
    if user.username:
        return user.username
    if user.phone:
        return f"SĐT: {user.phone}"
    return f"Email: {user.email}"


def export_filename(today: date) -> str:
    return f"Danh_sach_nguoi_dung_{today.strftime('%d-%m-%Y')}.xlsx"


def _permission_columns(grants: Sequence[FeatureGrant]) -> dict[str, str]:
    by_feature = {g.feature: g for g in grants}
    out: dict[str, str] = {}
    for feature in Feature:
        grant = by_feature.get(feature)
        labels = grant.action_labels() if grant else []
        out[f"Quyền: {feature.label}"] = ", ".join(labels) if labels else "-"
    return out


def build_rows(users: Sequence[User], grants_by_user: Mapping[int, Sequence[FeatureGrant]]) -> list[dict]:
    rows = []
    for index, user in enumerate(users, start=1):
        row = {
            "STT": index,
            "Họ và tên": user.full_name,
            "Tài khoản đăng nhập": login_identifier(user),
            "Email": user.email,
            "Số điện thoại": user.phone or "",
            "Vai trò": ", ".join(r.label for r in sorted(user.roles, key=lambda r: r.value)),
            "Lớp chủ nhiệm": class_name(user.class_id),
        }
        row.update(_permission_columns(grants_by_user.get(user.user_id, ())))
        rows.append(row)
    return rows


def _load_grants(loader: Optional[GrantsLoader]) -> Mapping[int, Sequence[FeatureGrant]]:
    if loader is None:
        return {}
    try:
        return loader()
    except Exception:
        # Xuất tiếp, chỉ thiếu cột quyền
        logger.exception("failed to load user permissions for export")
        return {}


def export_users_xlsx(users: Sequence[User], *, load_grants: Optional[GrantsLoader] = None) -> io.BytesIO:
    rows = build_rows(users, _load_grants(load_grants))
    df = pd.DataFrame(rows)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        sheet = writer.sheets[SHEET_NAME]
        for i, header in enumerate(df.columns, start=1):
            sheet.column_dimensions[get_column_letter(i)].width = max(len(str(header)), MIN_COLUMN_WIDTH)

    output.seek(0)
    return output
