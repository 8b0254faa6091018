"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from __future__ import annotations

DEFAULT_SESSION_DAYS = 7
DEFAULT_MEAL_GROUP = "M1"
DEFAULT_TEMPLATE_ROWS = 10
RICE_PER_STUDENT_KG = 0.2
MIN_COLUMN_WIDTH = 15
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 100
DEFAULT_CACHE_TTL_SECONDS = 30
# Lịch sử báo cáo mặc định: 30 ngày gần nhất, tối đa một năm mỗi lần tải
REPORT_HISTORY_DAYS = 30
MAX_REPORT_RANGE_DAYS = 366
# Lịch sử đăng nhập: chỉ trả về các lần gần nhất
LOGIN_HISTORY_LIMIT = 100
MAX_USER_AGENT_LENGTH = 512

# Biểu tượng được phép gán cho một chức năng trong menu
FEATURE_ICONS = (
    "LayoutDashboard",
    "Users",
    "BookOpen",
    "Home",
    "UtensilsCrossed",
    "BarChart3",
    "UserCog",
    "Settings",
    "Shield",
)
DEFAULT_FEATURE_ICON = "Settings"

# Nhóm quyền được phép quản lý lịch trực (ngoài Admin)
DUTY_MANAGER_GROUP = "Quản lí nội trú"

# Bảng tra cứu lớp học: mã lớp -> (tên hiển thị, khối)
CLASSES: dict[str, tuple[str, int]] = {
    "6a": ("6A", 6),
    "6b": ("6B", 6),
    "7a": ("7A", 7),
    "7b": ("7B", 7),
    "8a": ("8A", 8),
    "8b": ("8B", 8),
    "8c": ("8C", 8),
    "9a": ("9A", 9),
    "9b": ("9B", 9),
    "10a": ("10A", 10),
    "10b": ("10B", 10),
    "11a": ("11A", 11),
    "11b": ("11B", 11),
    "12a": ("12A", 12),
    "12b": ("12B", 12),
}


def class_name(class_id: str | None) -> str:
    """Resolve a class id to its display name, falling back to the raw id."""
    if not class_id:
        return ""
    entry = CLASSES.get(class_id)
    return entry[0] if entry else class_id


def find_class_id(value: str | None) -> str | None:
    """Match free text ('6 A', '6a', '6A') against the class table."""
    if not value or not value.strip():
        return None
    normalized = "".join(value.split()).lower()
    for cid, (name, _grade) in CLASSES.items():
        if cid == normalized or name.lower() == normalized:
            return cid
    return None
