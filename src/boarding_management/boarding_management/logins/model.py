from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

UNKNOWN = "Không xác định"

# Edge and Opera also announce Chrome, and Chrome also announces Safari
_BROWSERS = (
    ("Edg", "Edge"),
    ("OPR", "Opera"),
    ("Opera", "Opera"),
    ("Firefox", "Firefox"),
    ("Chrome", "Chrome"),
    ("Safari", "Safari"),
)


def browser_name(user_agent: Optional[str]) -> str:
    if not user_agent:
        return UNKNOWN
    for marker, name in _BROWSERS:
        if marker in user_agent:
            return name
    return "Trình duyệt khác"


def device_type(user_agent: Optional[str]) -> str:
    if not user_agent:
        return UNKNOWN
    if "Tablet" in user_agent or "iPad" in user_agent:
        return "Máy tính bảng"
    if "Mobile" in user_agent or "Android" in user_agent:
        return "Di động"
    return "Máy tính"


@dataclass(frozen=True)
class LoginClient:
    """Where a login attempt came from."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class LoginRecord:
    record_id: int
    user_id: int
    login_at: datetime
    success: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def browser(self) -> str:
        return browser_name(self.user_agent)

    @property
    def device(self) -> str:
        return device_type(self.user_agent)
