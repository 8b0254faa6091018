from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    ADMIN = "admin"
    TEACHER = "teacher"
    CLASS_TEACHER = "class_teacher"
    ACCOUNTANT = "accountant"
    KITCHEN = "kitchen"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    Role.ADMIN: "Quản trị viên",
    Role.TEACHER: "Giáo viên",
    Role.CLASS_TEACHER: "GVCN",
    Role.ACCOUNTANT: "Kế toán",
    Role.KITCHEN: "Nhà bếp",
}


class Feature(str, Enum):
    """Chức năng của hệ thống có thể phân quyền."""

    DASHBOARD = "dashboard"
    STUDENTS = "students"
    EVENING_STUDY = "evening_study"
    BOARDING = "boarding"
    MEALS = "meals"
    STATISTICS = "statistics"
    USER_MANAGEMENT = "user_management"
    SETTINGS = "settings"

    @property
    def label(self) -> str:
        return _FEATURE_LABELS[self]


_FEATURE_LABELS = {
    Feature.DASHBOARD: "Tổng quan",
    Feature.STUDENTS: "Học sinh",
    Feature.EVENING_STUDY: "Tự học tối",
    Feature.BOARDING: "Nội trú",
    Feature.MEALS: "Báo cơm",
    Feature.STATISTICS: "Thống kê",
    Feature.USER_MANAGEMENT: "Quản lý TK",
    Feature.SETTINGS: "Cài đặt",
}


class ReportType(str, Enum):
    """Loại báo cáo sỹ số."""

    EVENING_STUDY = "evening_study"
    BOARDING = "boarding"
    MEAL = "meal"


class BoardingSession(str, Enum):
    MORNING_EXERCISE = "morning_exercise"
    NOON_NAP = "noon_nap"
    EVENING_SLEEP = "evening_sleep"
    RANDOM = "random"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class AbsencePermission(str, Enum):
    """Vắng có phép (P) / không phép (KP)."""

    PERMITTED = "P"
    NOT_PERMITTED = "KP"
