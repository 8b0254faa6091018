from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.cache import QueryCache
from ..common.datetime_utils import days_in_month, month_range, previous_month, today_local
from ..common.validators import require_non_empty
from ..core.exceptions import AuthorizationError, ValidationError
from ..permissions.repository import PermissionRepository
from ..users.capabilities import can_manage_duty
from ..users.service import SessionUser
from .importer import parse_duty_schedule
from .model import DutyEntry, DutySchedule
from .repository import DutyRepository
from .template import render_export, render_template

logger = logging.getLogger(__name__)

CACHE_ENTITY = "duty_schedules"


@dataclass(frozen=True)
class DutyImportSummary:
    imported: int
    months: tuple[tuple[int, int], ...]
    skipped: list[str] = field(default_factory=list)


def _check_month(year: int, month: int) -> None:
    if not 1 <= int(month) <= 12 or not 2000 <= int(year) <= 2100:
        raise ValidationError("Tháng không hợp lệ")


def _day_numbers(teacher_name: str, days) -> list[int]:
    if isinstance(days, (str, bytes)) or not isinstance(days, Iterable):
        raise ValidationError(f"Danh sách ngày trực của {teacher_name} không hợp lệ")
    try:
        return sorted({int(d) for d in days})
    except (TypeError, ValueError):
        raise ValidationError(f"Ngày trực của {teacher_name} phải là số")


class DutyService:
    """Use case: boarding duty calendar (view, edit, import, copy)."""

    def __init__(
        self,
        duties: DutyRepository,
        permissions: PermissionRepository,
        cache: Optional[QueryCache] = None,
    ):
        self._duties = duties
        self._permissions = permissions
        self._cache = cache or QueryCache()

    def can_manage(self, actor: SessionUser) -> bool:
        return can_manage_duty(actor.roles, self._permissions.user_group_names(actor.user_id))

    def _require_manager(self, actor: SessionUser) -> None:
        if not self.can_manage(actor):
            raise AuthorizationError("Bạn không có quyền quản lý lịch trực")

    def list_month(self, year: int, month: int) -> Sequence[DutySchedule]:
        _check_month(year, month)
        start, end = month_range(int(year), int(month))
        return self._cache.get_or_load(
            CACHE_ENTITY, (int(year), int(month)), lambda: self._duties.list_range(start, end)
        )

    def list_for_date(self, duty_date: date) -> Sequence[DutySchedule]:
        return self._cache.get_or_load(CACHE_ENTITY, duty_date, lambda: self._duties.list_for_date(duty_date))

    def today(self) -> Sequence[DutySchedule]:
        return self.list_for_date(today_local())

    def add_duty(self, *, actor: SessionUser, teacher_name: str, duty_date: date, notes: Optional[str] = None) -> int:
        self._require_manager(actor)
        entry = DutyEntry(
            teacher_name=require_non_empty(teacher_name, "Tên giáo viên"),
            duty_date=duty_date,
            notes=(notes or "").strip() or None,
        )
        duty_id = self._duties.create(entry, created_by=actor.user_id)
        self._cache.invalidate(CACHE_ENTITY)
        return duty_id

    def update_duty(
        self,
        *,
        actor: SessionUser,
        duty_id: int,
        teacher_name: str,
        duty_date: date,
        notes: Optional[str] = None,
    ) -> None:
        self._require_manager(actor)
        if not self._duties.get_by_id(int(duty_id)):
            raise ValidationError("Lịch trực không tồn tại")
        entry = DutyEntry(
            teacher_name=require_non_empty(teacher_name, "Tên giáo viên"),
            duty_date=duty_date,
            notes=(notes or "").strip() or None,
        )
        self._duties.update(int(duty_id), entry)
        self._cache.invalidate(CACHE_ENTITY)

    def delete_duty(self, *, actor: SessionUser, duty_id: int) -> None:
        self._require_manager(actor)
        if not self._duties.delete(int(duty_id)):
            raise ValidationError("Lịch trực không tồn tại")
        self._cache.invalidate(CACHE_ENTITY)

    def _replace(self, actor: SessionUser, entries: Sequence[DutyEntry], months: Iterable[tuple[int, int]]) -> int:
        months = sorted(set(months))
        count = self._duties.replace_months(months, entries, created_by=actor.user_id)
        self._cache.invalidate(CACHE_ENTITY)
        logger.info("duty months %s replaced with %d entries by user %s", months, count, actor.user_id)
        return count

    def import_schedule(self, *, actor: SessionUser, raw: bytes | str, year: int, month: int) -> DutyImportSummary:
        """Replace every month touched by the file with the file's entries."""
        self._require_manager(actor)
        _check_month(year, month)
        result = parse_duty_schedule(raw, year=int(year), month=int(month))
        months = sorted({e.month for e in result.records})
        imported = self._replace(actor, result.records, months)
        return DutyImportSummary(imported=imported, months=tuple(months), skipped=result.skipped)

    def save_month(self, *, actor: SessionUser, year: int, month: int, assignments: Mapping[str, Iterable[int]]) -> int:
        """Replace one month with ``{teacher_name: [day, ...]}``; an empty mapping clears it."""
        self._require_manager(actor)
        _check_month(year, month)
        last_day = days_in_month(int(year), int(month))

        entries = []
        for teacher_name, days in assignments.items():
            name = require_non_empty(teacher_name, "Tên giáo viên")
            for day in _day_numbers(name, days):
                if not 1 <= day <= last_day:
                    raise ValidationError(f"Tháng {month}/{year} không có ngày {day}")
                entries.append(DutyEntry(teacher_name=name, duty_date=date(int(year), int(month), day)))
        return self._replace(actor, entries, [(int(year), int(month))])

    def copy_previous_month(self, *, actor: SessionUser, year: int, month: int) -> int:
        """Copy last month's assignments onto the same day numbers of this month.

        Days this month does not have are dropped.
        """
        self._require_manager(actor)
        _check_month(year, month)
        prev_year, prev_month = previous_month(int(year), int(month))
        previous = self.list_month(prev_year, prev_month)
        if not previous:
            raise ValidationError(f"Tháng {prev_month}/{prev_year} chưa có lịch trực để sao chép.")

        assignments: dict[str, set[int]] = {}
        last_day = days_in_month(int(year), int(month))
        for duty in previous:
            if duty.duty_date.day <= last_day:
                assignments.setdefault(duty.teacher_name, set()).add(duty.duty_date.day)
        return self.save_month(actor=actor, year=year, month=month, assignments=assignments)

    def template_csv(self, year: int, month: int) -> str:
        _check_month(year, month)
        return render_template(int(year), int(month))

    def export_csv(self, year: int, month: int) -> str:
        return render_export(int(year), int(month), self.list_month(year, month))
