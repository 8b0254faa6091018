from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceReport, NewReport


class ReportRepository(Protocol):
    def list_range(self, start: date, end: date) -> Sequence[AttendanceReport]:
        """Reports dated start..end inclusive, newest first (date desc, then created_at desc)."""

        raise NotImplementedError

    def list_for_dates(self, dates: Iterable[date]) -> Sequence[AttendanceReport]:
        raise NotImplementedError

    def get_by_id(self, report_id: int) -> Optional[AttendanceReport]:
        raise NotImplementedError

    def create(self, report: NewReport) -> int:
        raise NotImplementedError

    def delete(self, report_id: int) -> bool:
        raise NotImplementedError
