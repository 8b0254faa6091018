from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import DutyEntry, DutySchedule


class DutyRepository(Protocol):
    def list_range(self, start: date, end: date) -> Sequence[DutySchedule]:
        """Entries with start <= duty_date <= end, ordered by date."""

        raise NotImplementedError

    def list_for_date(self, duty_date: date) -> Sequence[DutySchedule]:
        raise NotImplementedError

    def get_by_id(self, duty_id: int) -> Optional[DutySchedule]:
        raise NotImplementedError

    def create(self, entry: DutyEntry, *, created_by: Optional[int]) -> int:
        raise NotImplementedError

    def update(self, duty_id: int, entry: DutyEntry) -> bool:
        raise NotImplementedError

    def delete(self, duty_id: int) -> bool:
        raise NotImplementedError

    def replace_months(
        self,
        months: Iterable[tuple[int, int]],
        entries: Sequence[DutyEntry],
        *,
        created_by: Optional[int],
    ) -> int:
        """Delete every entry in the given (year, month)s, then insert ``entries``.

        Both steps run in one transaction.
        """

        raise NotImplementedError
