from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import LoginClient, LoginRecord


class LoginHistoryRepository(Protocol):
    def record(self, user_id: int, *, success: bool, client: LoginClient) -> None:
        raise NotImplementedError

    def list_recent(self, *, limit: int, user_id: Optional[int] = None) -> Sequence[LoginRecord]:
        """Newest attempts first, joined with the user's full name."""

        raise NotImplementedError
