from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.constants import LOGIN_HISTORY_LIMIT, MAX_USER_AGENT_LENGTH
from ..users.capabilities import can_manage_users
from ..core.exceptions import AuthorizationError
from .model import LoginClient, LoginRecord
from .repository import LoginHistoryRepository

logger = logging.getLogger(__name__)


class LoginHistoryService:
    """Use case: record login attempts and show them back.

    Admins see every account (optionally narrowed to one user); everyone
    else only sees their own attempts.
    """

    def __init__(self, history: LoginHistoryRepository):
        self._history = history

    def record(self, user_id: int, *, success: bool, client: Optional[LoginClient] = None) -> None:
        client = client or LoginClient()
        agent = (client.user_agent or "")[:MAX_USER_AGENT_LENGTH] or None
        self._history.record(int(user_id), success=success, client=LoginClient(client.ip_address, agent))
        logger.debug("login attempt recorded user=%s success=%s", user_id, success)

    def recent(self, actor, user_id: Optional[int] = None) -> Sequence[LoginRecord]:
        if can_manage_users(actor.roles):
            return self._history.list_recent(limit=LOGIN_HISTORY_LIMIT, user_id=user_id)
        if user_id is not None and int(user_id) != actor.user_id:
            raise AuthorizationError("Bạn chỉ có thể xem lịch sử đăng nhập của mình")
        return self._history.list_recent(limit=LOGIN_HISTORY_LIMIT, user_id=actor.user_id)
