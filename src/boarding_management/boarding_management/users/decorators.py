from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import session

from ..common.http import json_fail
from ..core.enums import Role
from .service import SessionUser

SESSION_KEY = "auth"


def current_user() -> Optional[SessionUser]:
    return SessionUser.from_session(session.get(SESSION_KEY))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            return json_fail("Vui lòng đăng nhập để tiếp tục!", 401)
        return view(*args, **kwargs)

    return wrapper


def capability_required(predicate: Callable[[frozenset[Role]], bool]):
    """Guard a view with a capability predicate over the caller's role set."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                return json_fail("Vui lòng đăng nhập để tiếp tục!", 401)
            if not predicate(user.roles):
                return json_fail("Bạn không có quyền truy cập chức năng này", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator
