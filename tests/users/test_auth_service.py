from __future__ import annotations

from dataclasses import replace

import pytest

from src.boarding_management.boarding_management.core.enums import Role
from src.boarding_management.boarding_management.core.exceptions import AuthenticationError
from src.boarding_management.boarding_management.users.service import LOGIN_FAILED_MESSAGE, AuthService, SessionUser


@pytest.fixture
def auth(users_repo):
    users_repo.add(
        email="gvcn6a@school.edu.vn",
        username="gvcn6a",
        phone="0912345678",
        full_name="Nguyễn Văn An",
        password="matkhau123",
        class_id="6a",
        roles={Role.TEACHER, Role.CLASS_TEACHER},
    )
    return AuthService(users_repo)


@pytest.mark.parametrize("identifier", ["gvcn6a@school.edu.vn", "gvcn6a", "0912345678", "  gvcn6a  "])
def test_login_by_email_username_or_phone(auth, identifier):
    user = auth.authenticate(identifier, "matkhau123")

    assert user.email == "gvcn6a@school.edu.vn"
    assert user.class_id == "6a"
    assert user.roles == frozenset({Role.TEACHER, Role.CLASS_TEACHER})


@pytest.mark.parametrize(
    "identifier, password",
    [
        ("gvcn6a", "sai-mat-khau"),
        ("khong-ton-tai", "matkhau123"),
        ("ai@school.edu.vn", "matkhau123"),
        ("", "matkhau123"),
        ("gvcn6a", ""),
    ],
)
def test_every_failure_has_the_same_message(auth, identifier, password):
    with pytest.raises(AuthenticationError) as exc:
        auth.authenticate(identifier, password)

    assert str(exc.value) == LOGIN_FAILED_MESSAGE


def test_inactive_and_corrupted_accounts_are_rejected(users_repo, auth):
    user = users_repo.get_by_email("gvcn6a@school.edu.vn")
    users_repo.users[user.user_id] = replace(user, password_hash="CHANGE_ME")
    with pytest.raises(AuthenticationError):
        auth.authenticate("gvcn6a", "matkhau123")

    users_repo.add(email="nghi@school.edu.vn", full_name="Đã Nghỉ", password="matkhau123", is_active=False)
    with pytest.raises(AuthenticationError):
        auth.authenticate("nghi@school.edu.vn", "matkhau123")


def test_session_round_trip():
    user = SessionUser(
        user_id=3, full_name="Kế Toán", email="kt@school.edu.vn", roles=frozenset({Role.ACCOUNTANT})
    )

    data = user.to_session()

    assert data["roles"] == ["accountant"]
    assert SessionUser.from_session(data) == user
    assert SessionUser.from_session({}) is None
    assert SessionUser.from_session({**data, "roles": ["accountant", "ghost"]}).roles == frozenset({Role.ACCOUNTANT})
