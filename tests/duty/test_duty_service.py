from __future__ import annotations

from datetime import date

import pytest

from src.boarding_management.boarding_management.core.constants import DUTY_MANAGER_GROUP
from src.boarding_management.boarding_management.core.enums import Role
from src.boarding_management.boarding_management.core.exceptions import AuthorizationError, ValidationError

JANUARY_FILE = "STT,Họ và tên,1,2,3\n1,Nguyễn Văn A,x,,x\n2,Trần Thị B,,x,"


@pytest.fixture
def duty_service(container):
    return container.duty_service


@pytest.fixture
def admin(make_actor):
    return make_actor(Role.ADMIN, user_id=1, full_name="Quản trị")


def test_import_replaces_only_the_imported_month(duty_service, duty_repo, admin):
    duty_repo.seed("Cũ", date(2024, 1, 20))
    duty_repo.seed("Tháng Hai", date(2024, 2, 5))

    summary = duty_service.import_schedule(actor=admin, raw=JANUARY_FILE, year=2024, month=1)

    assert summary.imported == 3
    assert summary.months == ((2024, 1),)
    assert duty_repo.pairs() == [
        ("Nguyễn Văn A", date(2024, 1, 1)),
        ("Nguyễn Văn A", date(2024, 1, 3)),
        ("Tháng Hai", date(2024, 2, 5)),
        ("Trần Thị B", date(2024, 1, 2)),
    ]


def test_reimporting_the_same_file_is_idempotent(duty_service, duty_repo, admin):
    duty_service.import_schedule(actor=admin, raw=JANUARY_FILE, year=2024, month=1)
    first = duty_repo.pairs()

    duty_service.import_schedule(actor=admin, raw=JANUARY_FILE, year=2024, month=1)

    assert duty_repo.pairs() == first
    assert len(duty_repo.replace_calls) == 2


def test_import_reports_dropped_days(duty_service, admin):
    summary = duty_service.import_schedule(
        actor=admin, raw="STT,Họ và tên,30,31\n1,Nguyễn Văn A,x,x", year=2024, month=4
    )

    assert summary.imported == 1
    assert len(summary.skipped) == 1


def test_list_month_sees_changes_after_import(duty_service, admin):
    assert list(duty_service.list_month(2024, 1)) == []

    duty_service.import_schedule(actor=admin, raw=JANUARY_FILE, year=2024, month=1)

    assert len(duty_service.list_month(2024, 1)) == 3
    assert [d.teacher_name for d in duty_service.list_for_date(date(2024, 1, 2))] == ["Trần Thị B"]


def test_teacher_without_manager_group_cannot_import(duty_service, make_actor):
    teacher = make_actor(Role.TEACHER, user_id=5)

    with pytest.raises(AuthorizationError):
        duty_service.import_schedule(actor=teacher, raw=JANUARY_FILE, year=2024, month=1)


def test_member_of_manager_group_can_edit(duty_service, permissions_repo, make_actor):
    group_id = permissions_repo.create_group(name=DUTY_MANAGER_GROUP, description=None)
    permissions_repo.replace_user_groups(5, [group_id])
    teacher = make_actor(Role.TEACHER, user_id=5)

    duty_id = duty_service.add_duty(actor=teacher, teacher_name="Nguyễn Văn A", duty_date=date(2024, 1, 9))

    assert duty_service.can_manage(teacher)
    assert [d.duty_id for d in duty_service.list_month(2024, 1)] == [duty_id]


def test_update_and_delete_duty(duty_service, duty_repo, admin):
    duty_id = duty_repo.seed("Nguyễn Văn A", date(2024, 1, 9))

    duty_service.update_duty(actor=admin, duty_id=duty_id, teacher_name="Trần Thị B", duty_date=date(2024, 1, 10))
    assert duty_repo.pairs() == [("Trần Thị B", date(2024, 1, 10))]

    duty_service.delete_duty(actor=admin, duty_id=duty_id)
    assert duty_repo.pairs() == []

    with pytest.raises(ValidationError):
        duty_service.delete_duty(actor=admin, duty_id=duty_id)


def test_copy_previous_month_drops_missing_days(duty_service, duty_repo, admin):
    duty_repo.seed("Nguyễn Văn A", date(2024, 1, 5))
    duty_repo.seed("Nguyễn Văn A", date(2024, 1, 30))
    duty_repo.seed("Trần Thị B", date(2024, 1, 31))
    duty_repo.seed("Cũ", date(2024, 2, 14))

    copied = duty_service.copy_previous_month(actor=admin, year=2024, month=2)

    assert copied == 1
    feb = [(d.teacher_name, d.duty_date) for d in duty_service.list_month(2024, 2)]
    assert feb == [("Nguyễn Văn A", date(2024, 2, 5))]


def test_copy_previous_month_needs_a_source(duty_service, admin):
    with pytest.raises(ValidationError, match="chưa có lịch trực"):
        duty_service.copy_previous_month(actor=admin, year=2024, month=1)


def test_save_month_replaces_and_clears(duty_service, duty_repo, admin):
    duty_service.save_month(actor=admin, year=2024, month=1, assignments={"Nguyễn Văn A": [1, 2]})
    assert len(duty_repo.pairs()) == 2

    duty_service.save_month(actor=admin, year=2024, month=1, assignments={})
    assert duty_repo.pairs() == []


def test_save_month_rejects_day_outside_month(duty_service, admin):
    with pytest.raises(ValidationError):
        duty_service.save_month(actor=admin, year=2023, month=2, assignments={"Nguyễn Văn A": [29]})


@pytest.mark.parametrize("days", [["mot"], 5, "12", [None], [[1]]])
def test_save_month_rejects_malformed_days(duty_service, duty_repo, admin, days):
    duty_repo.seed("Cũ", date(2024, 1, 20))

    with pytest.raises(ValidationError):
        duty_service.save_month(actor=admin, year=2024, month=1, assignments={"Nguyễn Văn A": days})

    assert duty_repo.pairs() == [("Cũ", date(2024, 1, 20))]


def test_export_contains_the_month(duty_service, duty_repo):
    duty_repo.seed("Nguyễn Văn A", date(2024, 1, 2))

    text = duty_service.export_csv(2024, 1)

    assert "1,Nguyễn Văn A,,x" in text


def test_exported_month_imports_back_with_commas_in_names(duty_service, duty_repo, admin):
    duty_repo.seed("Nguyễn Văn A, GVCN", date(2024, 1, 3))
    duty_repo.seed("Trần Thị B", date(2024, 1, 4))
    exported = duty_service.export_csv(2024, 1)

    duty_service.import_schedule(actor=admin, raw=exported.encode("utf-8"), year=2024, month=1)

    assert duty_repo.pairs() == [
        ("Nguyễn Văn A, GVCN", date(2024, 1, 3)),
        ("Trần Thị B", date(2024, 1, 4)),
    ]
