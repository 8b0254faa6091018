from __future__ import annotations

import io
from datetime import date

import pytest
from openpyxl import load_workbook

from src.boarding_management.boarding_management.core.enums import Feature, Role
from src.boarding_management.boarding_management.students.model import NewStudent
from src.boarding_management.boarding_management.users.service import LOGIN_FAILED_MESSAGE


@pytest.fixture
def teacher_user(users_repo):
    return users_repo.add(
        email="gv@school.edu.vn",
        username="giaovien",
        phone="0987654321",
        full_name="Giáo Viên",
        password="matkhau123",
        roles={Role.TEACHER},
    )


def test_login_me_logout(client, login, admin_user):
    resp = login("admin", "admin123")
    assert resp.status_code == 200
    assert resp.get_json()["user"]["roles"] == ["admin"]

    me = client.get("/api/auth/me").get_json()
    assert me["user"]["email"] == "admin@school.edu.vn"
    assert me["capabilities"]["manage_users"] is True

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_failed_login_is_opaque(login, teacher_user):
    wrong_password = login("giaovien", "sai")
    unknown_user = login("khong-co", "matkhau123")

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.get_json()["message"] == unknown_user.get_json()["message"] == LOGIN_FAILED_MESSAGE


def test_login_by_phone_via_form(client, teacher_user):
    resp = client.post("/api/auth/login", data={"identifier": "0987654321", "password": "matkhau123"})

    assert resp.status_code == 200


@pytest.mark.parametrize(
    "method, url",
    [
        ("get", "/api/users"),
        ("get", "/api/students"),
        ("get", "/api/duty"),
        ("get", "/api/reports"),
        ("get", "/api/teachers"),
        ("get", "/api/permission-groups"),
    ],
)
def test_anonymous_requests_get_401(client, method, url):
    resp = getattr(client, method)(url)

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


@pytest.mark.parametrize(
    "method, url",
    [
        ("get", "/api/users"),
        ("get", "/api/users/export.xlsx"),
        ("post", "/api/permission-groups"),
        ("delete", "/api/students"),
        ("get", "/api/reports/meal-stats"),
    ],
)
def test_teacher_gets_403_on_admin_features(client, login, teacher_user, method, url):
    login("giaovien", "matkhau123")

    resp = getattr(client, method)(url)

    assert resp.status_code == 403


def test_teacher_cannot_import_duty_without_group(client, login, teacher_user):
    login("giaovien", "matkhau123")

    resp = client.post(
        "/api/duty/import",
        data={"file": (io.BytesIO(b"STT,H\xe1\xbb\x8d v\xc3\xa0 t\xc3\xaan,1\n1,A,x"), "lich.csv"), "year": "2024", "month": "1"},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 403


def test_duty_import_and_month_view(client, login, admin_user):
    login("admin", "admin123")
    body = "STT,Họ và tên,1,2 (CN)\n1,Nguyễn Văn A,x,\n".encode("utf-8")

    resp = client.post(
        "/api/duty/import",
        data={"file": (io.BytesIO(body), "lich.csv"), "year": "2024", "month": "1"},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert resp.get_json()["imported"] == 1
    assert resp.get_json()["months"] == ["1/2024"]

    month = client.get("/api/duty?year=2024&month=1").get_json()
    assert month["can_manage"] is True
    assert [(d["teacher_name"], d["duty_date"]) for d in month["duties"]] == [("Nguyễn Văn A", "2024-01-01")]

    day = client.get("/api/duty/date/2024-01-01").get_json()
    assert len(day["duties"]) == 1
    assert client.get("/api/duty/date/not-a-date").status_code == 400


def test_duty_import_parse_error_is_400(client, login, admin_user):
    login("admin", "admin123")

    resp = client.post(
        "/api/duty/import?year=2024&month=1",
        data={"file": (io.BytesIO(b"no header here"), "lich.csv")},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 400
    assert "STT" in resp.get_json()["message"]


def test_duty_template_download(client, login, teacher_user):
    login("giaovien", "matkhau123")

    resp = client.get("/api/duty/template.csv?year=2024&month=2")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "mau_lich_truc_thang_2_2024.csv" in resp.headers["Content-Disposition"]
    assert resp.get_data(as_text=True).lstrip("\ufeff").startswith("Lịch trực tháng 2/2024")


def test_student_import_and_list(client, login, admin_user):
    login("admin", "admin123")
    roster = "\n".join(
        [
            "STT,Họ và tên,Ngày sinh,Giới tính,Lớp,CCCD,SĐT,Địa chỉ,Phòng ở,Mâm ăn",
            "1,Nguyễn Văn An,15/05/2010,Nam,6A,,,,P101,M1",
            "2,,,,6A,,,,,",
        ]
    ).encode("utf-8")

    resp = client.post(
        "/api/students/import",
        data={"file": (io.BytesIO(roster), "hs.csv")},
        content_type="multipart/form-data",
    )
    assert resp.get_json()["added"] == 1
    assert len(resp.get_json()["skipped"]) == 1

    students = client.get("/api/students").get_json()["students"]
    assert [s["name"] for s in students] == ["Nguyễn Văn An"]


def test_user_export_download(client, login, admin_user, teacher_user):
    login("admin", "admin123")

    resp = client.get("/api/users/export.xlsx")

    assert resp.status_code == 200
    assert "Danh_sach_nguoi_dung_" in resp.headers["Content-Disposition"]
    sheet = load_workbook(io.BytesIO(resp.data)).active
    assert {sheet["C2"].value, sheet["C3"].value} == {"admin", "giaovien"}


def test_group_assignment_round_trip(client, login, admin_user, teacher_user):
    login("admin", "admin123")
    group_id = client.post("/api/permission-groups", json={"name": "Quản lí nội trú"}).get_json()["id"]

    client.put(f"/api/users/{teacher_user.user_id}/groups", json={"group_ids": [group_id]})
    assert client.get(f"/api/users/{teacher_user.user_id}/groups").get_json()["group_ids"] == [group_id]

    client.put(f"/api/users/{teacher_user.user_id}/groups", json={"group_ids": []})
    assert client.get(f"/api/users/{teacher_user.user_id}/groups").get_json()["group_ids"] == []


def test_meal_report_and_stats(client, login, admin_user, students_repo):
    student_id = students_repo.create(NewStudent(name="Nguyễn Văn An", class_id="6a", room="P101", is_boarding=True))
    students_repo.create(NewStudent(name="Trần Thị Bình", class_id="6a", room="P102", is_boarding=True))
    login("admin", "admin123")

    resp = client.post(
        "/api/reports",
        json={
            "type": "meal",
            "meal_type": "lunch",
            "date": "2024-03-05",
            "class_id": "6a",
            "absent_students": [{"student_id": student_id, "permission": "P"}],
        },
    )
    assert resp.status_code == 201

    stats = client.get("/api/reports/meal-stats?date=2024-03-05").get_json()["stats"]
    assert stats["lunch"]["present_count"] == 1
    assert stats["lunch"]["absent_students"][0]["name"] == "Nguyễn Văn An"
    assert stats["rice_kg"] == 0.2

    listed = client.get("/api/reports?date=2024-03-05").get_json()["reports"]
    assert listed[0]["report_date"] == date(2024, 3, 5).isoformat()


def test_invalid_report_payload(client, login, admin_user):
    login("admin", "admin123")

    assert client.post("/api/reports", json={"type": "picnic"}).status_code == 400
    assert client.post("/api/reports", json={"type": "meal", "date": "05/03/2024"}).status_code == 400


def test_teacher_directory_persists(client, login, admin_user, teacher_store):
    login("admin", "admin123")

    created = client.post("/api/teachers", json={"name": "Bùi Thị Lan", "subject": "Văn"})
    assert created.status_code == 201
    teacher_id = created.get_json()["teacher"]["teacher_id"]

    assert teacher_store.path.exists()
    assert [t["name"] for t in client.get("/api/teachers").get_json()["teachers"]] == ["Bùi Thị Lan"]

    assert client.delete(f"/api/teachers/{teacher_id}").status_code == 200
    assert client.delete(f"/api/teachers/{teacher_id}").status_code == 400


def test_save_month_with_bad_days_is_400(client, login, admin_user):
    login("admin", "admin123")

    resp = client.put("/api/duty/month", json={"year": 2024, "month": 1, "assignments": {"Nguyễn Văn A": ["hai"]}})

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_report_history_range(client, login, admin_user):
    login("admin", "admin123")

    listed = client.get("/api/reports?from=2024-03-01&to=2024-03-31").get_json()
    assert (listed["start"], listed["end"]) == ("2024-03-01", "2024-03-31")
    assert listed["reports"] == []

    assert client.get("/api/reports?from=2024-03-31&to=2024-03-01").status_code == 400
    assert client.get("/api/reports?from=hom-qua").status_code == 400


def test_login_history_records_the_client(client, login, admin_user, teacher_user):
    client.post(
        "/api/auth/login",
        json={"identifier": "giaovien", "password": "sai"},
        headers={"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Firefox/121.0"},
    )
    client.post(
        "/api/auth/login",
        json={"identifier": "giaovien", "password": "matkhau123"},
        headers={"User-Agent": "Mozilla/5.0 (Linux; Android 14) Chrome/120.0 Mobile Safari/537.36"},
    )

    own = client.get("/api/login-history").get_json()["history"]
    assert [(r["success"], r["device"]) for r in own] == [(True, "Di động"), (False, "Máy tính")]
    assert own[0]["ip_address"] == "127.0.0.1"
    assert client.get(f"/api/login-history?user_id={admin_user.user_id}").status_code == 403

    login("admin", "admin123")
    everyone = client.get("/api/login-history").get_json()["history"]
    assert [r["full_name"] for r in everyone] == ["Quản trị hệ thống", "Giáo Viên", "Giáo Viên"]
    assert client.get("/api/login-history?user_id=abc").status_code == 400


def test_feature_registry_endpoints(client, login, admin_user, teacher_user, features_repo):
    features_repo.add(Feature.DASHBOARD, display_order=1)
    login("admin", "admin123")

    created = client.post("/api/features", json={"code": "meals", "label": "Báo cơm", "display_order": 5})
    assert created.status_code == 201
    feature_id = created.get_json()["id"]
    assert client.post("/api/features", json={"code": "library", "label": "Thư viện"}).status_code == 400

    toggled = client.post(f"/api/features/{feature_id}/toggle").get_json()
    assert toggled["is_active"] is False

    listed = client.get("/api/features").get_json()["features"]
    assert [f["code"] for f in listed] == ["dashboard"]
    every = client.get("/api/features?all=1").get_json()["features"]
    assert [(f["code"], f["is_active"]) for f in every] == [("dashboard", True), ("meals", False)]

    resp = client.put(f"/api/features/{feature_id}", json={"code": "meals", "label": "Báo cơm trưa", "is_active": True})
    assert resp.status_code == 200
    assert client.delete(f"/api/features/{feature_id}").status_code == 200

    login("giaovien", "matkhau123")
    assert client.get("/api/features").status_code == 200
    assert client.post("/api/features", json={"code": "meals", "label": "Báo cơm"}).status_code == 403
