from __future__ import annotations

from datetime import date

import pytest

from src.boarding_management.boarding_management.core.exceptions import ImportParseError
from src.boarding_management.boarding_management.duty.importer import parse_duty_schedule
from src.boarding_management.boarding_management.duty.model import DutySchedule
from src.boarding_management.boarding_management.duty.template import (
    export_filename,
    render_export,
    render_template,
    template_filename,
)


def test_template_layout_for_leap_february():
    text = render_template(2024, 2, rows=2)
    assert text.startswith("\ufeff")

    lines = text.lstrip("\ufeff").split("\n")
    assert lines[0] == "Lịch trực tháng 2/2024"
    assert lines[1] == ""

    header = lines[2].split(",")
    assert header[:2] == ["STT", "Họ và tên"]
    assert len(header) == 2 + 29
    assert header[2 + 3] == "4 (CN)"

    guide = lines[3].split(",")
    assert guide[2] == "T5"
    assert guide[2 + 3] == "CN"

    assert lines[4].startswith("1,Giáo viên 1,")
    assert lines[5].startswith("2,Giáo viên 2,")
    assert lines[-1].startswith("#")


def test_blank_template_has_nothing_to_import():
    with pytest.raises(ImportParseError):
        parse_duty_schedule(render_template(2024, 1), year=2024, month=1)


def test_export_reads_back_as_the_same_assignments():
    duties = [
        DutySchedule(duty_id=1, teacher_name="Nguyễn Văn A", duty_date=date(2024, 1, 1)),
        DutySchedule(duty_id=2, teacher_name="Trần Thị B", duty_date=date(2024, 1, 7)),
        DutySchedule(duty_id=3, teacher_name="Nguyễn Văn A", duty_date=date(2024, 1, 31)),
        DutySchedule(duty_id=4, teacher_name="Ngoài Tháng", duty_date=date(2024, 2, 1)),
    ]

    text = render_export(2024, 1, duties)
    result = parse_duty_schedule(text, year=2024, month=1)

    assert sorted((e.teacher_name, e.duty_date) for e in result.records) == [
        ("Nguyễn Văn A", date(2024, 1, 1)),
        ("Nguyễn Văn A", date(2024, 1, 31)),
        ("Trần Thị B", date(2024, 1, 7)),
    ]


def test_filenames():
    assert template_filename(2024, 1) == "mau_lich_truc_thang_1_2024.csv"
    assert export_filename(2024, 12) == "lich_truc_thang_12_2024.csv"


def test_names_with_delimiters_are_quoted():
    duties = [DutySchedule(duty_id=1, teacher_name='Lê "Út", Văn C; tổ Toán', duty_date=date(2024, 1, 2))]

    text = render_export(2024, 1, duties)

    assert '"Lê ""Út"", Văn C; tổ Toán"' in text
    result = parse_duty_schedule(text, year=2024, month=1)
    assert [(e.teacher_name, e.duty_date) for e in result.records] == [('Lê "Út", Văn C; tổ Toán', date(2024, 1, 2))]
