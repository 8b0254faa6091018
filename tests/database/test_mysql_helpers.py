from __future__ import annotations

from datetime import date, datetime

import pytest

from src.boarding_management.boarding_management.database.mysql_base import load_json, placeholders, to_date


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (date(2024, 3, 5), date(2024, 3, 5)),
        (datetime(2024, 3, 5, 23, 59), date(2024, 3, 5)),
        ("2024-03-05", date(2024, 3, 5)),
        ("2024-03-05 07:30:00", date(2024, 3, 5)),
    ],
)
def test_to_date(value, expected):
    result = to_date(value)

    assert result == expected
    assert type(result) is type(expected)


def test_load_json_and_placeholders():
    assert load_json(b'[{"name": "An"}]') == [{"name": "An"}]
    assert load_json(None) is None
    assert placeholders([1, 2, 3]) == "%s,%s,%s"
