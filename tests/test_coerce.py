from __future__ import annotations

from datetime import date

import numpy as np

from deposit_manager.etl.coerce import (
    amount_from,
    lower_string_from,
    number_from,
    parse_date,
    string_from,
)


def test_string_from() -> None:
    assert string_from("JKT01") == "JKT01"
    assert string_from(12345) == "12345"
    assert string_from(12345.0) == "12345"
    assert string_from(1.5) == "1.5"
    assert string_from(np.int64(7)) == "7"
    assert string_from(None) == ""
    assert string_from(True) == ""


def test_lower_string_from() -> None:
    assert lower_string_from("Treatment") == "treatment"
    assert lower_string_from(None) == ""


def test_number_from() -> None:
    assert number_from(3) == 3
    assert number_from(2.5) == 2.5
    assert number_from("10") == 10
    assert number_from(" 4.25 ") == 4.25
    assert number_from("-2") == -2
    assert number_from("1e3") == 1000
    assert number_from("") == 0
    assert number_from("abc") == 0
    assert number_from("1,000") == 0
    assert number_from("inf") == 0
    assert number_from(None) == 0
    assert number_from(float("nan")) == 0


def test_amount_from_currency_formats() -> None:
    assert amount_from("Rp310.000") == 310000
    assert amount_from("310.000") == 310000
    assert amount_from(310000) == 310000
    assert amount_from("Rp 1.250.000") == 1250000
    assert amount_from("") == 0
    assert amount_from("Rp") == 0
    assert amount_from(None) == 0


def test_amount_from_drops_sign() -> None:
    assert amount_from("-5.000") == 5000


def test_parse_date() -> None:
    assert parse_date("15/01/2024") == date(2024, 1, 15)
    assert parse_date("05/03/2024 13:45:00") == date(2024, 3, 5)
    assert parse_date("1/2/2024") == date(2024, 2, 1)


def test_parse_date_rolls_over_out_of_range_parts() -> None:
    assert parse_date("31/04/2024") == date(2024, 5, 1)
    assert parse_date("31/02/2024") == date(2024, 3, 2)
    assert parse_date("/01/2024") == date(2023, 12, 31)
    assert parse_date("15/13/2024") == date(2025, 1, 15)
    assert parse_date("15/\t01/2024") == date(2024, 1, 15)
    assert parse_date("15.9/01/2024") == date(2024, 1, 15)
    assert parse_date("15/01/24") == date(1924, 1, 15)


def test_parse_date_rejects_other_shapes() -> None:
    assert parse_date("2024-01-15") is None
    assert parse_date("15/01") is None
    assert parse_date("aa/01/2024") is None
    assert parse_date("15/01/inf") is None
    assert parse_date("15/01/99999") is None
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date(45306) is None
