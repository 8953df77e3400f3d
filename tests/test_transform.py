from __future__ import annotations

from datetime import date

from deposit_manager.etl.categorize import PRODUCT, TREATMENT
from deposit_manager.etl.pipeline import _row_stats
from deposit_manager.etl.transform import RowNormalizer


def _deposit_row(**overrides):
    row = {
        "Deposit Purchase Clinic Code": "JKT01",
        "User ID": "U-1",
        "Omnicare Id": "OC-1",
        "Name": "Ani",
        "Phone Number": "0812",
        "Treatment Display Name": "Laser",
        "Deposit Expiration Time": "20/02/2024 10:00:00",
        "Remaining Quantity": 2,
    }
    row.update(overrides)
    return row


def test_deposit_row_is_normalized() -> None:
    normalizer = RowNormalizer()
    records = normalizer.normalize_deposits([_deposit_row()])

    assert len(records) == 1
    record = records[0]
    assert record.clinic_code == "JKT01"
    assert record.user_id == "U-1"
    assert record.omnicare_id == "OC-1"
    assert record.expiration_date == date(2024, 2, 20)
    assert _row_stats([_deposit_row()], records) == {"total_rows": 1, "retained_rows": 1, "dropped_rows": 0}


def test_deposit_rows_without_remaining_quantity_are_dropped() -> None:
    normalizer = RowNormalizer()
    rows = [
        _deposit_row(**{"Remaining Quantity": 0}),
        _deposit_row(**{"Remaining Quantity": -1}),
        _deposit_row(**{"Remaining Quantity": ""}),
        _deposit_row(**{"Remaining Quantity": "1"}),
    ]

    records = normalizer.normalize_deposits(rows)

    assert len(records) == 1
    assert _row_stats(rows, records)["dropped_rows"] == 3


def test_deposit_rows_missing_user_or_date_are_dropped() -> None:
    normalizer = RowNormalizer()
    rows = [
        _deposit_row(**{"User ID": ""}),
        _deposit_row(**{"Deposit Expiration Time": "2024-02-20"}),
        _deposit_row(**{"Deposit Expiration Time": ""}),
    ]

    assert normalizer.normalize_deposits(rows) == []


def test_deposit_defaults_for_optional_fields() -> None:
    row = _deposit_row(**{"Deposit Purchase Clinic Code": "", "Name": ""})
    del row["Omnicare Id"]
    row["Omnicare ID"] = 998

    record = RowNormalizer().normalize_deposit_row(row)

    assert record.clinic_code == "Unknown"
    assert record.user_name == ""
    assert record.omnicare_id == "998"


def test_missing_header_reads_as_blank() -> None:
    row = _deposit_row()
    del row["Phone Number"]

    record = RowNormalizer().normalize_deposit_row(row)
    assert record.phone_number == ""


def test_revenue_item_type_is_case_insensitive() -> None:
    normalizer = RowNormalizer()
    rows = normalizer.normalize_revenue([
        {"Clinic Code": "A", "Purchase Item Type": "Treatment", "Total Final Price": "100"},
        {"Clinic Code": "A", "Purchase Item Type": "PRODUCT", "Total Final Price": 50},
        {"Clinic Code": "A", "Purchase Item Type": "Membership", "Total Final Price": 10},
    ])

    assert [r.item_type for r in rows] == [TREATMENT, PRODUCT, None]
    assert [r.final_price for r in rows] == [100, 50, 10]


def test_cashin_defaults_and_currency_amounts() -> None:
    row = RowNormalizer().normalize_cashin_row(
        {"Clinic Code": "", "Payment Method": "", "Amount": "Rp310.000"}
    )

    assert row.clinic_code == "Unknown"
    assert row.payment_method == "Unknown"
    assert row.amount == 310000
