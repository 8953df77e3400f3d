from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest

from deposit_manager.etl.extract import CSVParser, ExcelParser, ParserFactory, SpreadsheetDecodeError
from deposit_manager.etl.pipeline import ReportBook, ReportPipeline, to_json


def _xlsx(rows) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Report", index=False)
        pd.DataFrame([{"Ignored": 1}]).to_excel(writer, sheet_name="Second", index=False)
    return buffer.getvalue()


DEPOSIT_ROWS = [
    {
        "Deposit Purchase Clinic Code": "JKT01", "User ID": "U-1", "Omnicare Id": "OC-1",
        "Name": "Ani", "Phone Number": "0812", "Treatment Display Name": "Laser",
        "Deposit Expiration Time": "10/03/2024 09:00:00", "Remaining Quantity": 1,
    },
    {
        "Deposit Purchase Clinic Code": "BDG02", "User ID": "U-2", "Omnicare Id": None,
        "Name": "Budi", "Phone Number": None, "Treatment Display Name": "Facial",
        "Deposit Expiration Time": "01/02/2024", "Remaining Quantity": 3,
    },
    {
        "Deposit Purchase Clinic Code": "JKT01", "User ID": "U-3", "Omnicare Id": "OC-3",
        "Name": "Citra", "Phone Number": "0813", "Treatment Display Name": "Peel",
        "Deposit Expiration Time": "01/02/2024", "Remaining Quantity": 0,
    },
    {
        "Deposit Purchase Clinic Code": "JKT01", "User ID": "U-4", "Omnicare Id": "",
        "Name": "Dewi", "Phone Number": "", "Treatment Display Name": "Peel",
        "Deposit Expiration Time": "01/06/2024", "Remaining Quantity": 1,
    },
]

REVENUE_ROWS = [
    {"Clinic Code": "JKT01", "Purchase Item Type": "Treatment", "Total Retail Price": 600,
     "Total Selling Price": 500, "Total Discount": 50, "Total Final Price": 450},
    {"Clinic Code": "JKT01", "Purchase Item Type": "Product", "Total Retail Price": 350,
     "Total Selling Price": 300, "Total Discount": 20, "Total Final Price": 280},
    {"Clinic Code": None, "Purchase Item Type": "Treatment", "Total Retail Price": 10,
     "Total Selling Price": 10, "Total Discount": 0, "Total Final Price": 10},
]

CASHIN_ROWS = [
    {"Clinic Code": "JKT01", "Payment Method": "Cash", "Amount": "Rp500.000"},
    {"Clinic Code": "JKT01", "Payment Method": "Treatment Deposit", "Amount": "300.000"},
    {"Clinic Code": "JKT01", "Payment Method": "Clinic Voucher - Value", "Amount": 200000},
    {"Clinic Code": "", "Payment Method": "", "Amount": "Rp10.000"},
]


def test_excel_parser_reads_first_sheet_with_blank_cells() -> None:
    payload = ExcelParser().parse(_xlsx(DEPOSIT_ROWS), source_file="deposits.xlsx")

    assert payload["sheet_name"] == "Report"
    assert payload["source_file"] == "deposits.xlsx"
    assert len(payload["rows"]) == 4
    assert payload["rows"][1]["Omnicare Id"] == ""
    assert payload["rows"][1]["Phone Number"] == ""
    assert len(payload["document_hash"]) == 64


def test_csv_parser() -> None:
    blob = b"Clinic Code,Payment Method,Amount\nJKT01,Cash,Rp10.000\nBDG02,,\n"
    rows = CSVParser().parse(blob)["rows"]

    assert rows == [
        {"Clinic Code": "JKT01", "Payment Method": "Cash", "Amount": "Rp10.000"},
        {"Clinic Code": "BDG02", "Payment Method": "", "Amount": ""},
    ]


def test_blank_rows_are_skipped() -> None:
    blob = _xlsx([
        {"Clinic Code": "JKT01", "Payment Method": "Cash", "Amount": 1000},
        {"Clinic Code": None, "Payment Method": None, "Amount": None},
        {"Clinic Code": "JKT01", "Payment Method": "Cash", "Amount": 2000},
    ])
    result = ReportPipeline().run(blob, "cashin")

    assert [c.clinic_code for c in result["clinics"]] == ["JKT01"]
    assert result["totals"].total == 3000
    assert result["stats"]["total_rows"] == 2

    csv_rows = CSVParser().parse(b"Clinic Code,Amount\nJKT01,5\n,\nBDG02,\n")["rows"]
    assert [r["Clinic Code"] for r in csv_rows] == ["JKT01", "BDG02"]


def test_sheet_of_blank_rows_has_no_totals() -> None:
    blob = _xlsx([{"Clinic Code": None, "Total Final Price": None}] * 3)
    result = ReportPipeline().run(blob, "revenue")

    assert result["clinics"] == []
    assert result["totals"] is None
    assert result["validation"] is None


def test_parser_factory() -> None:
    assert isinstance(ParserFactory.get_parser("XLSX"), ExcelParser)
    assert isinstance(ParserFactory.get_parser("csv"), CSVParser)
    with pytest.raises(ValueError):
        ParserFactory.get_parser("pdf")


def test_unreadable_blob_raises_decode_error() -> None:
    with pytest.raises(SpreadsheetDecodeError):
        ExcelParser().parse(b"definitely not a workbook")


def test_deposit_pipeline() -> None:
    pipeline = ReportPipeline()
    result = pipeline.run(_xlsx(DEPOSIT_ROWS), "deposit")

    assert result["success"] is True
    assert [r.user_id for r in result["records"]] == ["U-2", "U-1", "U-4"]
    assert result["stats"]["total_rows"] == 4
    assert result["stats"]["dropped_rows"] == 1

    view = pipeline.deposit_view(result["records"], date(2024, 1, 15))
    assert view["end"] == date(2024, 3, 15)
    assert [r.user_id for r in view["records"]] == ["U-2", "U-1"]
    assert view["expiring_count"] == 2
    assert view["clinic_count"] == 2
    assert view["user_count"] == 2


def test_revenue_pipeline_with_validation() -> None:
    result = ReportPipeline().run(_xlsx(REVENUE_ROWS), "revenue")

    assert [c.clinic_code for c in result["clinics"]] == ["JKT01", "Unknown"]
    assert result["totals"].total == 740
    assert result["validation"]["status"] == "PASS"
    assert result["stats"]["clinic_count"] == 2


def test_cashin_pipeline() -> None:
    result = ReportPipeline().run(_xlsx(CASHIN_ROWS), "cashin")

    jkt, unknown = result["clinics"]
    assert jkt.total == 1000000
    assert jkt.deposit == 300000
    assert jkt.voucher == 200000
    assert jkt.non_deposit_voucher == 500000
    assert unknown.clinic_code == "Unknown"
    assert unknown.payment_method_totals == {"Unknown": 10000}
    assert "validation" not in result


def test_empty_upload_has_no_totals() -> None:
    buffer = io.BytesIO()
    pd.DataFrame(columns=["Clinic Code", "Total Final Price"]).to_excel(buffer, index=False, engine="openpyxl")
    blob = buffer.getvalue()
    for report_type in ("revenue", "deposit_purchase", "cashin"):
        result = ReportPipeline().run(blob, report_type)
        assert result["success"] is True
        assert result["clinics"] == []
        assert result["totals"] is None


def test_process_rows_without_a_spreadsheet() -> None:
    result = ReportPipeline().process_rows(
        [{"Clinic Code": "A", "Total Final Price": "5", "Total Selling Price": 5}],
        "deposit_purchase",
    )
    assert result["totals"].total == 5


def test_decode_failure_reports_message() -> None:
    result = ReportPipeline().run(b"garbage", "cashin")

    assert result["success"] is False
    assert "Cash-In" in result["error"]


def test_unknown_report_type() -> None:
    result = ReportPipeline().run(b"", "payroll")
    assert result["success"] is False


def test_progress_is_reported_before_result() -> None:
    steps = list(ReportPipeline().process(_xlsx(REVENUE_ROWS), "revenue"))

    assert all(res is None for _, _, res in steps[:-1])
    assert steps[-1][0] == 100
    assert steps[-1][2]["success"] is True


def test_report_book_keeps_previous_result_on_failure() -> None:
    book = ReportBook()
    good = book.pipeline.run(_xlsx(REVENUE_ROWS), "revenue")
    assert book.publish(good) is True

    bad = book.pipeline.run(b"garbage", "revenue")
    assert book.publish(bad) is False
    assert book.get("revenue") is good


def test_report_book_deposit_view() -> None:
    book = ReportBook()
    assert book.deposit_view(date(2024, 1, 15)) is None

    book.publish(book.pipeline.run(_xlsx(DEPOSIT_ROWS), "deposit"))
    assert book.deposit_view(date(2024, 5, 1))["expiring_count"] == 1


def test_to_json() -> None:
    result = ReportPipeline().run(_xlsx(DEPOSIT_ROWS), "deposit")
    payload = to_json(result)

    assert payload["records"][0]["expiration_date"] == "2024-02-01"
    assert payload["records"][0]["clinic_code"] == "BDG02"


def test_shared_pipeline_runs_do_not_leak_state() -> None:
    pipeline = ReportPipeline()
    revenue = pipeline.run(_xlsx(REVENUE_ROWS), "revenue")
    cashin = pipeline.run(_xlsx(CASHIN_ROWS), "cashin")

    assert revenue["stats"]["total_rows"] == 3
    assert cashin["stats"]["total_rows"] == 4
    assert [c.clinic_code for c in revenue["clinics"]] == ["JKT01", "Unknown"]
    assert not hasattr(pipeline.normalizer, "stats")
