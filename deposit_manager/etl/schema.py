"""
Report Schema - Header names and TypedDict payloads shared across ETL layers.

Each clinic platform export is a flat sheet. The row normalizers only ever
look up the exact header strings listed here; anything else in the sheet is
ignored.
"""
from enum import Enum
from typing import TypedDict, Dict, Any, Optional, List, Union

# A spreadsheet cell as handed over by the reader: blank, text or a number.
CellValue = Union[None, str, int, float]
RawRow = Dict[str, CellValue]


class ReportType(str, Enum):
    DEPOSIT = "deposit"
    REVENUE = "revenue"
    DEPOSIT_PURCHASE = "deposit_purchase"
    CASHIN = "cashin"


class DepositColumns:
    CLINIC_CODE = "Deposit Purchase Clinic Code"
    USER_ID = "User ID"
    OMNICARE_ID = "Omnicare Id"
    OMNICARE_ID_ALT = "Omnicare ID"
    NAME = "Name"
    PHONE_NUMBER = "Phone Number"
    TREATMENT_NAME = "Treatment Display Name"
    EXPIRATION_TIME = "Deposit Expiration Time"
    REMAINING_QUANTITY = "Remaining Quantity"


class PriceColumns:
    """Shared by the revenue and deposit-purchase reports."""
    CLINIC_CODE = "Clinic Code"
    ITEM_TYPE = "Purchase Item Type"      # revenue only
    RETAIL_PRICE = "Total Retail Price"
    SELLING_PRICE = "Total Selling Price"
    DISCOUNT = "Total Discount"
    FINAL_PRICE = "Total Final Price"


class CashInColumns:
    CLINIC_CODE = "Clinic Code"
    PAYMENT_METHOD = "Payment Method"
    AMOUNT = "Amount"


class ExtractionPayload(TypedDict):
    """Output from Extract layer"""
    document_hash: str            # SHA256 of the uploaded blob
    rows: List[RawRow]            # First sheet, header -> cell
    sheet_name: str
    source_file: str


class RowStats(TypedDict):
    total_rows: int
    retained_rows: int
    dropped_rows: int


class PipelineResult(TypedDict, total=False):
    """Final output from a report pipeline run"""
    success: bool
    report_type: str
    records: List[Any]                # DepositRecord, deposit report only
    clinics: List[Any]                # ClinicSummary subclasses, sorted by clinic
    totals: Optional[Any]             # None when no clinic was seen
    validation: Optional[Dict[str, Any]]   # revenue checksum report
    stats: Dict[str, Any]
    error: str
