"""
Transform Layer - Per-report row normalization.

This module implements:
1. Deposit rows: remaining-quantity gate, required user id / expiry date
2. Revenue rows: item-type classification (treatment / product / unclassified)
3. Deposit-purchase rows: plain price extraction
4. Cash-in rows: payment method default and currency-formatted amounts

Malformed rows are dropped silently. The normalizer holds no per-run state.
"""
from typing import Dict, List, Optional

from .categorize import ItemTypeMapper
from .coerce import (
    amount_from,
    lower_string_from,
    number_from,
    parse_date,
    string_from,
)
from .config import Config
from .models import CashInRow, DepositPurchaseRow, DepositRecord, RevenueRow
from .schema import CashInColumns, DepositColumns, PriceColumns, RawRow


def _cell(row: RawRow, key: str):
    # A missing header reads the same as a blank cell
    return row.get(key, "")


class RowNormalizer:
    """
    Maps raw sheet rows into typed records, one method per report.
    Pure and deterministic: the same rows always produce the same records.
    """

    def __init__(self, unknown_clinic: str = Config.UNKNOWN_CLINIC,
                 item_type_mapper: Optional[ItemTypeMapper] = None):
        self.unknown_clinic = unknown_clinic
        self.item_type_mapper = item_type_mapper or ItemTypeMapper()

    def _clinic_code(self, row: RawRow, key: str) -> str:
        return string_from(_cell(row, key)) or self.unknown_clinic

    # ─────────────────────────────────────────────────────────────
    # Deposit Information
    # ─────────────────────────────────────────────────────────────

    def normalize_deposits(self, rows: List[RawRow]) -> List[DepositRecord]:
        records = []
        for row in rows:
            record = self.normalize_deposit_row(row)
            if record is not None:
                records.append(record)
        return records

    def normalize_deposit_row(self, row: RawRow) -> Optional[DepositRecord]:
        """Return a DepositRecord, or None when the row is not an open, identifiable deposit."""
        if number_from(_cell(row, DepositColumns.REMAINING_QUANTITY)) <= 0:
            return None

        user_id = string_from(_cell(row, DepositColumns.USER_ID))
        expiration_date = parse_date(_cell(row, DepositColumns.EXPIRATION_TIME))
        if not user_id or expiration_date is None:
            return None

        omnicare_id = (
            string_from(_cell(row, DepositColumns.OMNICARE_ID))
            or string_from(_cell(row, DepositColumns.OMNICARE_ID_ALT))
        )

        return DepositRecord(
            clinic_code=self._clinic_code(row, DepositColumns.CLINIC_CODE),
            user_id=user_id,
            omnicare_id=omnicare_id,
            user_name=string_from(_cell(row, DepositColumns.NAME)),
            phone_number=string_from(_cell(row, DepositColumns.PHONE_NUMBER)),
            treatment_name=string_from(_cell(row, DepositColumns.TREATMENT_NAME)),
            expiration_date=expiration_date,
        )

    # ─────────────────────────────────────────────────────────────
    # Revenue / Deposit Purchase
    # ─────────────────────────────────────────────────────────────

    def normalize_revenue(self, rows: List[RawRow]) -> List[RevenueRow]:
        return [self.normalize_revenue_row(row) for row in rows]

    def normalize_revenue_row(self, row: RawRow) -> RevenueRow:
        item_type = lower_string_from(_cell(row, PriceColumns.ITEM_TYPE))
        return RevenueRow(
            clinic_code=self._clinic_code(row, PriceColumns.CLINIC_CODE),
            item_type=self.item_type_mapper.categorize(item_type),
            **self._prices(row),
        )

    def normalize_deposit_purchases(self, rows: List[RawRow]) -> List[DepositPurchaseRow]:
        return [self.normalize_deposit_purchase_row(row) for row in rows]

    def normalize_deposit_purchase_row(self, row: RawRow) -> DepositPurchaseRow:
        return DepositPurchaseRow(
            clinic_code=self._clinic_code(row, PriceColumns.CLINIC_CODE),
            **self._prices(row),
        )

    def _prices(self, row: RawRow) -> Dict[str, float]:
        return {
            "retail_price": number_from(_cell(row, PriceColumns.RETAIL_PRICE)),
            "selling_price": number_from(_cell(row, PriceColumns.SELLING_PRICE)),
            "discount": number_from(_cell(row, PriceColumns.DISCOUNT)),
            "final_price": number_from(_cell(row, PriceColumns.FINAL_PRICE)),
        }

    # ─────────────────────────────────────────────────────────────
    # Cash-In
    # ─────────────────────────────────────────────────────────────

    def normalize_cashin(self, rows: List[RawRow]) -> List[CashInRow]:
        return [self.normalize_cashin_row(row) for row in rows]

    def normalize_cashin_row(self, row: RawRow) -> CashInRow:
        payment_method = (
            string_from(_cell(row, CashInColumns.PAYMENT_METHOD))
            or Config.UNKNOWN_PAYMENT_METHOD
        )
        return CashInRow(
            clinic_code=self._clinic_code(row, CashInColumns.CLINIC_CODE),
            payment_method=payment_method,
            amount=amount_from(_cell(row, CashInColumns.AMOUNT)),
        )
