"""
Clinic Aggregation - Folds normalized rows into per-clinic summaries.

One generic fold, three instantiations:
- RevenueAggregator: treatment / product subtotals plus the final-price total
- DepositPurchaseAggregator: retail, selling, discount and final-price totals
- CashInAggregator: per payment method totals, deposit / voucher split

`total` is always the running sum of the row's own final amount and is never
derived from the subtotals. The subtotal combination is checked separately
(see dq.py).
"""
import logging
from typing import Dict, Generic, Iterable, List, Optional, Type, TypeVar

from .categorize import DEPOSIT, PRODUCT, TREATMENT, VOUCHER, PaymentMethodMapper
from .collation import locale_key
from .models import (
    TOTAL_LABEL,
    CashInClinicSummary,
    CashInRow,
    ClinicSummary,
    DepositPurchaseClinicSummary,
    DepositPurchaseRow,
    RevenueClinicSummary,
    RevenueRow,
)
from .schema import ReportType

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=ClinicSummary)
R = TypeVar("R")


class ClinicAggregator(Generic[R, S]):
    """
    Lazily creates one summary per clinic code and adds each row into it.

    The clinic map lives only for a single `aggregate` call.
    """

    summary_type: Type[ClinicSummary] = ClinicSummary

    def __init__(self):
        self.clinic_map: Dict[str, S] = {}

    def aggregate(self, rows: Iterable[R]) -> List[S]:
        self.clinic_map = {}
        for row in rows:
            self.accumulate(row, self.clinic_map)

        summaries = list(self.clinic_map.values())
        for summary in summaries:
            self.finalize(summary)

        logger.debug("%s: %d clinics", type(self).__name__, len(summaries))
        return sort_clinics(summaries)

    def accumulate(self, row: R, clinic_map: Dict[str, S]) -> S:
        summary = clinic_map.get(row.clinic_code)
        if summary is None:
            summary = self.summary_type(clinic_code=row.clinic_code)
            clinic_map[row.clinic_code] = summary
        self.add_row(summary, row)
        return summary

    def add_row(self, summary: S, row: R) -> None:
        raise NotImplementedError

    def finalize(self, summary: S) -> None:
        """Hook for fields derived once accumulation is complete."""

    def totals(self, summaries: List[S]) -> Optional[S]:
        return reduce_totals(summaries, self.summary_type)


class RevenueAggregator(ClinicAggregator[RevenueRow, RevenueClinicSummary]):
    summary_type = RevenueClinicSummary

    def add_row(self, summary: RevenueClinicSummary, row: RevenueRow) -> None:
        if row.item_type == TREATMENT:
            summary.treatment_retail_price += row.retail_price
            summary.treatment_selling_price += row.selling_price
            summary.treatment_discount += row.discount
        elif row.item_type == PRODUCT:
            summary.product_retail_price += row.retail_price
            summary.product_selling_price += row.selling_price
            summary.product_discount += row.discount

        # Unclassified rows still count towards the grand total
        summary.total += row.final_price


class DepositPurchaseAggregator(ClinicAggregator[DepositPurchaseRow, DepositPurchaseClinicSummary]):
    summary_type = DepositPurchaseClinicSummary

    def add_row(self, summary: DepositPurchaseClinicSummary, row: DepositPurchaseRow) -> None:
        summary.total_retail_price += row.retail_price
        summary.total_selling_price += row.selling_price
        summary.total_discount += row.discount
        summary.total += row.final_price


class CashInAggregator(ClinicAggregator[CashInRow, CashInClinicSummary]):
    summary_type = CashInClinicSummary

    def __init__(self, method_mapper: Optional[PaymentMethodMapper] = None):
        super().__init__()
        self.method_mapper = method_mapper or PaymentMethodMapper()

    def add_row(self, summary: CashInClinicSummary, row: CashInRow) -> None:
        methods = summary.payment_method_totals
        methods[row.payment_method] = methods.get(row.payment_method, 0) + row.amount
        summary.total += row.amount

        bucket = self.method_mapper.categorize(row.payment_method)
        if bucket == DEPOSIT:
            summary.deposit += row.amount
        elif bucket == VOUCHER:
            summary.voucher += row.amount

    def finalize(self, summary: CashInClinicSummary) -> None:
        summary.recompute_non_deposit_voucher()


def sort_clinics(summaries: Iterable[S]) -> List[S]:
    return sorted(summaries, key=lambda s: locale_key(s.clinic_code))


def reduce_totals(summaries: List[S], summary_type: Type[ClinicSummary]) -> Optional[S]:
    """
    Field-wise sum of all clinic summaries.

    Returns None for an empty list so "nothing uploaded" stays distinct
    from "everything is zero".
    """
    if not summaries:
        return None
    totals = summary_type(clinic_code=TOTAL_LABEL)
    for summary in summaries:
        totals.add(summary)
    return totals


AGGREGATORS = {
    ReportType.REVENUE: RevenueAggregator,
    ReportType.DEPOSIT_PURCHASE: DepositPurchaseAggregator,
    ReportType.CASHIN: CashInAggregator,
}


def get_aggregator(report_type: str) -> ClinicAggregator:
    try:
        return AGGREGATORS[ReportType(report_type)]()
    except (KeyError, ValueError):
        raise ValueError(f"No clinic aggregator for report type: {report_type}")
