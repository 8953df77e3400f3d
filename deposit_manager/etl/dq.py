"""
Data Quality Engine - Revenue checksum cross-validation.

Checksum 1 is the accumulated grand total (sum of every row's final price).
Checksum 2 is rebuilt from the subtotals:

    (treatment selling + product selling) - (treatment discount + product discount)

A consistent export makes them equal. A mismatch is reported as data
(PASS / FAIL), never raised: it points at the upstream report, not at the
pipeline. Rows with an unclassified item type reach checksum 1 but not
checksum 2, so they surface here as a FAIL of exactly their amount.
"""
import logging
from typing import Any, Dict, List, Optional

from .config import Config
from .models import RevenueClinicSummary

logger = logging.getLogger(__name__)

PASS = "PASS"
FAIL = "FAIL"


def derived_total(summary: RevenueClinicSummary) -> float:
    return (
        (summary.treatment_selling_price + summary.product_selling_price)
        - (summary.treatment_discount + summary.product_discount)
    )


def check_revenue(summary: RevenueClinicSummary,
                  tolerance: float = Config.CHECKSUM_TOLERANCE) -> Dict[str, Any]:
    checksum2 = derived_total(summary)
    delta = abs(summary.total - checksum2)
    is_balanced = delta < tolerance
    return {
        "checksum1": summary.total,
        "checksum2": checksum2,
        "delta": delta,
        "is_balanced": is_balanced,
        "status": PASS if is_balanced else FAIL,
    }


class RevenueChecksumEngine:
    """
    Deterministic cross-validation of revenue totals, per clinic and overall.
    """

    def __init__(self, tolerance: float = Config.CHECKSUM_TOLERANCE):
        self.tolerance = tolerance
        self.reconciliation: Dict[str, Any] = {}
        self.flagged_rows: List[Dict[str, Any]] = []

    def assess(self, clinics: List[RevenueClinicSummary],
               totals: Optional[RevenueClinicSummary]) -> Optional[Dict[str, Any]]:
        """
        Validate the grand totals and flag every clinic whose own checksum fails.

        Returns the full report, or None when there is nothing to validate.
        """
        self.reconciliation = {}
        self.flagged_rows = []

        if totals is None:
            return None

        for clinic in clinics:
            result = check_revenue(clinic, self.tolerance)
            if not result["is_balanced"]:
                self.flagged_rows.append({
                    "clinic_code": clinic.clinic_code,
                    "checksum1": result["checksum1"],
                    "checksum2": result["checksum2"],
                    "delta": result["delta"],
                    "flag_type": "CHECKSUM_MISMATCH",
                })

        self.reconciliation = check_revenue(totals, self.tolerance)
        if not self.reconciliation["is_balanced"]:
            logger.warning(
                "Revenue checksum mismatch: total=%s derived=%s (%d clinics flagged)",
                self.reconciliation["checksum1"],
                self.reconciliation["checksum2"],
                len(self.flagged_rows),
            )
        return self.get_full_report()

    def get_reconciliation(self) -> Dict[str, Any]:
        return self.reconciliation.copy()

    def get_flagged_rows(self) -> List[Dict[str, Any]]:
        return self.flagged_rows.copy()

    def get_full_report(self) -> Dict[str, Any]:
        return {
            **self.get_reconciliation(),
            "tolerance": self.tolerance,
            "flagged_clinics": self.get_flagged_rows(),
        }
