"""
Category Rules - Deterministic classification of report rows.

Two small rule tables drive the aggregated reports:
- Revenue rows are split into treatment / product buckets by item type.
- Cash-in rows are attributed to deposit / voucher by payment method label.

Matching is exact (item types case-insensitively) and traceable in code.
"""
from typing import Iterable, Optional

from .config import Config


# ─────────────────────────────────────────────────────────────
# Revenue Item Types
# ─────────────────────────────────────────────────────────────

TREATMENT = "treatment"
PRODUCT = "product"

ITEM_TYPES = (TREATMENT, PRODUCT)

# Payment method buckets
DEPOSIT = "deposit"
VOUCHER = "voucher"
OTHER = "other"


class ItemTypeMapper:
    """
    Maps a lower-cased 'Purchase Item Type' to a revenue bucket.

    Usage:
        mapper = ItemTypeMapper()
        mapper.categorize("treatment")   # -> "treatment"
        mapper.categorize("membership")  # -> None (unclassified)
    """

    def __init__(self, item_types: Iterable[str] = ITEM_TYPES):
        self.item_types = tuple(t.lower() for t in item_types)

    def categorize(self, item_type: str) -> Optional[str]:
        item_type = (item_type or "").lower()
        if item_type in self.item_types:
            return item_type
        return None


class PaymentMethodMapper:
    """Maps a cash-in 'Payment Method' label to deposit, voucher or other."""

    def __init__(self, deposit_methods: Optional[Iterable[str]] = None,
                 voucher_methods: Optional[Iterable[str]] = None):
        self.deposit_methods = frozenset(
            Config.DEPOSIT_PAYMENT_METHODS if deposit_methods is None else deposit_methods
        )
        self.voucher_methods = frozenset(
            Config.VOUCHER_PAYMENT_METHODS if voucher_methods is None else voucher_methods
        )

    def categorize(self, payment_method: str) -> str:
        if payment_method in self.deposit_methods:
            return DEPOSIT
        if payment_method in self.voucher_methods:
            return VOUCHER
        return OTHER

    def get_rules(self) -> dict:
        """Return current label sets for transparency/audit."""
        return {
            DEPOSIT: sorted(self.deposit_methods),
            VOUCHER: sorted(self.voucher_methods),
        }
