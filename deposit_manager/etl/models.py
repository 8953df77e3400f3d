
from dataclasses import dataclass, field, fields, asdict
from datetime import date
from typing import Dict, Any, ClassVar, Optional, Tuple, Union

from .collation import locale_key

Number = Union[int, float]

TOTAL_LABEL = "TOTAL"


@dataclass(frozen=True)
class DepositRecord:
    clinic_code: str
    user_id: str
    omnicare_id: str
    user_name: str
    phone_number: str
    treatment_name: str
    expiration_date: date

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["expiration_date"] = self.expiration_date.isoformat()
        return row


@dataclass
class ClinicSummary:
    """Base accumulator keyed by clinic code. Subclasses list their numeric fields."""
    clinic_code: str

    NUMERIC_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def add(self, other: "ClinicSummary") -> None:
        for name in self.NUMERIC_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(other, name))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class RevenueClinicSummary(ClinicSummary):
    treatment_retail_price: Number = 0
    treatment_selling_price: Number = 0
    treatment_discount: Number = 0
    product_retail_price: Number = 0
    product_selling_price: Number = 0
    product_discount: Number = 0
    total: Number = 0

    NUMERIC_FIELDS = (
        "treatment_retail_price", "treatment_selling_price", "treatment_discount",
        "product_retail_price", "product_selling_price", "product_discount",
        "total",
    )


@dataclass
class DepositPurchaseClinicSummary(ClinicSummary):
    total_retail_price: Number = 0
    total_selling_price: Number = 0
    total_discount: Number = 0
    total: Number = 0

    NUMERIC_FIELDS = ("total_retail_price", "total_selling_price", "total_discount", "total")


@dataclass
class CashInClinicSummary(ClinicSummary):
    payment_method_totals: Dict[str, Number] = field(default_factory=dict)
    deposit: Number = 0
    voucher: Number = 0
    non_deposit_voucher: Number = 0
    total: Number = 0

    NUMERIC_FIELDS = ("deposit", "voucher", "non_deposit_voucher", "total")

    def add(self, other: "ClinicSummary") -> None:
        super().add(other)
        for method, amount in other.payment_method_totals.items():
            self.payment_method_totals[method] = self.payment_method_totals.get(method, 0) + amount

    def recompute_non_deposit_voucher(self) -> None:
        self.non_deposit_voucher = self.total - self.deposit - self.voucher

    def to_dict(self) -> Dict[str, Any]:
        row = super().to_dict()
        row["payment_method_totals"] = {
            method: self.payment_method_totals[method]
            for method in sorted(self.payment_method_totals, key=locale_key)
        }
        return row


# Normalized rows feeding the clinic aggregators

@dataclass(frozen=True)
class RevenueRow:
    clinic_code: str
    item_type: Optional[str]    # "treatment" | "product" | None
    retail_price: Number
    selling_price: Number
    discount: Number
    final_price: Number


@dataclass(frozen=True)
class DepositPurchaseRow:
    clinic_code: str
    retail_price: Number
    selling_price: Number
    discount: Number
    final_price: Number


@dataclass(frozen=True)
class CashInRow:
    clinic_code: str
    payment_method: str
    amount: Number
