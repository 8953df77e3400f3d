"""
Deposit Expiry Filter - Restricts deposits to an expiry window and orders them.

The window runs from a chosen start date to the same day N calendar months
later (two by default), both ends inclusive. A day that does not exist in
the target month rolls over into the next one, so 31 Dec + 2 months lands
on 2/3 March.

Filtering never mutates the stored records; moving the window start just
re-runs `filter` over the same normalized set.
"""
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from .collation import locale_key
from .config import Config
from .models import DepositRecord


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=start.day - 1)


class DepositExpiryFilter:
    """
    Keeps deposits whose expiration date falls inside [start, start + N months].

    Output order: clinic code (locale-aware), then expiration date ascending.
    """

    def __init__(self, window_months: int = Config.DEPOSIT_WINDOW_MONTHS):
        self.window_months = window_months

    def window(self, start: date) -> Tuple[date, date]:
        return start, add_months(start, self.window_months)

    def filter(self, records: Iterable[DepositRecord],
               start: Optional[date] = None) -> List[DepositRecord]:
        """
        Args:
            records: Normalized deposit records (left untouched)
            start: Window start, defaults to today

        Returns:
            New sorted list of the records expiring inside the window
        """
        start, end = self.window(start or date.today())
        expiring = [r for r in records if start <= r.expiration_date <= end]
        return sort_deposits(expiring)


def sort_deposits(records: Iterable[DepositRecord]) -> List[DepositRecord]:
    return sorted(records, key=lambda r: (locale_key(r.clinic_code), r.expiration_date))
